"""
Download status state machine for card sets.

pending -> downloading -> completed

Status is monotonic. There is no failed state: a set whose images can never
all be fetched stays in downloading until an operator rescans it.
"""

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class DownloadStatus(str, Enum):
    """Lifecycle of a set's image download."""

    PENDING = "pending"
    DOWNLOADING = "downloading"
    COMPLETED = "completed"

    @property
    def rank(self) -> int:
        return _ORDER.index(self)


_ORDER = (DownloadStatus.PENDING, DownloadStatus.DOWNLOADING, DownloadStatus.COMPLETED)


def advance_status(current: DownloadStatus, target: DownloadStatus) -> DownloadStatus:
    """
    Apply a status transition, refusing to move backwards.

    Args:
        current: Status currently stored on the set
        target: Requested status

    Returns:
        The status the set should hold afterwards. Requests to regress
        (or to stay put) return `current` unchanged.
    """
    if target.rank <= current.rank:
        if target.rank < current.rank:
            logger.debug("Ignoring status regression %s -> %s", current.value, target.value)
        return current
    return target
