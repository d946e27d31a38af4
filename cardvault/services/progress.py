"""
Set download progress.

Progress is always recomputed from persisted card state, never kept as a
running total, so concurrent workers need no locking: a stale count is
corrected by the next recompute for any card in the set.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from cardvault.db.operations import count_front_images
from cardvault.models.db import CardSetDB
from cardvault.models.events import SetProgressEvent, set_progress_topic
from cardvault.models.status import DownloadStatus
from cardvault.services.notifier import Notifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SetProgress:
    """
    Snapshot of a set's image download progress.

    Attributes:
        count: Cards with a downloaded front image (back faces do not count)
        target: The set's card count
        percent: count / target as a percentage, 0 when target is 0
        status: Status after this snapshot was applied
        just_completed: True if this update moved the set to completed
    """

    count: int
    target: int
    percent: float
    status: DownloadStatus
    just_completed: bool = False

    def to_event(self) -> SetProgressEvent:
        return SetProgressEvent(
            count=self.count,
            target=self.target,
            percent=self.percent,
            status=self.status,
        )


def progress_percent(count: int, target: int) -> float:
    if target <= 0:
        return 0.0
    return round(min(count, target) / target * 100, 2)


async def recompute_progress(session: AsyncSession, card_set: CardSetDB) -> SetProgress:
    """Read the current aggregate from persisted cards. Does not write."""
    count = await count_front_images(session, card_set.id)
    target = card_set.card_count
    return SetProgress(
        count=min(count, target),
        target=target,
        percent=progress_percent(count, target),
        status=card_set.download_status,
    )


class ProgressTracker:
    """Recomputes set aggregates and drives the status state machine."""

    def __init__(self, notifier: Notifier) -> None:
        self._notifier = notifier

    async def recompute(self, session: AsyncSession, card_set: CardSetDB) -> SetProgress:
        return await recompute_progress(session, card_set)

    async def update(self, session: AsyncSession, card_set: CardSetDB) -> SetProgress:
        """
        Persist a freshly recomputed aggregate on the set.

        Moves the set to completed once the count reaches its target. The
        stored status is re-checked in the same statement, so of several
        concurrent callers only one sees `just_completed`.
        """
        count = await count_front_images(session, card_set.id)
        target = card_set.card_count
        card_set.images_downloaded = min(count, target)
        await session.flush()

        just_completed = False
        if count >= target:
            # Only the transaction that flips the stored status reports completion
            result = await session.execute(
                update(CardSetDB)
                .where(
                    CardSetDB.id == card_set.id,
                    CardSetDB.download_status != DownloadStatus.COMPLETED,
                )
                .values(download_status=DownloadStatus.COMPLETED)
                .execution_options(synchronize_session=False)
            )
            just_completed = result.rowcount == 1
        await session.refresh(card_set, ["download_status"])

        if just_completed:
            logger.info("Completed downloading all images for set %s", card_set.code)

        return SetProgress(
            count=card_set.images_downloaded,
            target=target,
            percent=progress_percent(count, target),
            status=card_set.download_status,
            just_completed=just_completed,
        )

    async def publish(self, card_set_id: int, progress: SetProgress) -> None:
        """Publish the progress event, plus a completion event if the set just completed."""
        topic = set_progress_topic(card_set_id)
        await self._notifier.publish(topic, progress.to_event())

        if progress.just_completed:
            await self._notifier.publish(
                topic,
                SetProgressEvent(
                    type="completed",
                    count=progress.target,
                    target=progress.target,
                    percent=100.0,
                    status=DownloadStatus.COMPLETED,
                ),
            )
