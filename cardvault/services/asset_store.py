"""
Local card image storage.

A flat directory of files named after the card's catalog id. Paths handed
to the database are relative to the storage root (e.g. `card_images/<id>.jpg`).
"""

import logging
import os
import tempfile
from pathlib import Path

from cardvault.config import IMAGES_SUBDIR, settings

logger = logging.getLogger(__name__)


class AssetStore:
    """Reads and writes card images under a storage root."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = root if root is not None else settings.storage_dir

    def relative_path(self, card_id: str, suffix: str = "") -> str:
        return f"{IMAGES_SUBDIR}/{card_id}{suffix}.jpg"

    def absolute_path(self, relative: str) -> Path:
        return self.root / relative

    def exists(self, relative: str) -> bool:
        return self.absolute_path(relative).is_file()

    def write(self, relative: str, content: bytes) -> Path:
        """
        Write an image atomically.

        Bytes go to a temporary file in the target directory which is then
        renamed into place, so a failed write never leaves a partial image.

        Raises:
            OSError: If the file cannot be written
        """
        target = self.absolute_path(relative)
        target.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        return target

    def remove(self, relative: str) -> bool:
        """
        Delete an image if present.

        Returns True if a file was removed. Errors are logged, not raised.
        """
        path = self.absolute_path(relative)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error("Error deleting image file %s: %s", relative, e)
            return False
        return True
