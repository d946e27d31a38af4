"""
Per-card image acquisition.

Downloads the front image (and the back image of double-faced cards),
stores the relative paths on the card, then recomputes the owning set's
progress and publishes it.

Safe to run more than once for the same card: faces that already have a
path are skipped without any network call.
"""

import asyncio
import logging

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cardvault.config import BACK_FACE_SUFFIX, FRONT_IMAGE_SIZE, settings
from cardvault.db.operations import get_card
from cardvault.jobs.dispatch import PermanentTaskError
from cardvault.models.events import CardImageEvent, card_image_topic
from cardvault.services.asset_store import AssetStore
from cardvault.services.notifier import Notifier
from cardvault.services.progress import ProgressTracker, SetProgress

logger = logging.getLogger(__name__)


class CardNotFoundError(PermanentTaskError):
    """Raised when the card to acquire images for does not exist."""

    pass


class AssetDownloadError(Exception):
    """Raised when a card face image could not be fetched or written."""

    pass


class AssetAcquisitionWorker:
    """
    Acquire images for one card per call.

    Failures of individual faces do not stop the other face or the progress
    update; the first failure is raised afterwards so the dispatcher retries.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        http: httpx.AsyncClient,
        store: AssetStore,
        tracker: ProgressTracker,
        notifier: Notifier,
        *,
        delay: float | None = None,
        timeout: float | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._http = http
        self._store = store
        self._tracker = tracker
        self._notifier = notifier
        self._delay = settings.image_download_delay if delay is None else delay
        self._timeout = timeout or settings.request_timeout

    async def acquire(self, card_id: str) -> SetProgress:
        """
        Download missing faces for a card and update set progress.

        Raises:
            CardNotFoundError: If no card has this id
            AssetDownloadError: If any face failed (after progress was saved)
        """
        failures: list[AssetDownloadError] = []
        new_face = False

        async with self._session_factory() as session:
            card = await get_card(session, card_id)
            if card is None:
                raise CardNotFoundError(f"Card {card_id} not found")
            card_set = card.card_set
            card_set_id = card_set.id

            if card.image_path is None:
                try:
                    card.image_path = await self._download_face(card.id, card.image_uris)
                except AssetDownloadError as e:
                    failures.append(e)
                else:
                    if card.image_path:
                        new_face = True
                        logger.info("Downloaded front image for card %s", card.name)

            if card.double_faced and card.back_image_path is None:
                try:
                    card.back_image_path = await self._download_face(
                        card.id, card.back_image_uris, suffix=BACK_FACE_SUFFIX
                    )
                except AssetDownloadError as e:
                    failures.append(e)
                else:
                    if card.back_image_path:
                        new_face = True
                        logger.info("Downloaded back image for card %s", card.name)

            await session.flush()
            progress = await self._tracker.update(session, card_set)
            await session.commit()

            image_event = CardImageEvent(
                card_id=card.id,
                image_path=card.image_path,
                back_image_path=card.back_image_path,
            )

        if new_face:
            await self._notifier.publish(card_image_topic(card_id), image_event)
        await self._tracker.publish(card_set_id, progress)

        if failures:
            for failure in failures:
                logger.warning("%s", failure)
            raise failures[0]
        return progress

    async def _download_face(
        self, card_id: str, image_uris: dict[str, str] | None, suffix: str = ""
    ) -> str | None:
        """
        Fetch one face and store it.

        Returns:
            The relative path, or None if the card has no image reference
            for this face.

        Raises:
            AssetDownloadError: If the request or the write fails
        """
        face = "back" if suffix else "front"
        url = (image_uris or {}).get(FRONT_IMAGE_SIZE)
        if not url:
            logger.warning("No %s image reference for card %s", face, card_id)
            return None

        relative = self._store.relative_path(card_id, suffix)
        if self._store.exists(relative):
            return relative

        # Rate limit: be polite to the image CDN
        await asyncio.sleep(self._delay)

        try:
            response = await self._http.get(url, timeout=self._timeout, follow_redirects=True)
            response.raise_for_status()
            self._store.write(relative, response.content)
        except httpx.HTTPStatusError as e:
            raise AssetDownloadError(
                f"Failed to download {face} image for card {card_id}: "
                f"HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, OSError) as e:
            raise AssetDownloadError(
                f"Failed to download {face} image for card {card_id}: {e}"
            ) from e

        return relative
