"""
Operator maintenance for downloaded sets.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from cardvault.db.operations import (
    delete_card_set,
    get_card_set,
    get_cards_missing_front_image,
)
from cardvault.jobs.dispatch import TaskDispatcher, TaskHandle
from cardvault.models.status import DownloadStatus, advance_status
from cardvault.services.asset_store import AssetStore
from cardvault.services.catalog_client import CatalogClient
from cardvault.services.normalizer import extract_image_refs
from cardvault.services.notifier import NullNotifier
from cardvault.services.progress import ProgressTracker

logger = logging.getLogger(__name__)


async def delete_set(session: AsyncSession, code: str, store: AssetStore) -> bool:
    """
    Delete a set, its cards, and their image files.

    Files are removed only after the deletion is committed.

    Returns True if deleted, False if not found.
    """
    paths = await delete_card_set(session, code.lower())
    if paths is None:
        return False
    await session.commit()

    removed = sum(store.remove(path) for path in paths)
    logger.info("Deleted set %s and %d image files", code, removed)
    return True


async def rescan_missing_images(
    session: AsyncSession,
    catalog: CatalogClient,
    dispatcher: TaskDispatcher,
    code: str,
    *,
    refresh_refs: bool = True,
    tracker: ProgressTracker | None = None,
) -> list[TaskHandle]:
    """
    Resubmit acquisition tasks for every card without a front image.

    With `refresh_refs`, each card's image references are re-read from the
    catalog first, in case the stored URLs went stale.

    When nothing is missing the set's progress is recomputed instead, which
    completes a set whose stored status fell behind its cards.

    Returns the submitted task handles (empty if nothing is missing or the
    set is unknown).
    """
    card_set = await get_card_set(session, code.lower())
    if card_set is None:
        logger.warning("Cannot rescan unknown set %s", code)
        return []

    missing = await get_cards_missing_front_image(session, card_set)
    if not missing:
        logger.info("All images already downloaded for set %s", code)
        tracker = tracker or ProgressTracker(NullNotifier())
        progress = await tracker.update(session, card_set)
        await session.commit()
        await tracker.publish(card_set.id, progress)
        return []

    if refresh_refs:
        for card in missing:
            raw = await catalog.fetch_card(card.id)
            if raw is None:
                continue
            front, back = extract_image_refs(raw)
            if front:
                card.image_uris = front
            if back:
                card.back_image_uris = back

    card_set.download_status = advance_status(card_set.download_status, DownloadStatus.DOWNLOADING)
    card_ids = [card.id for card in missing]
    await session.commit()

    logger.info("Retrying download for %d images in set %s", len(card_ids), code)
    return [dispatcher.submit(card_id) for card_id in card_ids]
