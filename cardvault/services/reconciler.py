"""
Catalog -> local database reconciliation.

Reconciling a set is idempotent: sets and cards are created only if absent,
existing rows are never overwritten, and one image acquisition task is
submitted for every card still missing its front image.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cardvault.db.operations import (
    create_card_if_absent,
    create_card_set,
    get_card_set,
    get_cards_missing_front_image,
    update_card_set_metadata,
)
from cardvault.jobs.dispatch import TaskDispatcher, TaskHandle
from cardvault.models.db import CardSetDB
from cardvault.models.status import DownloadStatus, advance_status
from cardvault.services.catalog_client import CatalogClient
from cardvault.services.normalizer import normalize
from cardvault.services.notifier import NullNotifier
from cardvault.services.progress import ProgressTracker

logger = logging.getLogger(__name__)


class SetUnavailableError(Exception):
    """Raised when a set is not stored locally and the catalog cannot describe it."""

    pass


@dataclass
class ReconcileResult:
    """
    Outcome of reconciling one set.

    Attributes:
        card_set: The stored set
        created: True if the set row was created by this call
        cards_added: Number of new card rows
        handles: Acquisition tasks submitted for cards missing images
        fetch_complete: False if the card listing stopped on a failed page
        children: Results for child sets, when requested
    """

    card_set: CardSetDB
    created: bool = False
    cards_added: int = 0
    handles: list[TaskHandle] = field(default_factory=list)
    fetch_complete: bool = True
    children: list["ReconcileResult"] = field(default_factory=list)

    @property
    def images_queued(self) -> int:
        return len(self.handles)

    def all_handles(self) -> list[TaskHandle]:
        handles = list(self.handles)
        for child in self.children:
            handles.extend(child.all_handles())
        return handles


class Reconciler:
    """Synchronizes sets and cards from the catalog and schedules image downloads."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        catalog: CatalogClient,
        dispatcher: TaskDispatcher,
        tracker: ProgressTracker | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._catalog = catalog
        self._dispatcher = dispatcher
        self._tracker = tracker or ProgressTracker(NullNotifier())

    async def reconcile_set(self, code: str, include_child_sets: bool = True) -> ReconcileResult:
        """
        Download a set (and optionally its child sets) into the local database.

        Existing set metadata is left as stored; use `refresh_set` to update it.

        Raises:
            SetUnavailableError: If the set is unknown locally and to the catalog
        """
        code = code.lower()
        result = await self._reconcile(code)

        if include_child_sets:
            for child_code in await self._catalog.fetch_child_set_codes(code):
                try:
                    result.children.append(await self._reconcile(child_code))
                except SetUnavailableError as e:
                    logger.warning("Skipping child set %s of %s: %s", child_code, code, e)

        return result

    async def refresh_set(self, code: str) -> ReconcileResult:
        """
        Refresh set metadata from the catalog, then reconcile its cards.

        New cards are added; cards already stored keep their fields.
        """
        return await self._reconcile(code.lower(), refresh_metadata=True)

    async def _reconcile(self, code: str, refresh_metadata: bool = False) -> ReconcileResult:
        try:
            return await self._reconcile_once(code, refresh_metadata)
        except IntegrityError:
            # A concurrent reconciliation inserted the same rows first
            logger.info("Concurrent reconciliation of %s detected, retrying", code)
            return await self._reconcile_once(code, refresh_metadata)

    async def _reconcile_once(self, code: str, refresh_metadata: bool) -> ReconcileResult:
        async with self._session_factory() as session:
            card_set, created = await self._get_or_create_set(session, code, refresh_metadata)

            fetch = await self._catalog.fetch_cards_for_set(code)
            if not fetch.complete:
                logger.warning(
                    "Card listing for set %s is incomplete (%d cards fetched): %s",
                    code,
                    len(fetch.cards),
                    fetch.error,
                )

            added = 0
            for raw in fetch.cards:
                _, was_created = await create_card_if_absent(session, card_set, normalize(raw))
                added += int(was_created)

            card_set.download_status = advance_status(
                card_set.download_status, DownloadStatus.DOWNLOADING
            )
            missing = await get_cards_missing_front_image(session, card_set)
            progress = None
            if not missing:
                # No worker will run for this set, so settle its progress here
                progress = await self._tracker.update(session, card_set)
            await session.commit()

        if progress is not None:
            await self._tracker.publish(card_set.id, progress)

        logger.info(
            "Reconciled set %s: %d new cards, %d images to download",
            code,
            added,
            len(missing),
        )

        handles = [self._dispatcher.submit(card.id) for card in missing]

        return ReconcileResult(
            card_set=card_set,
            created=created,
            cards_added=added,
            handles=handles,
            fetch_complete=fetch.complete,
        )

    async def _get_or_create_set(
        self, session: AsyncSession, code: str, refresh_metadata: bool
    ) -> tuple[CardSetDB, bool]:
        card_set = await get_card_set(session, code)

        if card_set is not None:
            if refresh_metadata:
                descriptor = await self._catalog.fetch_set_details(code)
                if descriptor is not None:
                    await update_card_set_metadata(session, card_set, descriptor)
            return card_set, False

        descriptor = await self._catalog.fetch_set_details(code)
        if descriptor is None:
            raise SetUnavailableError(f"Set {code} could not be fetched from the catalog")

        card_set = await create_card_set(session, descriptor)
        logger.info("Created set %s (%s, %d cards)", code, descriptor.name, descriptor.card_count)
        return card_set, True
