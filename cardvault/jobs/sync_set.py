"""
Download sets and their card images.

Reconciles each requested set from the catalog, then runs the image
acquisition tasks in-process and waits for them to finish.

Usage:
    python -m cardvault.jobs.sync_set dsk mkm
    python -m cardvault.jobs.sync_set dsk --rescan
    python -m cardvault.jobs.sync_set --list
"""

import argparse
import asyncio
import logging

import httpx

from cardvault.config import settings
from cardvault.db.database import async_session_factory, init_db
from cardvault.db.operations import get_card_set
from cardvault.jobs.dispatch import LocalTaskDispatcher
from cardvault.jobs.download_images import AssetAcquisitionWorker
from cardvault.services.asset_store import AssetStore
from cardvault.services.catalog_client import CatalogClient, group_sets
from cardvault.services.notifier import InMemoryNotifier
from cardvault.services.progress import ProgressTracker, SetProgress, recompute_progress
from cardvault.services.reconciler import Reconciler, SetUnavailableError
from cardvault.services.set_admin import rescan_missing_images

logger = logging.getLogger(__name__)


async def run_sync(
    codes: list[str],
    *,
    include_children: bool = True,
    rescan: bool = False,
) -> dict[str, SetProgress]:
    """
    Reconcile sets and download their images.

    Args:
        codes: Set codes to download
        include_children: Also download child sets (promos, tokens, ...)
        rescan: Only resubmit cards still missing images in stored sets

    Returns:
        Dict mapping set code to its progress once all tasks have finished.
        Sets that could not be fetched are omitted.
    """
    await init_db()

    notifier = InMemoryNotifier()
    tracker = ProgressTracker(notifier)
    synced: list[str] = []

    async with (
        CatalogClient() as catalog,
        httpx.AsyncClient(
            headers={"User-Agent": settings.catalog_user_agent},
            follow_redirects=True,
            timeout=settings.request_timeout,
        ) as http,
    ):
        worker = AssetAcquisitionWorker(
            async_session_factory, http, AssetStore(), tracker, notifier
        )
        dispatcher = LocalTaskDispatcher(worker.acquire)
        reconciler = Reconciler(async_session_factory, catalog, dispatcher, tracker)

        for code in codes:
            if rescan:
                async with async_session_factory() as session:
                    handles = await rescan_missing_images(
                        session, catalog, dispatcher, code, tracker=tracker
                    )
                logger.info("Queued %d images for set %s", len(handles), code)
                synced.append(code.lower())
                continue

            try:
                result = await reconciler.reconcile_set(code, include_child_sets=include_children)
            except SetUnavailableError as e:
                logger.error("Could not download set %s: %s", code, e)
                continue

            synced.append(result.card_set.code)
            synced.extend(child.card_set.code for child in result.children)
            logger.info(
                "Set %s: %d new cards, %d images queued",
                result.card_set.code,
                result.cards_added,
                len(result.all_handles()),
            )

        outcomes = await dispatcher.join()

    failed = outcomes.count(False)
    logger.info("Image downloads finished: %d succeeded, %d failed", len(outcomes) - failed, failed)

    results: dict[str, SetProgress] = {}
    async with async_session_factory() as session:
        for code in synced:
            card_set = await get_card_set(session, code)
            if card_set is not None:
                results[code] = await recompute_progress(session, card_set)
    return results


async def list_sets() -> None:
    """Print catalog sets grouped under their parents."""
    async with CatalogClient() as catalog:
        groups = group_sets(await catalog.fetch_set_summaries())

    for group in groups:
        print(f"{group.parent.code:8} {group.parent.name} ({group.parent.card_count})")
        for child in group.children:
            print(f"  {child.code:6} {child.name} ({child.card_count})")


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Download card sets and images")
    parser.add_argument("codes", nargs="*", help="Set codes to download (e.g., dsk mkm)")
    parser.add_argument(
        "--no-children",
        action="store_true",
        help="Do not download child sets (promos, tokens, ...)",
    )
    parser.add_argument(
        "--rescan",
        action="store_true",
        help="Retry images missing from already downloaded sets",
    )
    parser.add_argument("--list", action="store_true", help="List catalog sets and exit")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.list:
        asyncio.run(list_sets())
        return

    if not args.codes:
        parser.error("at least one set code is required")

    results = asyncio.run(
        run_sync(args.codes, include_children=not args.no_children, rescan=args.rescan)
    )
    for code, progress in results.items():
        print(
            f"{code}: {progress.count}/{progress.target} images "
            f"({progress.percent}%) {progress.status.value}"
        )


if __name__ == "__main__":
    main()
