"""Tests for set progress recomputation and publishing."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from cardvault.db.operations import get_card_set
from cardvault.models.status import DownloadStatus
from cardvault.services.notifier import InMemoryNotifier
from cardvault.services.progress import ProgressTracker, SetProgress, progress_percent


@pytest.fixture
def notifier() -> InMemoryNotifier:
    return InMemoryNotifier()


@pytest.fixture
def tracker(notifier: InMemoryNotifier) -> ProgressTracker:
    return ProgressTracker(notifier)


class TestProgressPercent:
    def test_rounds_to_two_places(self) -> None:
        assert progress_percent(1, 3) == pytest.approx(33.33)

    def test_zero_target(self) -> None:
        assert progress_percent(0, 0) == 0.0

    def test_caps_at_hundred(self) -> None:
        assert progress_percent(5, 4) == 100.0


class TestRecompute:
    async def test_recompute_does_not_write(
        self, session: AsyncSession, seed_set, tracker: ProgressTracker
    ) -> None:
        """Recompute reads persisted cards and leaves the set untouched."""
        await seed_set(cards={"c-1": ("card_images/c-1.jpg", False), "c-2": (None, False)})
        card_set = await get_card_set(session, "abc")

        progress = await tracker.recompute(session, card_set)

        assert progress.count == 1
        assert progress.target == 3
        assert progress.percent == pytest.approx(33.33)
        assert card_set.images_downloaded == 0


class TestUpdate:
    async def test_update_persists_count(
        self, session: AsyncSession, seed_set, tracker: ProgressTracker
    ) -> None:
        await seed_set(cards={"c-1": ("card_images/c-1.jpg", False), "c-2": (None, False)})
        card_set = await get_card_set(session, "abc")

        progress = await tracker.update(session, card_set)

        assert card_set.images_downloaded == 1
        assert progress.status == DownloadStatus.DOWNLOADING
        assert progress.just_completed is False

    async def test_update_completes_set(
        self, session: AsyncSession, seed_set, tracker: ProgressTracker
    ) -> None:
        await seed_set(
            card_count=2,
            cards={"c-1": ("card_images/c-1.jpg", False), "c-2": ("card_images/c-2.jpg", False)},
        )
        card_set = await get_card_set(session, "abc")

        progress = await tracker.update(session, card_set)

        assert card_set.download_status == DownloadStatus.COMPLETED
        assert progress.just_completed is True

    async def test_count_clamped_to_target(
        self, session: AsyncSession, seed_set, tracker: ProgressTracker
    ) -> None:
        """More stored cards than the target never pushes the counter past it."""
        await seed_set(
            card_count=1,
            cards={"c-1": ("card_images/c-1.jpg", False), "c-2": ("card_images/c-2.jpg", False)},
        )
        card_set = await get_card_set(session, "abc")

        progress = await tracker.update(session, card_set)

        assert card_set.images_downloaded == 1
        assert progress.count == 1
        assert progress.percent == 100.0

    async def test_completed_set_stays_completed(
        self, session: AsyncSession, seed_set, tracker: ProgressTracker
    ) -> None:
        """An already completed set is not re-completed or regressed."""
        await seed_set(
            card_count=1,
            cards={"c-1": ("card_images/c-1.jpg", False)},
            status=DownloadStatus.COMPLETED,
        )
        card_set = await get_card_set(session, "abc")

        progress = await tracker.update(session, card_set)

        assert progress.status == DownloadStatus.COMPLETED
        assert progress.just_completed is False


class TestPublish:
    async def test_publishes_progress(
        self, notifier: InMemoryNotifier, tracker: ProgressTracker
    ) -> None:
        progress = SetProgress(count=1, target=3, percent=33.33, status=DownloadStatus.DOWNLOADING)

        async with notifier.subscribe("set_progress:7") as queue:
            await tracker.publish(7, progress)

            assert queue.get_nowait() == {
                "type": "progress_update",
                "count": 1,
                "target": 3,
                "percent": 33.33,
                "status": "downloading",
            }
            assert queue.empty()

    async def test_publishes_completion_once(
        self, notifier: InMemoryNotifier, tracker: ProgressTracker
    ) -> None:
        progress = SetProgress(
            count=3,
            target=3,
            percent=100.0,
            status=DownloadStatus.COMPLETED,
            just_completed=True,
        )

        async with notifier.subscribe("set_progress:7") as queue:
            await tracker.publish(7, progress)

            assert queue.get_nowait()["type"] == "progress_update"
            completed = queue.get_nowait()
            assert completed["type"] == "completed"
            assert completed["status"] == "completed"
            assert completed["percent"] == 100.0
