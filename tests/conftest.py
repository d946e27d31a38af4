from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cardvault.db.database import make_engine
from cardvault.models.db import Base, CardDB, CardSetDB
from cardvault.models.status import DownloadStatus
from cardvault.services.asset_store import AssetStore

CATALOG = "https://api.scryfall.com"
IMAGES = "https://cards.scryfall.io"

RawCardFactory = Callable[..., dict[str, Any]]
SeedSet = Callable[..., Awaitable[CardSetDB]]


@pytest.fixture
async def async_engine(tmp_path: Path):
    """Create a file-backed SQLite engine so several sessions share one database."""
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(tmp_path: Path) -> AssetStore:
    return AssetStore(tmp_path / "storage")


@pytest.fixture
def set_payload() -> dict[str, Any]:
    """Catalog response for /sets/abc."""
    return {
        "object": "set",
        "code": "abc",
        "name": "Alpha Beta Charlie",
        "released_at": "2024-09-27",
        "card_count": 2,
        "scryfall_uri": "https://scryfall.com/sets/abc",
        "set_type": "expansion",
    }


@pytest.fixture
def make_raw_card() -> RawCardFactory:
    """Build raw catalog card records."""

    def _make(
        card_id: str,
        name: str | None = None,
        *,
        collector_number: str = "1",
        double_faced: bool = False,
        **extra: Any,
    ) -> dict[str, Any]:
        card: dict[str, Any] = {
            "object": "card",
            "id": card_id,
            "name": name or f"Card {card_id}",
            "mana_cost": "{1}{R}",
            "type_line": "Creature — Goblin",
            "oracle_text": "Haste",
            "rarity": "common",
            "collector_number": collector_number,
            "foil": True,
            "nonfoil": True,
        }
        if double_faced:
            card["card_faces"] = [
                {
                    "name": "Front",
                    "image_uris": {
                        "normal": f"{IMAGES}/normal/front/{card_id}.jpg",
                        "small": f"{IMAGES}/small/front/{card_id}.jpg",
                    },
                },
                {
                    "name": "Back",
                    "image_uris": {
                        "normal": f"{IMAGES}/normal/back/{card_id}.jpg",
                        "small": f"{IMAGES}/small/back/{card_id}.jpg",
                    },
                },
            ]
        else:
            card["image_uris"] = {
                "normal": f"{IMAGES}/normal/front/{card_id}.jpg",
                "small": f"{IMAGES}/small/front/{card_id}.jpg",
            }
        card.update(extra)
        return card

    return _make


@pytest.fixture
def seed_set(session_factory) -> SeedSet:
    """
    Store a set with cards directly in the database.

    `cards` maps card id to (image_path, double_faced).
    """

    async def _seed(
        code: str = "abc",
        *,
        card_count: int = 3,
        cards: dict[str, tuple[str | None, bool]] | None = None,
        status: DownloadStatus = DownloadStatus.DOWNLOADING,
    ) -> CardSetDB:
        async with session_factory() as session:
            card_set = CardSetDB(
                code=code,
                name=code.upper(),
                card_count=card_count,
                download_status=status,
            )
            session.add(card_set)
            await session.flush()

            for number, (card_id, (image_path, double_faced)) in enumerate(
                (cards or {}).items(), start=1
            ):
                session.add(
                    CardDB(
                        id=card_id,
                        card_set_id=card_set.id,
                        name=f"Card {card_id}",
                        collector_number=str(number),
                        image_uris={"normal": f"{IMAGES}/normal/front/{card_id}.jpg"},
                        back_image_uris=(
                            {"normal": f"{IMAGES}/normal/back/{card_id}.jpg"}
                            if double_faced
                            else None
                        ),
                        image_path=image_path,
                    )
                )
            await session.commit()
            return card_set

    return _seed
