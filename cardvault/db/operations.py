"""
Database operations for card sets and cards.

Creation is always create-if-absent: a row that already exists is returned
untouched, never overwritten.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cardvault.models.catalog import CardDraft, SetDescriptor
from cardvault.models.db import CardDB, CardSetDB

# --- Card Set Operations ---


async def get_card_set(session: AsyncSession, code: str) -> CardSetDB | None:
    """
    Get a card set by its catalog code.

    Returns None if the set has not been downloaded.
    """
    result = await session.execute(select(CardSetDB).where(CardSetDB.code == code))
    return result.scalar_one_or_none()


async def create_card_set(session: AsyncSession, descriptor: SetDescriptor) -> CardSetDB:
    """
    Create a new card set from catalog details.

    Raises IntegrityError if the code already exists.
    """
    card_set = CardSetDB(
        code=descriptor.code,
        name=descriptor.name,
        released_at=descriptor.released_at,
        card_count=descriptor.card_count,
        scryfall_uri=descriptor.scryfall_uri,
        set_type=descriptor.set_type,
        parent_set_code=descriptor.parent_set_code,
    )
    session.add(card_set)
    await session.flush()
    return card_set


async def update_card_set_metadata(
    session: AsyncSession, card_set: CardSetDB, descriptor: SetDescriptor
) -> CardSetDB:
    """Refresh display metadata and target count from catalog details."""
    card_set.name = descriptor.name
    card_set.card_count = descriptor.card_count
    card_set.released_at = descriptor.released_at
    card_set.set_type = descriptor.set_type
    card_set.parent_set_code = descriptor.parent_set_code
    await session.flush()
    return card_set


# --- Card Operations ---


async def get_card(session: AsyncSession, card_id: str) -> CardDB | None:
    """Get a card with its owning set loaded."""
    result = await session.execute(
        select(CardDB).where(CardDB.id == card_id).options(selectinload(CardDB.card_set))
    )
    return result.scalar_one_or_none()


async def create_card_if_absent(
    session: AsyncSession, card_set: CardSetDB, draft: CardDraft
) -> tuple[CardDB, bool]:
    """
    Create a card unless one with the same catalog id exists.

    Returns:
        Tuple of (card, created). Existing cards are returned unchanged.
    """
    existing = await session.get(CardDB, draft.id)
    if existing:
        return existing, False

    card = CardDB(
        id=draft.id,
        card_set_id=card_set.id,
        name=draft.name,
        collector_number=draft.collector_number,
        rarity=draft.rarity,
        mana_cost=draft.mana_cost,
        type_line=draft.type_line,
        oracle_text=draft.oracle_text,
        image_uris=draft.image_uris,
        back_image_uris=draft.back_image_uris,
        foil=draft.foil,
        nonfoil=draft.nonfoil,
    )
    session.add(card)
    await session.flush()
    return card, True


async def get_cards_for_set(session: AsyncSession, card_set: CardSetDB) -> list[CardDB]:
    """Get all cards in a set ordered by collector number."""
    result = await session.execute(
        select(CardDB).where(CardDB.card_set_id == card_set.id).order_by(CardDB.collector_number)
    )
    return list(result.scalars().all())


async def get_cards_missing_front_image(
    session: AsyncSession, card_set: CardSetDB
) -> list[CardDB]:
    """Get cards in a set whose front image has not been downloaded."""
    result = await session.execute(
        select(CardDB).where(
            CardDB.card_set_id == card_set.id,
            CardDB.image_path.is_(None),
        )
    )
    return list(result.scalars().all())


async def count_front_images(session: AsyncSession, card_set_id: int) -> int:
    """Count cards in a set with a downloaded front image."""
    result = await session.execute(
        select(func.count())
        .select_from(CardDB)
        .where(CardDB.card_set_id == card_set_id, CardDB.image_path.is_not(None))
    )
    return int(result.scalar_one())


async def delete_card_set(session: AsyncSession, code: str) -> list[str] | None:
    """
    Delete a card set and all of its cards.

    Returns:
        The local image paths owned by the deleted cards, or None if the
        set was not found. Removing the files is left to the caller.
    """
    result = await session.execute(
        select(CardSetDB).where(CardSetDB.code == code).options(selectinload(CardSetDB.cards))
    )
    card_set = result.scalar_one_or_none()
    if not card_set:
        return None

    paths = [
        path
        for card in card_set.cards
        for path in (card.image_path, card.back_image_path)
        if path
    ]
    await session.delete(card_set)
    await session.flush()
    return paths
