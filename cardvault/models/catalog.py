"""
Normalized catalog records.

These are the only shapes the rest of the system sees; raw catalog
dicts are converted once at the client/normalizer boundary.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any


@dataclass(frozen=True, slots=True)
class SetDescriptor:
    """
    A set as described by the catalog.

    Attributes:
        code: Set code (e.g., "dsk", "mkm")
        name: Display name
        released_at: Release date, if known
        card_count: Number of cards the catalog lists for the set
        set_type: Catalog set type tag ("expansion", "promo", "token", ...)
        parent_set_code: Code of the parent set for grouped/child sets
    """

    code: str
    name: str
    released_at: date | None = None
    card_count: int = 0
    scryfall_uri: str | None = None
    set_type: str | None = None
    parent_set_code: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "SetDescriptor":
        released = data.get("released_at")
        return cls(
            code=data["code"],
            name=data.get("name") or data["code"],
            released_at=date.fromisoformat(released) if released else None,
            card_count=int(data.get("card_count") or 0),
            scryfall_uri=data.get("scryfall_uri"),
            set_type=data.get("set_type"),
            parent_set_code=data.get("parent_set_code"),
        )


@dataclass(frozen=True, slots=True)
class CardDraft:
    """
    A catalog card normalized for persistence.

    `image_uris` holds the front face references; `back_image_uris` is only
    set for double-faced cards.
    """

    id: str
    name: str
    mana_cost: str | None = None
    type_line: str | None = None
    oracle_text: str | None = None
    rarity: str | None = None
    collector_number: str | None = None
    image_uris: dict[str, str] | None = None
    back_image_uris: dict[str, str] | None = None
    foil: bool = False
    nonfoil: bool = True

    @property
    def double_faced(self) -> bool:
        return bool(self.back_image_uris)


@dataclass(frozen=True, slots=True)
class CardFetchResult:
    """
    Outcome of paging through a set's cards.

    `complete` is False when a page failed; `cards` then holds everything
    fetched before the failure.
    """

    cards: list[dict[str, Any]] = field(default_factory=list)
    complete: bool = True
    error: str | None = None


@dataclass(frozen=True, slots=True)
class SetGroup:
    """A top-level set with the child sets (promos, tokens, ...) released alongside it."""

    parent: SetDescriptor
    children: tuple[SetDescriptor, ...] = ()
