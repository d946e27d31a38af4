"""
Raw catalog card -> CardDraft.

Double-faced cards carry no top-level `image_uris`; each entry of
`card_faces` has its own. Face 0 is always the front.
"""

from typing import Any

from cardvault.models.catalog import CardDraft

ImageRefs = dict[str, str]


def extract_image_refs(card_data: dict[str, Any]) -> tuple[ImageRefs | None, ImageRefs | None]:
    """
    Resolve front and back image references for a raw card.

    Returns:
        (front, back). `back` is only set for double-faced cards; a
        top-level `image_uris` map always wins over face-level maps.
    """
    top_level = card_data.get("image_uris")
    if top_level:
        return dict(top_level), None

    faces = card_data.get("card_faces") or []
    if not faces:
        return None, None

    front = faces[0].get("image_uris")
    back = faces[1].get("image_uris") if len(faces) > 1 else None
    return (
        dict(front) if front else None,
        dict(back) if back else None,
    )


def normalize(card_data: dict[str, Any]) -> CardDraft:
    """Convert a raw catalog card record into a CardDraft."""
    front, back = extract_image_refs(card_data)
    return CardDraft(
        id=card_data["id"],
        name=card_data["name"],
        mana_cost=card_data.get("mana_cost"),
        type_line=card_data.get("type_line"),
        oracle_text=card_data.get("oracle_text"),
        rarity=card_data.get("rarity"),
        collector_number=card_data.get("collector_number"),
        image_uris=front,
        back_image_uris=back,
        foil=bool(card_data.get("foil", False)),
        nonfoil=bool(card_data.get("nonfoil", True)),
    )
