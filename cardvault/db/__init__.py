from cardvault.db.database import get_session, init_db
from cardvault.db.operations import (
    count_front_images,
    create_card_if_absent,
    create_card_set,
    delete_card_set,
    get_card,
    get_card_set,
    get_cards_for_set,
    get_cards_missing_front_image,
    update_card_set_metadata,
)

__all__ = [
    "count_front_images",
    "create_card_if_absent",
    "create_card_set",
    "delete_card_set",
    "get_card",
    "get_card_set",
    "get_cards_for_set",
    "get_cards_missing_front_image",
    "get_session",
    "init_db",
    "update_card_set_metadata",
]
