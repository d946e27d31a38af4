from cardvault.models.catalog import CardDraft, CardFetchResult, SetDescriptor, SetGroup
from cardvault.models.events import (
    CardImageEvent,
    SetProgressEvent,
    card_image_topic,
    set_progress_topic,
)
from cardvault.models.status import DownloadStatus, advance_status

__all__ = [
    "CardDraft",
    "CardFetchResult",
    "CardImageEvent",
    "DownloadStatus",
    "SetDescriptor",
    "SetGroup",
    "SetProgressEvent",
    "advance_status",
    "card_image_topic",
    "set_progress_topic",
]
