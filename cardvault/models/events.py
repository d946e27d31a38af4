"""
Event payloads published on the best-effort notification topics.
"""

from typing import Literal

from pydantic import BaseModel, Field

from cardvault.models.status import DownloadStatus


def set_progress_topic(card_set_id: int) -> str:
    return f"set_progress:{card_set_id}"


def card_image_topic(card_id: str) -> str:
    return f"card_image:{card_id}"


class SetProgressEvent(BaseModel):
    """Aggregate image download progress for one set."""

    type: Literal["progress_update", "completed"] = "progress_update"
    count: int = Field(..., ge=0, description="Cards with a downloaded front image")
    target: int = Field(..., ge=0, description="Card count the set must reach")
    percent: float = Field(..., ge=0, le=100)
    status: DownloadStatus


class CardImageEvent(BaseModel):
    """A card face image became available locally."""

    type: Literal["image_ready"] = "image_ready"
    card_id: str
    image_path: str | None = None
    back_image_path: str | None = None
