"""
Set progress endpoint.

Progress events are best-effort and not replayed, so clients poll this
endpoint to resynchronize after connecting.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from cardvault.db.database import get_session
from cardvault.db.operations import get_card_set
from cardvault.models.status import DownloadStatus
from cardvault.services.progress import recompute_progress

router = APIRouter(prefix="/sets", tags=["sets"])


class SetProgressResponse(BaseModel):
    """Current image download progress for a set."""

    code: str
    name: str
    status: DownloadStatus
    count: int
    target: int
    percent: float


@router.get("/{code}/progress", response_model=SetProgressResponse)
async def get_set_progress(
    code: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SetProgressResponse:
    """Recompute and return a set's download progress."""
    card_set = await get_card_set(session, code.lower())
    if card_set is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Set {code} has not been downloaded",
        )

    progress = await recompute_progress(session, card_set)
    return SetProgressResponse(
        code=card_set.code,
        name=card_set.name,
        status=progress.status,
        count=progress.count,
        target=progress.target,
        percent=progress.percent,
    )
