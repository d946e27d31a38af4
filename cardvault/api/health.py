"""
Health check endpoints.

Liveness, plus a readiness probe covering the database and the image store.
"""

import os
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cardvault.config import IMAGES_SUBDIR, settings
from cardvault.db.database import get_session

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str | None = None
    storage: str | None = None


def _storage_state() -> str:
    images_dir = settings.storage_dir / IMAGES_SUBDIR
    # Not created until the first image is written
    if not images_dir.exists():
        return "empty"
    return "writable" if os.access(images_dir, os.W_OK) else "read-only"


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe. Does not check dependencies."""
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> HealthResponse:
    """
    Readiness probe.

    Returns 503 if the database is unreachable or image storage cannot be
    written to.
    """
    storage = _storage_state()
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="disconnected", storage=storage)

    if storage == "read-only":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="connected", storage=storage)

    return HealthResponse(status="ready", database="connected", storage=storage)
