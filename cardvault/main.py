"""
CardVault HTTP app: health probes, set progress polling and stored images.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI

from cardvault.api import health_router, images_router, sets_router
from cardvault.config import settings
from cardvault.db.database import init_db


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Create missing tables before serving."""
    await init_db()
    yield


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("cardvault"),
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(sets_router)
app.include_router(images_router)
