from cardvault.api.health import router as health_router
from cardvault.api.images import router as images_router
from cardvault.api.sets import router as sets_router

__all__ = [
    "health_router",
    "images_router",
    "sets_router",
]
