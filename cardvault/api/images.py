"""
Card image endpoint.

Serves downloaded images from the local asset store by file name.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from cardvault.config import IMAGES_SUBDIR
from cardvault.services.asset_store import AssetStore

router = APIRouter(prefix="/images", tags=["images"])

# Images never change once written under a card id
CACHE_CONTROL = "public, max-age=31536000"


def get_asset_store() -> AssetStore:
    return AssetStore()


@router.get("/{filename}", response_class=FileResponse)
async def get_image(
    filename: str,
    store: Annotated[AssetStore, Depends(get_asset_store)],
) -> FileResponse:
    """Return a stored card image, or 404 if it has not been downloaded."""
    relative = f"{IMAGES_SUBDIR}/{filename}"
    if "/" in filename or filename.startswith(".") or not store.exists(relative):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Image {filename} not found",
        )

    return FileResponse(
        store.absolute_path(relative),
        media_type="image/jpeg",
        headers={"Cache-Control": CACHE_CONTROL},
    )
