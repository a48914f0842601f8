"""Stored image routes."""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from api.deps import get_image_manager
from pipeline.image_manager import ImageManager

router = APIRouter()

# Processed images never change under the same name
CACHE_CONTROL = "public, max-age=31536000, immutable"


@router.get("/{path:path}")
async def get_upload(path: str, images: ImageManager = Depends(get_image_manager)):
    """Serve a stored, processed question image."""
    try:
        file_path = images.resolve(path)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    if not file_path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    return FileResponse(
        file_path,
        media_type=images.content_type(file_path.name),
        headers={"Cache-Control": CACHE_CONTROL},
    )
