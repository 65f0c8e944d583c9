"""
Image endpoints backed by the storage adapter.

- POST   /images/upload  - store an uploaded image, return its public URL
- GET    /images/exists  - check whether a file is stored
- GET    /images/content - return a stored file by its public URL
- DELETE /images         - remove a stored file (best effort)
"""
import asyncio
import logging
import tempfile
from pathlib import Path, PurePosixPath
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import Response
from pydantic import BaseModel, Field

from s3offload.api.dependencies import get_storage
from s3offload.storage.base import ImageAsset, StorageAdapter

logger = logging.getLogger(__name__)

router = APIRouter()

ALLOWED_IMAGE_TYPES = [
    'image/jpeg', 'image/jpg', 'image/png', 'image/gif',
    'image/webp', 'image/svg+xml', 'image/x-icon', 'image/vnd.microsoft.icon',
]


# ============================================================================
# Response Schemas
# ============================================================================

class UploadResponse(BaseModel):
    """Response schema for an image upload."""
    url: str = Field(..., description="Public URL of the stored image")


class ExistsResponse(BaseModel):
    exists: bool


class DeleteResponse(BaseModel):
    deleted: bool


# ============================================================================
# Endpoints
# ============================================================================

@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_image(
    file: UploadFile = File(...),
    target_dir: Optional[str] = Query(None, description="Directory override"),
    storage: StorageAdapter = Depends(get_storage),
):
    """
    Store an uploaded image.

    The upload is spooled to a temporary file first, the same shape the
    adapter receives from the host's own upload pipeline.
    """
    content_type = (file.content_type or "").lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid content type '{file.content_type}' for image"
        )

    name = file.filename or "upload"
    data = await file.read()

    with tempfile.TemporaryDirectory() as tmp_dir:
        local_path = Path(tmp_dir) / f"upload{PurePosixPath(name).suffix}"
        await asyncio.to_thread(local_path.write_bytes, data)

        url = await storage.save(
            ImageAsset(path=str(local_path), name=name, type=content_type),
            target_dir,
        )

    return UploadResponse(url=url)


@router.get("/exists", response_model=ExistsResponse)
async def image_exists(
    file_name: str = Query(...),
    target_dir: Optional[str] = Query(None),
    storage: StorageAdapter = Depends(get_storage),
):
    return ExistsResponse(exists=await storage.exists(file_name, target_dir))


@router.get("/content")
async def image_content(
    url: str = Query(..., description="Public URL returned by upload"),
    storage: StorageAdapter = Depends(get_storage),
):
    """Return a stored image, fully buffered."""
    data = await storage.read(url)
    return Response(content=data, media_type="application/octet-stream")


@router.delete("", response_model=DeleteResponse)
async def delete_image(
    file_name: str = Query(...),
    target_dir: Optional[str] = Query(None),
    storage: StorageAdapter = Depends(get_storage),
):
    return DeleteResponse(deleted=await storage.delete(file_name, target_dir))
