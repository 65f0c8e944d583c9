"""
FastAPI dependencies for the storage adapter.
"""
from fastapi import HTTPException, Request, status

from s3offload.storage.base import StorageAdapter


def get_storage(request: Request) -> StorageAdapter:
    """
    Return the adapter built at startup.

    Raises:
        HTTPException: 503 if storage is not configured
    """
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage service not configured"
        )
    return storage
