"""
Exception handlers for storage errors.

The serve handler re-raises object store errors instead of answering them;
these handlers turn them into responses. A status the serve handler stored in
``request.state.asset_status`` takes precedence over the default.
"""
import logging

from botocore.exceptions import ClientError
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from s3offload.exceptions import (
    AssetNotStoredError,
    EmptyObjectBodyError,
    StorageAdapterError,
    StorageConfigError,
    error_code,
)
from s3offload.utils.metrics import errors_total

logger = logging.getLogger(__name__)


async def storage_client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    """Handle object store errors forwarded by the serve handler."""
    status_code = getattr(request.state, "asset_status", status.HTTP_500_INTERNAL_SERVER_ERROR)
    code = error_code(exc)

    if status_code >= 500:
        errors_total.labels(error_type="storage").inc()
        logger.error(
            f"Object store error on {request.url.path}: {exc}",
            extra={"event": "storage_request_failed", "error_code": code, "path": request.url.path},
        )
    else:
        logger.info(
            f"Object not found: {request.url.path}",
            extra={"event": "storage_object_missing", "error_code": code, "path": request.url.path},
        )

    return JSONResponse(
        status_code=status_code,
        content={
            "error": code or type(exc).__name__,
            "message": "Not found" if status_code == status.HTTP_404_NOT_FOUND else "Storage error",
        },
    )


async def storage_adapter_error_handler(request: Request, exc: StorageAdapterError) -> JSONResponse:
    """Handle adapter-level errors."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if isinstance(exc, AssetNotStoredError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, EmptyObjectBodyError):
        status_code = status.HTTP_502_BAD_GATEWAY
    elif isinstance(exc, StorageConfigError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    logger.warning(
        f"Storage adapter error: {type(exc).__name__} - {exc}",
        extra={"event": "storage_adapter_error", "error_type": type(exc).__name__},
    )

    return JSONResponse(
        status_code=status_code,
        content={
            "error": type(exc).__name__,
            "message": str(exc),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the storage exception handlers to ``app``."""
    app.add_exception_handler(ClientError, storage_client_error_handler)
    app.add_exception_handler(StorageAdapterError, storage_adapter_error_handler)
