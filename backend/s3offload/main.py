"""
FastAPI application entry point.
Builds the storage adapter at startup and mounts its serve handler.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from s3offload import __version__
from s3offload.config import settings
from s3offload.api.errors import register_exception_handlers
from s3offload.api.router import api_router
from s3offload.middleware.metrics_middleware import MetricsMiddleware
from s3offload.storage import S3Offload
from s3offload.utils.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup/shutdown events.
    - Startup: Configure logging, build the storage adapter
    """
    configure_logging(settings.service_name, settings.log_level)

    # Fails fast when no bucket is configured
    storage = S3Offload(settings.storage_config())
    app.state.storage = storage
    app.state.serve_handler = storage.serve()
    logger.info(
        f"Storage ready: bucket={storage.settings.bucket} host={storage.settings.host}",
        extra={"event": "storage_ready", "bucket": storage.settings.bucket},
    )

    yield


async def serve_content(request: Request) -> Response:
    """Delegate to the serve handler of the adapter built at startup."""
    return await request.app.state.serve_handler(request)


# Create FastAPI app
app = FastAPI(
    title="S3 Offload",
    description="Object storage adapter for uploaded images",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(MetricsMiddleware, serve_mount_path=settings.serve_mount_path)
register_exception_handlers(app)

# Include API routes
app.include_router(api_router, prefix="/api")

# Stored images are served from here
app.add_route(
    f"{settings.serve_mount_path.rstrip('/')}/{{path:path}}",
    serve_content,
    methods=["GET", "HEAD"],
)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "S3 Offload",
        "version": __version__,
        "environment": settings.environment
    }


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
