"""
API router aggregator.
Includes all route modules.
"""
from fastapi import APIRouter
from s3offload.api import health, images

api_router = APIRouter()

# Include route modules
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(images.router, prefix="/images", tags=["images"])
