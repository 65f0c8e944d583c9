"""
Health check endpoint.
Verifies the bucket is reachable with the configured credentials.
"""
from fastapi import APIRouter, HTTPException, Request

router = APIRouter()


@router.get("")
async def health_check(request: Request):
    """
    Health check endpoint.
    Returns status of the object store connection.
    """
    health_status = {
        "status": "healthy",
        "storage": "unknown"
    }

    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        health_status["storage"] = "not configured"
        health_status["status"] = "unhealthy"
    else:
        try:
            await storage.client.head_bucket()
            health_status["storage"] = "connected"
        except Exception as e:
            health_status["storage"] = f"error: {str(e)}"
            health_status["status"] = "unhealthy"

    if health_status["status"] == "unhealthy":
        raise HTTPException(status_code=503, detail=health_status)

    return health_status
