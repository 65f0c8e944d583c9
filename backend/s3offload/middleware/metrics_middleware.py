"""
ASGI middleware for tracking HTTP request metrics.
Records request count, duration, and errors.
"""
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from s3offload.utils.metrics import http_requests_total, http_request_duration_seconds, errors_total


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Middleware to track HTTP metrics for Prometheus.

    Every stored asset has its own URL, so paths under the serve mount are
    collapsed to one label value.
    """

    def __init__(self, app, serve_mount_path: str = "/content/images"):
        super().__init__(app)
        self.serve_mount_path = serve_mount_path.rstrip("/")

    async def dispatch(self, request: Request, call_next):
        """Process request and record metrics."""
        path = request.url.path

        # Skip metrics endpoint to avoid recursion
        if path == "/metrics":
            return await call_next(request)

        start_time = time.time()
        method = request.method
        normalized_path = self._normalize_path(path)

        try:
            response = await call_next(request)
        except Exception:
            errors_total.labels(error_type="exception").inc()
            raise

        status_code = response.status_code
        http_requests_total.labels(
            method=method,
            path=normalized_path,
            status=status_code
        ).inc()
        # Time to first byte for streamed responses
        http_request_duration_seconds.labels(
            method=method,
            path=normalized_path
        ).observe(time.time() - start_time)

        if status_code >= 400:
            errors_total.labels(error_type=f"{status_code // 100}xx").inc()

        return response

    def _normalize_path(self, path: str) -> str:
        if self.serve_mount_path and path.startswith(self.serve_mount_path + "/"):
            return self.serve_mount_path + "/{asset}"
        return path
