"""
Decorator for tracking object store call metrics and logs.
"""
import time
import functools
import logging

from s3offload.exceptions import is_not_found
from s3offload.utils.logging import log_storage_operation, log_storage_failure
from s3offload.utils.metrics import (
    storage_operations_total,
    storage_operation_duration_seconds,
)

logger = logging.getLogger(__name__)


def track_storage_operation(operation: str):
    """
    Async decorator to track object store calls.

    The wrapped method must be defined on an object with a ``bucket`` attribute
    and take the object key as its first positional argument.

    Args:
        operation: Operation name (put, get, head, delete)
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, key, *args, **kwargs):
            start_time = time.time()

            try:
                result = await func(self, key, *args, **kwargs)
            except Exception as e:
                duration = time.time() - start_time
                status = "not_found" if is_not_found(e) else "error"
                storage_operations_total.labels(operation=operation, status=status).inc()
                storage_operation_duration_seconds.labels(operation=operation).observe(duration)
                log_storage_failure(
                    logger,
                    operation,
                    e,
                    bucket=self.bucket,
                    key=key,
                    level=logging.DEBUG if status == "not_found" else logging.WARNING,
                    duration_ms=duration * 1000,
                )
                raise

            duration = time.time() - start_time
            storage_operations_total.labels(operation=operation, status="success").inc()
            storage_operation_duration_seconds.labels(operation=operation).observe(duration)
            log_storage_operation(
                logger,
                operation,
                bucket=self.bucket,
                key=key,
                duration_ms=duration * 1000,
            )
            return result

        return wrapper
    return decorator
