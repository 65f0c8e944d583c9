"""
Production logging utility for structured JSON logging.

Provides event-specific logging functions with mandatory fields:
- timestamp (ISO8601)
- level
- service
- event

Optional fields (included when applicable):
- bucket
- key
- operation
- duration_ms

Usage:
    from s3offload.utils.logging import configure_logging, log_storage_operation

    configure_logging('s3-offload', 'INFO')
    log_storage_operation(logger, 'put', bucket='media', key='2024/01/x.png', duration_ms=12.5)
"""
import logging
import sys
from typing import Optional, Dict, Any
from pythonjsonlogger import jsonlogger


class StructuredLogger:
    """Structured JSON logger with mandatory fields."""

    _service_name = None
    _configured = False

    @classmethod
    def configure(cls, service_name: str, log_level: str = "INFO"):
        """
        Configure structured JSON logging for the application.

        Args:
            service_name: Service identifier
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        if cls._configured:
            return

        cls._service_name = service_name

        # Remove default handlers
        root_logger = logging.getLogger()
        root_logger.handlers = []

        formatter = jsonlogger.JsonFormatter(
            '%(timestamp)s %(level)s %(name)s %(message)s',
            timestamp=True,
            json_ensure_ascii=False
        )

        # Console handler (for container logs)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)

        root_logger.addHandler(handler)
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

        # Add service name to all log records via filter
        class ServiceFilter(logging.Filter):
            def filter(self, record):
                record.service = cls._service_name
                return True

        handler.addFilter(ServiceFilter())

        # botocore is chatty at DEBUG; keep it at WARNING unless asked otherwise
        logging.getLogger("botocore").setLevel(logging.WARNING)
        cls._configured = True


def _build_log_extra(
    event: str,
    bucket: Optional[str] = None,
    key: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
) -> Dict[str, Any]:
    """
    Build extra fields for structured logging.

    Args:
        event: Event name (mandatory)
        bucket: Optional bucket name
        key: Optional object key
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields

    Returns:
        Dictionary of extra fields
    """
    extra = {
        "event": event,
        **kwargs
    }

    if bucket:
        extra["bucket"] = bucket
    if key:
        extra["key"] = key
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)

    return extra


def log_storage_operation(
    logger: logging.Logger,
    operation: str,
    bucket: Optional[str] = None,
    key: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log a completed object-store call.

    Args:
        logger: Logger instance
        operation: put, get, head or delete (required)
        bucket: Bucket name
        key: Object key
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="storage_operation",
        bucket=bucket,
        key=key,
        duration_ms=duration_ms,
        operation=operation,
        **kwargs
    )

    logger.debug(f"Storage {operation}: {key}", extra=extra)


def log_storage_failure(
    logger: logging.Logger,
    operation: str,
    error: BaseException,
    bucket: Optional[str] = None,
    key: Optional[str] = None,
    level: int = logging.ERROR,
    include_traceback: bool = False,
    **kwargs
):
    """
    Log a failed object-store call.

    Args:
        logger: Logger instance
        operation: Operation name (required)
        error: The raised error (required)
        bucket: Bucket name
        key: Object key
        level: Log level (not-found lookups are usually logged lower)
        include_traceback: Whether to include the stack trace
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="storage_failure",
        bucket=bucket,
        key=key,
        operation=operation,
        error=str(error),
        error_type=type(error).__name__,
        **kwargs
    )

    message = f"Storage {operation} failed: {key} - {error}"

    if include_traceback:
        logger.log(level, message, extra=extra, exc_info=error)
    else:
        logger.log(level, message, extra=extra)


def configure_logging(service_name: str, log_level: str = "INFO"):
    """Configure logging (alias for StructuredLogger.configure)."""
    StructuredLogger.configure(service_name, log_level)
