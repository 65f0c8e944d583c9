"""
Streaming serve handler.

Resolves a request path to an object key, fetches the object and streams its
body to the client chunk by chunk. The next chunk is read from S3 only after
the ASGI server accepted the previous one, so a slow client slows the read.

Failures are not turned into responses here. The error is re-raised for the
host's exception handlers; for a missing key ``request.state.asset_status`` is
set to 404 first so the handler knows which status to answer with.
"""
import asyncio
import logging
from email.utils import format_datetime
from typing import Any, AsyncIterator, Dict, Mapping

from botocore.response import StreamingBody
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response, StreamingResponse

from s3offload.exceptions import is_no_such_key
from s3offload.storage.base import ServeHandler
from s3offload.storage.keys import serve_key
from s3offload.storage.s3_client import S3ObjectClient

logger = logging.getLogger(__name__)

STREAM_CHUNK_SIZE = 64 * 1024

STREAM_ERROR_MESSAGE = "Error streaming file from S3."


def object_headers(s3_response: Mapping[str, Any]) -> Dict[str, str]:
    """HTTP headers for a GetObject response; absent fields are omitted."""
    headers: Dict[str, str] = {}

    if s3_response.get("ContentType"):
        headers["Content-Type"] = s3_response["ContentType"]
    if s3_response.get("ContentLength") is not None:
        headers["Content-Length"] = str(s3_response["ContentLength"])
    if s3_response.get("ETag"):
        headers["ETag"] = s3_response["ETag"]
    if s3_response.get("CacheControl"):
        headers["Cache-Control"] = s3_response["CacheControl"]
    if s3_response.get("LastModified") is not None:
        headers["Last-Modified"] = format_datetime(s3_response["LastModified"], usegmt=True)

    return headers


async def iter_body(body: StreamingBody, chunk_size: int = STREAM_CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Yield the object body in chunks; the body is closed when iteration stops."""
    try:
        while True:
            chunk = await asyncio.to_thread(body.read, chunk_size)
            if not chunk:
                break
            yield chunk
    finally:
        body.close()


def request_path(request: Request) -> str:
    """Path relative to the serve mount, always starting with a slash."""
    if "path" in request.path_params:
        return "/" + request.path_params["path"]
    return request.url.path


def make_serve_handler(client: S3ObjectClient, path_prefix: str) -> ServeHandler:
    """
    Build the serve endpoint for one adapter.

    Args:
        client: Object store client
        path_prefix: Configured key prefix

    Returns:
        Async Starlette endpoint
    """
    async def serve_asset(request: Request) -> Response:
        key = serve_key(path_prefix, request_path(request))

        try:
            s3_response = await client.get(key)
        except Exception as e:
            if is_no_such_key(e):
                request.state.asset_status = 404
            raise

        body = s3_response.get("Body")
        if not isinstance(body, StreamingBody):
            logger.error(
                f"Object body is not streamable: {key}",
                extra={"event": "serve_stream_error", "key": key, "body_type": type(body).__name__},
            )
            if callable(getattr(body, "close", None)):
                body.close()
            headers = object_headers(s3_response)
            # Content-Length/Type describe the object, not the error text.
            headers.pop("Content-Length", None)
            headers.pop("Content-Type", None)
            return PlainTextResponse(STREAM_ERROR_MESSAGE, status_code=500, headers=headers)

        headers = object_headers(s3_response)
        return StreamingResponse(iter_body(body), headers=headers)

    return serve_asset
