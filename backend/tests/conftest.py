"""
Test configuration and fixtures.
The object store is replaced by mocks; no network access is needed.
"""
import io
from datetime import datetime, timezone
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from botocore.exceptions import ClientError
from botocore.response import StreamingBody
from httpx import AsyncClient, ASGITransport

from s3offload.config import S3EnvOverrides
from s3offload.storage import S3Offload
from s3offload.storage.paths import DatedPathResolver

ENV_OVERRIDES = [
    "AWS_DEFAULT_REGION",
    "GHOST_STORAGE_ADAPTER_S3_PATH_BUCKET",
    "GHOST_STORAGE_ADAPTER_S3_PATH_PREFIX",
    "GHOST_STORAGE_ADAPTER_S3_ENDPOINT",
    "GHOST_STORAGE_ADAPTER_S3_SSE",
    "GHOST_STORAGE_ADAPTER_S3_FORCE_PATH_STYLE",
    "GHOST_STORAGE_ADAPTER_S3_ASSET_HOST",
    "GHOST_STORAGE_ADAPTER_S3_ACL",
]

FIXED_NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def client_error(code: str, operation: str = "GetObject", status: int = 400) -> ClientError:
    """Build a botocore ClientError with the given error code."""
    return ClientError(
        {
            "Error": {"Code": code, "Message": f"{code} error"},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


def streaming_body(data: bytes) -> StreamingBody:
    return StreamingBody(io.BytesIO(data), len(data))


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Make sure no adapter override leaks in from the developer's shell."""
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mock_client() -> MagicMock:
    """Mock object store client."""
    client = MagicMock()
    client.bucket = "b"
    client.put = AsyncMock(return_value={"ETag": '"abc"'})
    client.head = AsyncMock(return_value={"ContentLength": 3})
    client.get = AsyncMock(return_value={"Body": streaming_body(b"abc")})
    client.delete = AsyncMock(return_value={})
    client.head_bucket = AsyncMock(return_value={})
    return client


@pytest.fixture
def mock_paths() -> MagicMock:
    """Mock naming collaborator returning a fixed unique path."""
    paths = MagicMock()
    paths.get_target_dir = MagicMock(return_value="2024/01")
    paths.get_unique_file_name = AsyncMock(return_value="2024/01/x.png")
    return paths


@pytest.fixture
def storage(mock_client, mock_paths) -> S3Offload:
    """Adapter for bucket "b" in us-east-1 with mocked collaborators."""
    return S3Offload(
        {"bucket": "b", "region": "us-east-1"},
        paths=mock_paths,
        client=mock_client,
        env=S3EnvOverrides(),
    )


@pytest.fixture
def prefixed_storage(mock_client) -> S3Offload:
    """Adapter with key prefix "uploads" and the default dated path resolver."""
    adapter = S3Offload(
        {"bucket": "b", "region": "us-east-1", "pathPrefix": "/uploads"},
        client=mock_client,
        env=S3EnvOverrides(),
    )
    adapter._paths = DatedPathResolver(adapter.exists, clock=lambda: FIXED_NOW)
    return adapter


@pytest.fixture
async def client(prefixed_storage) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client against the app with the adapter installed."""
    from s3offload.main import app

    app.state.storage = prefixed_storage
    app.state.serve_handler = prefixed_storage.serve()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    del app.state.storage
    del app.state.serve_handler
