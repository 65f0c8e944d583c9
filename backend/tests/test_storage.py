"""
Tests for the S3Offload adapter operations.
"""
import logging
from unittest.mock import AsyncMock

import pytest
from botocore.exceptions import ClientError

from s3offload.exceptions import AssetNotStoredError, EmptyObjectBodyError
from s3offload.storage import ImageAsset, S3Offload
from s3offload.storage.paths import DatedPathResolver, sanitize_file_name

from tests.conftest import FIXED_NOW, client_error, streaming_body

HOST = "https://s3.us-east-1.amazonaws.com/b"


@pytest.fixture
def image_file(tmp_path):
    path = tmp_path / "x"
    path.write_bytes(b"\x89PNG\r\n\x1a\n")
    return path


class TestSave:
    """Tests for S3Offload.save."""

    @pytest.mark.asyncio
    async def test_save_returns_public_url(self, storage, mock_client, image_file):
        url = await storage.save(ImageAsset(path=str(image_file), name="x.png", type="image/png"))

        assert url == "https://s3.us-east-1.amazonaws.com/b/2024/01/x.png"
        mock_client.put.assert_awaited_once_with(
            "2024/01/x.png",
            b"\x89PNG\r\n\x1a\n",
            content_type="image/png",
            acl="public-read",
            cache_control="max-age=2592000",
            server_side_encryption=None,
        )

    @pytest.mark.asyncio
    async def test_url_key_matches_put_key(self, storage, mock_client, image_file):
        url = await storage.save(ImageAsset(path=str(image_file), name="x.png", type="image/png"))

        put_key = mock_client.put.await_args.args[0]
        assert storage.key_for(url) == put_key

    @pytest.mark.asyncio
    async def test_save_uses_host_target_dir(self, storage, mock_paths, image_file):
        asset = ImageAsset(path=str(image_file), name="x.png", type="image/png")

        await storage.save(asset)

        mock_paths.get_target_dir.assert_called_once_with("")
        mock_paths.get_unique_file_name.assert_awaited_once_with(asset, "2024/01")

    @pytest.mark.asyncio
    async def test_save_with_explicit_target_dir(self, storage, mock_paths, image_file):
        asset = ImageAsset(path=str(image_file), name="x.png", type="image/png")

        await storage.save(asset, "custom/dir")

        mock_paths.get_target_dir.assert_not_called()
        mock_paths.get_unique_file_name.assert_awaited_once_with(asset, "custom/dir")

    @pytest.mark.asyncio
    async def test_save_strips_leading_slash(self, storage, mock_client, mock_paths, image_file):
        mock_paths.get_unique_file_name = AsyncMock(return_value="/2024/01/x.png")

        url = await storage.save(ImageAsset(path=str(image_file), name="x.png", type="image/png"))

        assert mock_client.put.await_args.args[0] == "2024/01/x.png"
        assert url == f"{HOST}/2024/01/x.png"

    @pytest.mark.asyncio
    async def test_save_passes_encryption_and_acl(self, mock_client, mock_paths, image_file, monkeypatch):
        monkeypatch.setenv("GHOST_STORAGE_ADAPTER_S3_SSE", "AES256")
        adapter = S3Offload({"bucket": "b", "acl": "private"}, paths=mock_paths, client=mock_client)

        await adapter.save(ImageAsset(path=str(image_file), name="x.png", type="image/png"))

        kwargs = mock_client.put.await_args.kwargs
        assert kwargs["server_side_encryption"] == "AES256"
        assert kwargs["acl"] == "private"

    @pytest.mark.asyncio
    async def test_save_propagates_remote_error(self, storage, mock_client, image_file):
        error = client_error("AccessDenied", "PutObject", 403)
        mock_client.put.side_effect = error

        with pytest.raises(ClientError) as exc_info:
            await storage.save(ImageAsset(path=str(image_file), name="x.png", type="image/png"))

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_save_missing_local_file(self, storage, mock_client, tmp_path):
        with pytest.raises(FileNotFoundError):
            await storage.save(ImageAsset(path=str(tmp_path / "nope"), name="x.png", type="image/png"))

        mock_client.put.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_save_with_default_resolver(self, prefixed_storage, mock_client, image_file):
        """The default resolver probes exists() and suffixes taken names."""
        mock_client.head.side_effect = [
            {"ContentLength": 1},
            client_error("404", "HeadObject", 404),
        ]

        url = await prefixed_storage.save(
            ImageAsset(path=str(image_file), name="my photo.png", type="image/png")
        )

        assert url == f"{HOST}/uploads/2024/01/my-photo-1.png"
        head_keys = [call.args[0] for call in mock_client.head.await_args_list]
        assert head_keys == ["uploads/2024/01/my-photo.png", "uploads/2024/01/my-photo-1.png"]


class TestExists:
    """Tests for S3Offload.exists."""

    @pytest.mark.asyncio
    async def test_exists_true(self, storage, mock_client):
        assert await storage.exists("x.png", "2024/01") is True
        mock_client.head.assert_awaited_once_with("2024/01/x.png")

    @pytest.mark.asyncio
    async def test_exists_without_target_dir(self, storage, mock_client):
        await storage.exists("x.png")
        mock_client.head.assert_awaited_once_with("x.png")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["404", "NotFound", "NoSuchKey"])
    async def test_exists_false_on_not_found(self, storage, mock_client, code):
        mock_client.head.side_effect = client_error(code, "HeadObject", 404)

        assert await storage.exists("x.png", "2024/01") is False

    @pytest.mark.asyncio
    async def test_exists_propagates_other_errors(self, storage, mock_client):
        mock_client.head.side_effect = client_error("403", "HeadObject", 403)

        with pytest.raises(ClientError):
            await storage.exists("x.png", "2024/01")

    @pytest.mark.asyncio
    async def test_exists_propagates_transport_errors(self, storage, mock_client):
        mock_client.head.side_effect = ConnectionError("reset")

        with pytest.raises(ConnectionError):
            await storage.exists("x.png")


class TestDelete:
    """Tests for S3Offload.delete."""

    @pytest.mark.asyncio
    async def test_delete_success(self, storage, mock_client):
        assert await storage.delete("x.png", "2024/01") is True
        mock_client.delete.assert_awaited_once_with("2024/01/x.png")

    @pytest.mark.asyncio
    async def test_delete_defaults_to_host_target_dir(self, prefixed_storage, mock_client):
        await prefixed_storage.delete("x.png")
        mock_client.delete.assert_awaited_once_with("uploads/2024/01/x.png")

    @pytest.mark.asyncio
    async def test_delete_false_on_remote_error(self, storage, mock_client):
        mock_client.delete.side_effect = client_error("AccessDenied", "DeleteObject", 403)

        assert await storage.delete("x.png", "2024/01") is False

    @pytest.mark.asyncio
    async def test_delete_false_on_transport_error(self, storage, mock_client):
        mock_client.delete.side_effect = ConnectionError("reset")

        assert await storage.delete("x.png", "2024/01") is False

    @pytest.mark.asyncio
    async def test_delete_failure_logged_at_debug(self, storage, mock_client, caplog):
        mock_client.delete.side_effect = client_error("AccessDenied", "DeleteObject", 403)

        with caplog.at_level(logging.DEBUG, logger="s3offload.storage.s3_offload"):
            await storage.delete("x.png", "2024/01")

        records = [r for r in caplog.records if getattr(r, "event", None) == "storage_failure"]
        assert len(records) == 1
        assert records[0].levelno == logging.DEBUG
        assert records[0].key == "2024/01/x.png"


class TestRead:
    """Tests for S3Offload.read."""

    @pytest.mark.asyncio
    async def test_read_returns_body(self, storage, mock_client):
        mock_client.get.return_value = {"Body": streaming_body(b"image bytes")}

        data = await storage.read(f"{HOST}/2024/01/x.png")

        assert data == b"image bytes"
        mock_client.get.assert_awaited_once_with("2024/01/x.png")

    @pytest.mark.asyncio
    async def test_read_strips_trailing_slash(self, storage, mock_client):
        await storage.read(f"{HOST}/2024/01/x.png/")
        mock_client.get.assert_awaited_once_with("2024/01/x.png")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", [
        "https://cdn.example.com/2024/01/x.png",
        "/2024/01/x.png",
        "",
        None,
    ])
    async def test_read_rejects_foreign_path_before_network(self, storage, mock_client, path):
        with pytest.raises(AssetNotStoredError):
            await storage.read(path)

        mock_client.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_read_empty_body(self, storage, mock_client):
        mock_client.get.return_value = {"ContentLength": 0}

        with pytest.raises(EmptyObjectBodyError):
            await storage.read(f"{HOST}/x.png")

    @pytest.mark.asyncio
    async def test_read_propagates_not_found(self, storage, mock_client):
        mock_client.get.side_effect = client_error("NoSuchKey", "GetObject", 404)

        with pytest.raises(ClientError):
            await storage.read(f"{HOST}/x.png")


class TestDatedPathResolver:
    """Tests for the default naming collaborator."""

    def test_target_dir_with_prefix(self):
        resolver = DatedPathResolver(AsyncMock(return_value=False), clock=lambda: FIXED_NOW)
        assert resolver.get_target_dir("uploads") == "uploads/2024/01"

    def test_target_dir_without_prefix(self):
        resolver = DatedPathResolver(AsyncMock(return_value=False), clock=lambda: FIXED_NOW)
        assert resolver.get_target_dir() == "2024/01"

    @pytest.mark.asyncio
    async def test_unique_name_first_free(self):
        exists = AsyncMock(return_value=False)
        resolver = DatedPathResolver(exists)

        name = await resolver.get_unique_file_name(
            ImageAsset(path="/tmp/x", name="x.png", type="image/png"), "2024/01"
        )

        assert name == "2024/01/x.png"
        exists.assert_awaited_once_with("x.png", "2024/01")

    @pytest.mark.asyncio
    async def test_unique_name_suffixes(self):
        exists = AsyncMock(side_effect=[True, True, False])
        resolver = DatedPathResolver(exists)

        name = await resolver.get_unique_file_name(
            ImageAsset(path="/tmp/x", name="x.png", type="image/png"), "2024/01"
        )

        assert name == "2024/01/x-2.png"

    @pytest.mark.asyncio
    async def test_unique_name_without_extension(self):
        resolver = DatedPathResolver(AsyncMock(return_value=False))

        name = await resolver.get_unique_file_name(
            ImageAsset(path="/tmp/x", name="README", type="text/plain"), "docs"
        )

        assert name == "docs/README"

    def test_sanitize_file_name(self):
        assert sanitize_file_name("my photo (1)") == "my-photo--1-"
        assert sanitize_file_name("me@home.v2") == "me@home.v2"

    def test_sanitize_file_name_ascii_only(self):
        assert sanitize_file_name("café.png") == "caf-.png"
