"""
S3 offload storage adapter.

Stores the host's uploaded images in an S3-compatible bucket and serves them
back. Objects are addressed by key; the public URL of an object is
``<host>/<key>`` and ``read`` maps such a URL back to its key.

Error contract per method:
- save: remote errors propagate unchanged
- exists: not-found becomes False, anything else propagates
- delete: every error becomes False (best effort)
- read: foreign paths raise AssetNotStoredError before any network call
"""
import asyncio
import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from s3offload.config import S3EnvOverrides, S3OffloadConfig, StorageSettings, resolve_settings
from s3offload.exceptions import EmptyObjectBodyError, is_not_found
from s3offload.storage.base import ImageAsset, PathResolver, ServeHandler, StorageAdapter
from s3offload.storage.keys import build_url, compute_key, key_from_url, strip_leading_slash
from s3offload.storage.paths import DatedPathResolver
from s3offload.storage.s3_client import S3ObjectClient
from s3offload.storage.serve import make_serve_handler
from s3offload.utils.logging import log_storage_failure

logger = logging.getLogger(__name__)

# Cache-Control max-age for uploaded objects (30 days)
CACHE_MAX_AGE_SECONDS = 30 * 24 * 60 * 60


class S3Offload(StorageAdapter):
    """
    Storage adapter backed by an S3-compatible object store.

    Settings are resolved once here; nothing reads the process environment
    afterwards.
    """

    def __init__(
        self,
        config: Union[S3OffloadConfig, Mapping[str, Any], None] = None,
        paths: Optional[PathResolver] = None,
        client: Optional[S3ObjectClient] = None,
        env: Optional[S3EnvOverrides] = None,
    ):
        """
        Args:
            config: Constructor options from the host
            paths: Naming collaborator (dated directories by default)
            client: Pre-built object store client (tests)
            env: Pre-loaded environment overrides (tests)

        Raises:
            StorageConfigError: If no bucket can be resolved
        """
        if config is not None and not isinstance(config, S3OffloadConfig):
            config = S3OffloadConfig.model_validate(config)
        config = config or S3OffloadConfig()

        self._settings = resolve_settings(config, env)
        self._client = client or S3ObjectClient(
            self._settings,
            access_key_id=config.access_key_id,
            secret_access_key=config.secret_access_key,
        )
        self._paths = paths or DatedPathResolver(self.exists)

    @property
    def settings(self) -> StorageSettings:
        return self._settings

    @property
    def client(self) -> S3ObjectClient:
        return self._client

    def url_for(self, key: str) -> str:
        """Public URL of ``key``."""
        return build_url(self._settings.host, key)

    def key_for(self, url: str) -> str:
        """Object key behind a public URL of this store."""
        return key_from_url(url, self._settings.host)

    async def save(self, asset: ImageAsset, target_dir: Optional[str] = None) -> str:
        directory = target_dir or self._paths.get_target_dir(self._settings.path_prefix)

        file_name = await self._paths.get_unique_file_name(asset, directory)
        data = await asyncio.to_thread(Path(asset.path).read_bytes)
        key = strip_leading_slash(file_name)

        await self._client.put(
            key,
            data,
            content_type=asset.type,
            acl=self._settings.acl,
            cache_control=f"max-age={CACHE_MAX_AGE_SECONDS}",
            server_side_encryption=self._settings.server_side_encryption,
        )

        logger.info(
            f"Saved asset {asset.name} as {key}",
            extra={"event": "asset_saved", "key": key, "size_bytes": len(data)},
        )
        return self.url_for(key)

    async def exists(self, file_name: str, target_dir: Optional[str] = None) -> bool:
        key = compute_key(target_dir or "", file_name)

        try:
            await self._client.head(key)
        except Exception as e:
            if is_not_found(e):
                return False
            raise
        return True

    async def delete(self, file_name: str, target_dir: Optional[str] = None) -> bool:
        # Best effort: any failure is reported as False, never raised.
        directory = target_dir or self._paths.get_target_dir(self._settings.path_prefix)
        key = compute_key(directory, file_name)

        try:
            await self._client.delete(key)
        except Exception as e:
            log_storage_failure(
                logger,
                "delete",
                e,
                bucket=self._settings.bucket,
                key=key,
                level=logging.DEBUG,
            )
            return False

        logger.info(f"Deleted asset {key}", extra={"event": "asset_deleted", "key": key})
        return True

    async def read(self, path: Optional[str] = None) -> bytes:
        """
        Load a stored file by its public URL.

        Args:
            path: Public URL previously returned by ``save``

        Returns:
            The whole object body

        Raises:
            AssetNotStoredError: If ``path`` is not under the configured host
            EmptyObjectBodyError: If the store returned no body
        """
        key = self.key_for(path or "")

        s3_response = await self._client.get(key)
        body = s3_response.get("Body")
        if body is None:
            raise EmptyObjectBodyError(key)

        try:
            return await asyncio.to_thread(body.read)
        finally:
            body.close()

    def serve(self) -> ServeHandler:
        return make_serve_handler(self._client, self._settings.path_prefix)
