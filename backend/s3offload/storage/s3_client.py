"""
S3-compatible object store client.

Thin call-through to four S3 operations (put, head, get, delete) using boto3.
Endpoint, addressing style and credentials are fixed when the client is built
and never renegotiated per call. Each call is one round-trip with no retry;
boto3's own retry handler is disabled so a failure surfaces exactly once.

boto3 is synchronous, so every call runs in a worker thread via
``asyncio.to_thread`` to keep the event loop free.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config

from s3offload.config import StorageSettings
from s3offload.utils.metrics import storage_bytes_uploaded_total
from s3offload.utils.storage_metrics import track_storage_operation

logger = logging.getLogger(__name__)


def create_boto_client(
    settings: StorageSettings,
    access_key_id: Optional[str] = None,
    secret_access_key: Optional[str] = None,
):
    """
    Create a boto3 S3 client for the resolved settings.

    Credentials are attached only when both parts are present; otherwise
    boto3's default credential chain (env, profile, instance role) applies.
    The endpoint is attached only when configured.
    """
    options: Dict[str, Any] = {
        "region_name": settings.region,
        "config": Config(
            signature_version="s3v4",
            s3={"addressing_style": "path" if settings.force_path_style else "auto"},
            retries={"total_max_attempts": 1},
        ),
    }

    if access_key_id and secret_access_key:
        options["aws_access_key_id"] = access_key_id
        options["aws_secret_access_key"] = secret_access_key

    if settings.endpoint:
        options["endpoint_url"] = settings.endpoint

    return boto3.client("s3", **options)


class S3ObjectClient:
    """
    Object store operations scoped to one bucket.

    Errors are raised as botocore ``ClientError`` unchanged.
    """

    def __init__(
        self,
        settings: StorageSettings,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        client=None,
    ):
        """
        Args:
            settings: Resolved adapter settings
            access_key_id: Optional access key
            secret_access_key: Optional secret key
            client: Pre-built boto3 client (tests)
        """
        self._settings = settings
        self._client = client or create_boto_client(settings, access_key_id, secret_access_key)
        logger.info(
            f"S3 client initialized for bucket: {settings.bucket}",
            extra={"event": "storage_client_initialized", "bucket": settings.bucket},
        )

    @property
    def bucket(self) -> str:
        """Get configured bucket name."""
        return self._settings.bucket

    @property
    def raw(self):
        """The underlying boto3 client."""
        return self._client

    @track_storage_operation("put")
    async def put(
        self,
        key: str,
        body: bytes,
        content_type: Optional[str] = None,
        acl: Optional[str] = None,
        cache_control: Optional[str] = None,
        server_side_encryption: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Upload an object in a single PUT.

        Optional arguments that are None are left out of the request.
        """
        params: Dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": body,
        }
        if content_type:
            params["ContentType"] = content_type
        if acl:
            params["ACL"] = acl
        if cache_control:
            params["CacheControl"] = cache_control
        if server_side_encryption:
            params["ServerSideEncryption"] = server_side_encryption

        response = await asyncio.to_thread(self._client.put_object, **params)
        storage_bytes_uploaded_total.inc(len(body))
        return response

    @track_storage_operation("head")
    async def head(self, key: str) -> Dict[str, Any]:
        """Fetch object metadata."""
        return await asyncio.to_thread(
            self._client.head_object,
            Bucket=self.bucket,
            Key=key,
        )

    @track_storage_operation("get")
    async def get(self, key: str) -> Dict[str, Any]:
        """Fetch an object. The ``Body`` is returned unread."""
        return await asyncio.to_thread(
            self._client.get_object,
            Bucket=self.bucket,
            Key=key,
        )

    @track_storage_operation("delete")
    async def delete(self, key: str) -> Dict[str, Any]:
        """Delete an object."""
        return await asyncio.to_thread(
            self._client.delete_object,
            Bucket=self.bucket,
            Key=key,
        )

    async def head_bucket(self) -> Dict[str, Any]:
        """Check that the bucket is reachable with the configured credentials."""
        return await asyncio.to_thread(self._client.head_bucket, Bucket=self.bucket)
