"""
Storage module for the S3 offload adapter.

The host constructs ``S3Offload`` once and calls the five contract methods
(save, exists, delete, read, serve) without knowing the backing store.
"""
from s3offload.storage.base import ImageAsset, PathResolver, StorageAdapter
from s3offload.storage.paths import DatedPathResolver
from s3offload.storage.s3_client import S3ObjectClient
from s3offload.storage.s3_offload import S3Offload

__all__ = [
    "ImageAsset",
    "PathResolver",
    "StorageAdapter",
    "DatedPathResolver",
    "S3ObjectClient",
    "S3Offload",
]
