"""
Configuration using Pydantic Settings.

Two layers live here:

- ``AppSettings``: the host application's settings (logging, mount path and
  the adapter options it passes to the storage constructor).
- ``resolve_settings``: merges the adapter's constructor options with the
  ``GHOST_STORAGE_ADAPTER_S3_*`` environment overrides into one immutable
  ``StorageSettings`` value. Environment overrides always win.
"""
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from s3offload.exceptions import StorageConfigError

DEFAULT_REGION = "us-east-1"
DEFAULT_ACL = "public-read"


class S3OffloadConfig(BaseModel):
    """
    Options supplied by the host when it constructs the adapter.

    Accepts both snake_case names and the camelCase spellings used in the
    host's JSON config file (``assetHost``, ``pathPrefix``, ...).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    access_key_id: Optional[str] = Field(None, alias="accessKeyId")
    secret_access_key: Optional[str] = Field(None, alias="secretAccessKey")
    region: Optional[str] = None
    bucket: Optional[str] = None
    asset_host: Optional[str] = Field(None, alias="assetHost")
    path_prefix: Optional[str] = Field(None, alias="pathPrefix")
    endpoint: Optional[str] = None
    server_side_encryption: Optional[str] = Field(None, alias="serverSideEncryption")
    force_path_style: bool = Field(False, alias="forcePathStyle")
    acl: Optional[str] = None


class S3EnvOverrides(BaseSettings):
    """Process-wide overrides, read once when the adapter is built."""

    region: Optional[str] = Field(None, validation_alias="AWS_DEFAULT_REGION")
    bucket: Optional[str] = Field(None, validation_alias="GHOST_STORAGE_ADAPTER_S3_PATH_BUCKET")
    path_prefix: Optional[str] = Field(None, validation_alias="GHOST_STORAGE_ADAPTER_S3_PATH_PREFIX")
    endpoint: Optional[str] = Field(None, validation_alias="GHOST_STORAGE_ADAPTER_S3_ENDPOINT")
    server_side_encryption: Optional[str] = Field(None, validation_alias="GHOST_STORAGE_ADAPTER_S3_SSE")
    # Any non-empty value turns path-style on, "false" included.
    force_path_style: Optional[str] = Field(
        None, validation_alias="GHOST_STORAGE_ADAPTER_S3_FORCE_PATH_STYLE"
    )
    asset_host: Optional[str] = Field(None, validation_alias="GHOST_STORAGE_ADAPTER_S3_ASSET_HOST")
    acl: Optional[str] = Field(None, validation_alias="GHOST_STORAGE_ADAPTER_S3_ACL")

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
    )


class StorageSettings(BaseModel):
    """Resolved adapter settings. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    region: str
    bucket: str
    host: str
    path_prefix: str = ""
    endpoint: Optional[str] = None
    server_side_encryption: Optional[str] = None
    force_path_style: bool = False
    acl: str = DEFAULT_ACL


def default_host(region: str, bucket: str, endpoint: Optional[str], force_path_style: bool) -> str:
    """Public host used when no asset host is configured."""
    if force_path_style and endpoint:
        return f"{endpoint}/{bucket}"
    return f"https://s3.{region}.amazonaws.com/{bucket}"


def resolve_settings(
    config: Union[S3OffloadConfig, Mapping[str, Any], None] = None,
    env: Optional[S3EnvOverrides] = None,
) -> StorageSettings:
    """
    Build ``StorageSettings`` from constructor options and env overrides.

    Args:
        config: Caller-supplied options (model or plain dict)
        env: Pre-loaded overrides; read from the process environment when None

    Returns:
        Frozen StorageSettings

    Raises:
        StorageConfigError: If no bucket can be resolved
    """
    if config is None:
        config = S3OffloadConfig()
    elif not isinstance(config, S3OffloadConfig):
        config = S3OffloadConfig.model_validate(config)
    if env is None:
        env = S3EnvOverrides()

    region = env.region or config.region or DEFAULT_REGION
    bucket = env.bucket or config.bucket
    if not bucket:
        raise StorageConfigError("S3 bucket is required.")

    path_prefix = (env.path_prefix or config.path_prefix or "").removeprefix("/")
    endpoint = env.endpoint or config.endpoint
    server_side_encryption = env.server_side_encryption or config.server_side_encryption
    force_path_style = bool(env.force_path_style) or bool(config.force_path_style)
    acl = env.acl or config.acl or DEFAULT_ACL

    host = env.asset_host or config.asset_host or default_host(
        region, bucket, endpoint, force_path_style
    )

    return StorageSettings(
        region=region,
        bucket=bucket,
        host=host.removesuffix("/"),
        path_prefix=path_prefix,
        endpoint=endpoint,
        server_side_encryption=server_side_encryption,
        force_path_style=force_path_style,
        acl=acl,
    )


class AppSettings(BaseSettings):
    """Host application settings loaded from environment variables."""

    # Environment
    environment: str = "dev"
    service_name: str = "s3-offload"
    log_level: str = "INFO"

    # Route the serve handler is mounted under
    serve_mount_path: str = "/content/images"

    # Adapter constructor options (GHOST_STORAGE_ADAPTER_S3_* still override these)
    s3_access_key_id: Optional[str] = None
    s3_secret_access_key: Optional[str] = None
    s3_region: Optional[str] = None
    s3_bucket: Optional[str] = None
    s3_asset_host: Optional[str] = None
    s3_path_prefix: Optional[str] = None
    s3_endpoint: Optional[str] = None
    s3_server_side_encryption: Optional[str] = None
    s3_force_path_style: bool = False
    s3_acl: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def storage_config(self) -> S3OffloadConfig:
        """Adapter constructor options taken from the S3_* settings."""
        return S3OffloadConfig(
            access_key_id=self.s3_access_key_id,
            secret_access_key=self.s3_secret_access_key,
            region=self.s3_region,
            bucket=self.s3_bucket,
            asset_host=self.s3_asset_host,
            path_prefix=self.s3_path_prefix,
            endpoint=self.s3_endpoint,
            server_side_encryption=self.s3_server_side_encryption,
            force_path_style=self.s3_force_path_style,
            acl=self.s3_acl,
        )


# Global settings instance
settings = AppSettings()
