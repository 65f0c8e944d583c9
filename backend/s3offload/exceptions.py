"""
Error types raised by the S3 offload adapter.

Remote failures are not wrapped: they surface as botocore ``ClientError``
and callers inspect them with ``is_not_found`` / ``is_no_such_key``.
"""
from botocore.exceptions import ClientError

# Error codes S3 (and S3-compatible stores) use for a missing object.
# HEAD responses carry no body, so botocore reports the bare status code.
NOT_FOUND_CODES = frozenset({"404", "NotFound", "NoSuchKey"})


class StorageAdapterError(Exception):
    """Base class for adapter-level errors."""


class StorageConfigError(StorageAdapterError, ValueError):
    """Adapter settings could not be resolved (e.g. no bucket)."""


class AssetNotStoredError(StorageAdapterError, ValueError):
    """A path or URL does not point into the configured store."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"{path} is not stored in s3")


class EmptyObjectBodyError(StorageAdapterError):
    """The store returned an object without a body."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"S3 object body is empty: {key}")


def error_code(error: BaseException) -> str:
    """Return the S3 error code carried by a ClientError, or an empty string."""
    if not isinstance(error, ClientError):
        return ""
    return str(error.response.get("Error", {}).get("Code", ""))


def is_not_found(error: BaseException) -> bool:
    """True when the error reports that the object does not exist."""
    return error_code(error) in NOT_FOUND_CODES


def is_no_such_key(error: BaseException) -> bool:
    """True for the GET-specific missing-object error."""
    return error_code(error) == "NoSuchKey"
