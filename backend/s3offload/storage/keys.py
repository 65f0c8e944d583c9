"""
Object key and public URL derivation.

A key never starts with a slash; a host never ends with one. With those two
rules ``key_from_url(build_url(host, key), host) == key`` for every key.
"""
from s3offload.exceptions import AssetNotStoredError


def strip_leading_slash(value: str) -> str:
    """Remove one leading slash, if present."""
    return value[1:] if value.startswith("/") else value


def strip_trailing_slash(value: str) -> str:
    """Remove one trailing slash, if present."""
    return value[:-1] if value.endswith("/") else value


def join_key(directory: str, filename: str) -> str:
    """
    Join a directory and a filename with a single separator.

    Only the seam between the two parts is normalized; separators inside
    either part are kept as-is and ``..`` is not resolved.
    """
    if not directory:
        return filename
    if not filename:
        return directory
    return f"{strip_trailing_slash(directory)}/{strip_leading_slash(filename)}"


def compute_key(directory: str, filename: str) -> str:
    """Object key for ``filename`` stored under ``directory``."""
    return strip_leading_slash(join_key(directory or "", filename))


def build_url(host: str, key: str) -> str:
    """Public URL of the object stored under ``key``."""
    return f"{host}/{strip_leading_slash(key)}"


def key_from_url(url: str, host: str) -> str:
    """
    Recover the object key from a public URL.

    Raises:
        AssetNotStoredError: If the URL does not start with ``host``
    """
    url = strip_trailing_slash(url)
    if not url.startswith(host):
        raise AssetNotStoredError(url)
    return strip_leading_slash(url[len(host):])


def serve_key(prefix: str, request_path: str) -> str:
    """Object key for a request path handled by the serve endpoint."""
    return strip_leading_slash(strip_trailing_slash(prefix) + request_path)
