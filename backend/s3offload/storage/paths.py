"""
Default naming collaborator: dated directories and collision-free filenames.

Uploads land in ``<base>/<YYYY>/<MM>``. A filename that already exists gets a
numeric suffix (``photo.png``, ``photo-1.png``, ``photo-2.png``, ...).
"""
import re
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Awaitable, Callable, Optional

from s3offload.storage.base import ImageAsset
from s3offload.storage.keys import join_key

ExistsCheck = Callable[[str, Optional[str]], Awaitable[bool]]

_UNSAFE_CHARS = re.compile(r"[^\w@.]", re.ASCII)


def sanitize_file_name(name: str) -> str:
    """Replace anything but word characters, ``@`` and ``.`` with ``-``."""
    return _UNSAFE_CHARS.sub("-", name)


class DatedPathResolver:
    """
    Year/month target directories with suffix-based de-duplication.

    Args:
        exists: Async ``exists(file_name, directory)`` check against the store
        clock: Returns the current time (UTC); overridable in tests
    """

    def __init__(self, exists: ExistsCheck, clock: Optional[Callable[[], datetime]] = None):
        self._exists = exists
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def get_target_dir(self, base_dir: str = "") -> str:
        now = self._clock()
        dated = f"{now:%Y}/{now:%m}"
        return join_key(base_dir, dated) if base_dir else dated

    async def get_unique_file_name(self, asset: ImageAsset, directory: str) -> str:
        """
        Find a filename not yet stored under ``directory``.

        Returns:
            ``directory`` joined with the first free candidate name
        """
        original = PurePosixPath(asset.name)
        ext = original.suffix
        stem = sanitize_file_name(original.name[: len(original.name) - len(ext)])

        attempt = 0
        while True:
            candidate = f"{stem}-{attempt}{ext}" if attempt else f"{stem}{ext}"
            if not await self._exists(candidate, directory):
                return join_key(directory, candidate)
            attempt += 1
