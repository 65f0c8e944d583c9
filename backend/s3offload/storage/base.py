"""
Storage adapter contract.
Every storage backend the host can plug in implements this interface.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Protocol

from starlette.requests import Request
from starlette.responses import Response

ServeHandler = Callable[[Request], Awaitable[Response]]


@dataclass(frozen=True)
class ImageAsset:
    """
    An uploaded file as handed over by the host.

    Attributes:
        path: Local path of the uploaded file
        name: Original filename
        type: Declared MIME type
    """
    path: str
    name: str
    type: str


class PathResolver(Protocol):
    """Host-side naming collaborator used by ``save`` and ``delete``."""

    def get_target_dir(self, base_dir: str = "") -> str:
        """Directory new uploads go into."""
        ...

    async def get_unique_file_name(self, asset: ImageAsset, directory: str) -> str:
        """Collision-free relative path for ``asset`` inside ``directory``."""
        ...


class StorageAdapter(ABC):
    """
    Abstract base class for storage adapters.

    The host calls these five methods without knowing the backing store:
    - save(): Persist an uploaded file and return its public URL
    - exists(): Check whether a file is stored
    - delete(): Remove a stored file
    - read(): Load a stored file by its public URL
    - serve(): HTTP handler that streams stored files
    """

    @abstractmethod
    async def save(self, asset: ImageAsset, target_dir: Optional[str] = None) -> str:
        """
        Store an uploaded file.

        Args:
            asset: The uploaded file
            target_dir: Directory to store under (host default when None)

        Returns:
            Public URL of the stored file
        """
        pass

    @abstractmethod
    async def exists(self, file_name: str, target_dir: Optional[str] = None) -> bool:
        """Check whether ``file_name`` is stored under ``target_dir``."""
        pass

    @abstractmethod
    async def delete(self, file_name: str, target_dir: Optional[str] = None) -> bool:
        """Remove a stored file. Returns False instead of raising."""
        pass

    @abstractmethod
    async def read(self, path: Optional[str] = None) -> bytes:
        """Return the full content of the file at public URL ``path``."""
        pass

    @abstractmethod
    def serve(self) -> ServeHandler:
        """Return an HTTP handler that serves stored files."""
        pass
