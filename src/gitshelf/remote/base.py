"""Base object store interface and common errors."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from ..config.schema import GitConfig
from ..utils.logging import get_logger


@dataclass(frozen=True)
class RemoteObject:
    """Descriptor of an object stored in the remote repository."""

    path: str
    size: Optional[int] = None
    sha: Optional[str] = None


class BaseObjectStore(ABC):
    """Abstract base class for remote object stores.

    Every call is a single blocking request-response against the remote host.
    Implementations translate transport failures into ``RemoteStoreError``
    subclasses so callers can treat them uniformly.
    """

    def __init__(self, git_config: GitConfig, **kwargs):
        self.git_config = git_config
        self.logger = get_logger(self.__class__.__name__)

    @abstractmethod
    async def fetch(self, path: str) -> Optional[bytes]:
        """Fetch an object's content.

        Returns:
            Raw bytes, or None if no object exists at ``path``
        """
        pass

    @abstractmethod
    async def put(self, path: str, content: bytes, message: Optional[str] = None) -> None:
        """Create or overwrite the object at ``path``.

        Raises:
            RemoteWriteError: If the write did not succeed
        """
        pass

    @abstractmethod
    async def delete(self, path: str, message: Optional[str] = None) -> bool:
        """Delete the object at ``path``.

        Returns:
            True if an object was deleted, False if none existed

        Raises:
            RemoteDeleteError: If the delete did not succeed
        """
        pass

    @abstractmethod
    async def list_objects(self) -> List[RemoteObject]:
        """List every object in the store, sorted by path."""
        pass

    def public_url(self, path: str) -> str:
        """Public URL of the object at ``path``. Performs no I/O."""
        return self.git_config.public_url_template.format(
            owner=self.git_config.owner,
            repo=self.git_config.repo,
            branch=self.git_config.branch,
            path=path.lstrip("/")
        )

    async def close(self) -> None:
        """Release any transport resources."""
        return None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class RemoteStoreError(Exception):
    """Base exception for remote object store failures."""
    pass


class AuthenticationError(RemoteStoreError):
    """Raised when the remote host rejects the credentials."""
    pass


class RateLimitError(RemoteStoreError):
    """Raised when the remote API rate limit is exceeded."""

    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after


class RemoteConnectionError(RemoteStoreError):
    """Raised when the remote host cannot be reached."""
    pass


class RemoteWriteError(RemoteStoreError):
    """Raised when writing an object fails."""
    pass


class RemoteDeleteError(RemoteStoreError):
    """Raised when deleting an object fails."""
    pass
