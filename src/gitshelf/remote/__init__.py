"""Remote object store clients."""

from .base import (
    BaseObjectStore,
    RemoteObject,
    RemoteStoreError,
    AuthenticationError,
    RateLimitError,
    RemoteConnectionError,
    RemoteWriteError,
    RemoteDeleteError
)

from .github import GitHubObjectStore, fetch_latest_version
from .memory import InMemoryObjectStore
from .factory import ObjectStoreFactory

__all__ = [
    # Base classes and exceptions
    "BaseObjectStore",
    "RemoteObject",
    "RemoteStoreError",
    "AuthenticationError",
    "RateLimitError",
    "RemoteConnectionError",
    "RemoteWriteError",
    "RemoteDeleteError",

    # Store implementations
    "GitHubObjectStore",
    "InMemoryObjectStore",
    "fetch_latest_version",

    # Factory
    "ObjectStoreFactory"
]
