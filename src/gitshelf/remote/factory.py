"""Object store factory for creating the configured backend."""

from typing import Dict, List, Optional, Type

from ..config.schema import GitConfig
from ..config.settings import RemoteSettings, get_settings
from .base import BaseObjectStore
from .github import GitHubObjectStore
from .memory import InMemoryObjectStore


class ObjectStoreFactory:
    """Factory for creating object store instances."""

    _store_classes: Dict[str, Type[BaseObjectStore]] = {
        "github": GitHubObjectStore,
        "memory": InMemoryObjectStore,
    }

    @classmethod
    def create_store(
        cls,
        git_config: GitConfig,
        backend: Optional[str] = None,
        remote_settings: Optional[RemoteSettings] = None,
        **kwargs
    ) -> BaseObjectStore:
        """Create an object store for ``git_config``.

        Raises:
            ValueError: If the backend is not supported
        """
        remote_settings = remote_settings or get_settings().remote
        backend = (backend or remote_settings.backend).lower()

        if backend not in cls._store_classes:
            raise ValueError(f"Unsupported object store backend: {backend}")

        if backend == "github":
            kwargs.setdefault("api_base_url", remote_settings.api_base_url)
            kwargs.setdefault("timeout_seconds", remote_settings.timeout_seconds)

        return cls._store_classes[backend](git_config=git_config, **kwargs)

    @classmethod
    def get_supported_backends(cls) -> List[str]:
        return list(cls._store_classes.keys())
