"""Core catalog functionality."""

from .errors import (
    CatalogError,
    ConfigMissingError,
    ValidationError,
    CorruptCacheError,
    LocalPersistError
)
from .models import FileRecord
from .cache import LocalCacheStore
from .catalog_engine import CatalogEngine, CatalogSource, CATALOG_OBJECT_PATH

__all__ = [
    "CatalogError",
    "ConfigMissingError",
    "ValidationError",
    "CorruptCacheError",
    "LocalPersistError",
    "FileRecord",
    "LocalCacheStore",
    "CatalogEngine",
    "CatalogSource",
    "CATALOG_OBJECT_PATH"
]
