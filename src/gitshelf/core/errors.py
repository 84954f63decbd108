"""Errors raised by the catalog engine and its stores."""


class CatalogError(Exception):
    """Base exception for catalog operations."""
    pass


class ConfigMissingError(CatalogError):
    """Raised when a mutation is attempted without complete Git configuration."""

    def __init__(self, message: str = "Git repository is not configured"):
        super().__init__(message)


class ValidationError(CatalogError):
    """Raised when an upload or rename request is rejected before any I/O."""
    pass


class CorruptCacheError(CatalogError):
    """Raised when the local catalog cache cannot be decoded."""
    pass


class LocalPersistError(CatalogError):
    """Raised when the local catalog cache cannot be written."""
    pass
