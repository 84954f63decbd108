"""Request/response facade over the catalog engine for the UI layer."""

import functools
from typing import Any, Awaitable, Callable, Optional

import pyperclip
from pydantic import BaseModel

from .. import __version__
from ..config.loader import ConfigurationError, GitConfigLoader
from ..config.schema import GitConfig, mask_token
from ..config.settings import AppSettings, get_settings
from ..core.catalog_engine import CatalogEngine
from ..core.errors import CatalogError, ConfigMissingError, CorruptCacheError
from ..remote.base import BaseObjectStore, RemoteStoreError
from ..remote.factory import ObjectStoreFactory
from ..remote.github import fetch_latest_version
from ..utils.logging import get_logger


SUCCESS_CODE = 0
FAILURE_CODE = 1


class Response(BaseModel):
    """Uniform result returned to the UI: a payload on success, a message on failure."""

    code: int = SUCCESS_CODE
    msg: str = ""
    data: Any = None

    @property
    def success(self) -> bool:
        return self.code == SUCCESS_CODE

    @classmethod
    def ok(cls, data: Any = None, msg: str = "OK") -> "Response":
        return cls(code=SUCCESS_CODE, msg=msg, data=data)

    @classmethod
    def fail(cls, msg: str) -> "Response":
        return cls(code=FAILURE_CODE, msg=msg)


def _operation(func):
    """Convert every error raised by an adapter operation into a failure response."""

    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs) -> Response:
        try:
            return await func(self, *args, **kwargs)
        except ConfigMissingError:
            self.logger.warning("Operation rejected, repository not configured", operation=func.__name__)
            return Response.fail("Please configure the Git repository first")
        except (CatalogError, RemoteStoreError, ConfigurationError) as e:
            self.logger.warning("Operation failed", operation=func.__name__, error=str(e))
            return Response.fail(str(e))
        except Exception as e:
            self.logger.exception("Operation failed unexpectedly", operation=func.__name__)
            return Response.fail(f"Unexpected error: {e}")

    return wrapper


class PresentationAdapter:
    """Exposes catalog operations to the UI as request/response pairs."""

    def __init__(
        self,
        engine: CatalogEngine,
        config_loader: GitConfigLoader,
        settings: Optional[AppSettings] = None,
        store_factory: Optional[Callable[[GitConfig], BaseObjectStore]] = None,
        clipboard_writer: Optional[Callable[[str], None]] = None,
        version_checker: Optional[Callable[[], Awaitable[Optional[str]]]] = None
    ):
        self.engine = engine
        self.config_loader = config_loader
        self.settings = settings or get_settings()
        self.store_factory = store_factory or self._default_store_factory
        self.clipboard_writer = clipboard_writer or pyperclip.copy
        self.version_checker = version_checker or self._latest_version
        self.logger = get_logger(self.__class__.__name__)

    @_operation
    async def get_config(self) -> Response:
        """Current repository configuration (token masked) and version information."""
        return Response.ok({
            "config": self.engine.git_config.public_dict(),
            "version": {
                "current": __version__,
                "last": await self.version_checker()
            }
        })

    @_operation
    async def set_config(self, content: str) -> Response:
        """Validate, save and apply repository configuration submitted as JSON."""
        config = self.config_loader.parse(content)

        # The UI echoes the masked token back when the user leaves it untouched.
        current_token = self.engine.git_config.token
        if current_token and config.token == mask_token(current_token):
            config = config.model_copy(update={"token": current_token})

        store = self.store_factory(config) if config.is_complete else None
        try:
            self.config_loader.save(config)
        except ConfigurationError:
            if store is not None:
                await store.close()
            raise

        try:
            await self.engine.configure(config, store)
        except CorruptCacheError as e:
            self.logger.warning("Configuration saved with corrupt catalog cache", error=str(e))
            return Response.ok(msg="Configuration saved; the local catalog is unreadable, resync to rebuild it")

        self.logger.info("Configuration updated", repository=config.full_name, complete=config.is_complete)
        return Response.ok(msg="Configuration saved")

    @_operation
    async def get_list(self) -> Response:
        records = self.engine.records()
        self.logger.info("Catalog listed", count=len(records))
        return Response.ok([record.to_dict() for record in records])

    @_operation
    async def upload_file(self, selected_path: Optional[str]) -> Response:
        """Upload the file the user picked and catalog it."""
        if not selected_path:
            return Response.fail("Please select a file")

        record = await self.engine.upload_file(selected_path)
        return Response.ok(record.to_dict(), msg="Upload succeeded")

    @_operation
    async def delete_file(self, file_path: str) -> Response:
        if not file_path:
            return Response.fail("File path is required")

        await self.engine.delete(file_path)
        return Response.ok(msg="File deleted")

    @_operation
    async def update_file_name(self, file_path: str, file_name: str) -> Response:
        if not file_path:
            return Response.fail("File path is required")

        await self.engine.rename(file_path, file_name)
        return Response.ok(msg="File renamed")

    @_operation
    async def copy_file_url(self, file_url: str) -> Response:
        if not file_url:
            return Response.fail("File URL is required")

        try:
            self.clipboard_writer(file_url)
        except pyperclip.PyperclipException as e:
            return Response.fail(f"Clipboard unavailable: {e}")

        self.logger.info("File URL copied", file_url=file_url)
        return Response.ok(msg="Copied to clipboard")

    @_operation
    async def resync_list(self) -> Response:
        """Rebuild the local catalog from the remote repository."""
        await self.engine.resync()
        return Response.ok([record.to_dict() for record in self.engine.records()], msg="Catalog resynchronized")

    def _default_store_factory(self, config: GitConfig) -> BaseObjectStore:
        return ObjectStoreFactory.create_store(config, remote_settings=self.settings.remote)

    async def _latest_version(self) -> Optional[str]:
        return await fetch_latest_version(
            self.settings.remote.release_repo,
            api_base_url=self.settings.remote.api_base_url
        )
