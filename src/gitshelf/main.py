"""Main application entry point."""

import asyncio
import json
import signal
import sys
from datetime import datetime, timezone
from typing import Optional

from aiohttp import web

from .adapter import PresentationAdapter, Response
from .config.loader import GitConfigLoader
from .config.settings import AppSettings, get_settings
from .core.cache import LocalCacheStore
from .core.catalog_engine import CatalogEngine
from .core.errors import CorruptCacheError
from .remote.factory import ObjectStoreFactory
from .utils.logging import setup_logging, get_logger


class GitShelfApp:
    """Wires configuration, catalog engine and presentation adapter together."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self.settings = settings or get_settings()
        self.logger = get_logger("GitShelf")
        self.running = False
        self.engine: Optional[CatalogEngine] = None
        self.adapter: Optional[PresentationAdapter] = None
        self.web_app: Optional[web.Application] = None
        self.web_runner: Optional[web.AppRunner] = None

    async def startup(self, serve: bool = True) -> None:
        """Application startup.

        Only local filesystem and configuration errors abort startup; a
        corrupt catalog cache is logged and the catalog starts empty.
        """
        self.logger.info(
            "Starting gitshelf",
            version=self.settings.version,
            environment=self.settings.environment,
            data_dir=str(self.settings.data_dir)
        )
        self.settings.ensure_data_dir()

        config_loader = GitConfigLoader(self.settings.config_file)
        git_config = config_loader.load()
        store = None
        if git_config.is_complete:
            store = ObjectStoreFactory.create_store(git_config, remote_settings=self.settings.remote)

        self.engine = CatalogEngine(
            cache=LocalCacheStore(self.settings.cache_file),
            store=store,
            git_config=git_config,
            upload_settings=self.settings.upload
        )
        try:
            source = await self.engine.initialize()
            self.logger.info("Catalog ready", source=source.value, count=len(self.engine))
        except CorruptCacheError as e:
            self.logger.error("Catalog cache unreadable, starting with an empty list", error=str(e))

        self.adapter = PresentationAdapter(
            engine=self.engine,
            config_loader=config_loader,
            settings=self.settings
        )

        if serve:
            await self._setup_web_server()

        self.running = True
        self.logger.info("gitshelf started")

    async def shutdown(self) -> None:
        """Application shutdown; pending remote pushes get a chance to finish."""
        self.logger.info("Shutting down gitshelf")
        self.running = False

        await self._stop_web_server()
        if self.engine is not None:
            await self.engine.close()

        self.logger.info("gitshelf stopped")

    async def run(self) -> None:
        """Run until a shutdown signal is received."""
        await self.startup()

        try:
            while self.running:
                await asyncio.sleep(1)
        finally:
            await self.shutdown()

    def create_web_app(self) -> web.Application:
        """Build the HTTP API the UI layer talks to."""
        app = web.Application()
        app.router.add_get("/health", self._health_handler)
        app.router.add_get("/api/config", self._get_config_handler)
        app.router.add_put("/api/config", self._set_config_handler)
        app.router.add_get("/api/files", self._list_handler)
        app.router.add_post("/api/files", self._upload_handler)
        app.router.add_patch("/api/files", self._rename_handler)
        app.router.add_delete("/api/files", self._delete_handler)
        app.router.add_post("/api/files/resync", self._resync_handler)
        app.router.add_post("/api/clipboard", self._clipboard_handler)
        return app

    async def _setup_web_server(self) -> None:
        self.web_app = self.create_web_app()
        self.web_runner = web.AppRunner(self.web_app)
        await self.web_runner.setup()

        host = self.settings.server.host
        port = self.settings.server.port
        site = web.TCPSite(self.web_runner, host, port)
        await site.start()

        self.logger.info("Web server started", url=f"http://{host}:{port}")

    async def _stop_web_server(self) -> None:
        if self.web_runner:
            await self.web_runner.cleanup()
            self.web_runner = None
            self.logger.info("Web server stopped")

    async def _health_handler(self, request: web.Request) -> web.Response:
        health_data = {
            "status": "healthy" if self.running else "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": self.settings.version,
            "configured": self.engine is not None and self.engine.is_configured,
            "files": len(self.engine) if self.engine is not None else 0
        }
        return web.json_response(health_data, status=200 if self.running else 503)

    async def _get_config_handler(self, request: web.Request) -> web.Response:
        return _json(await self.adapter.get_config())

    async def _set_config_handler(self, request: web.Request) -> web.Response:
        return _json(await self.adapter.set_config(await request.text()))

    async def _list_handler(self, request: web.Request) -> web.Response:
        return _json(await self.adapter.get_list())

    async def _upload_handler(self, request: web.Request) -> web.Response:
        body = await _read_body(request)
        return _json(await self.adapter.upload_file(body.get("path")))

    async def _rename_handler(self, request: web.Request) -> web.Response:
        body = await _read_body(request)
        return _json(await self.adapter.update_file_name(body.get("path", ""), body.get("name", "")))

    async def _delete_handler(self, request: web.Request) -> web.Response:
        return _json(await self.adapter.delete_file(request.query.get("path", "")))

    async def _resync_handler(self, request: web.Request) -> web.Response:
        return _json(await self.adapter.resync_list())

    async def _clipboard_handler(self, request: web.Request) -> web.Response:
        body = await _read_body(request)
        return _json(await self.adapter.copy_file_url(body.get("url", "")))


def _json(response: Response) -> web.Response:
    return web.json_response(response.model_dump())


async def _read_body(request: web.Request) -> dict:
    if not request.can_read_body:
        return {}
    try:
        body = await request.json()
    except json.JSONDecodeError:
        raise web.HTTPBadRequest(text="Request body must be JSON")
    if not isinstance(body, dict):
        raise web.HTTPBadRequest(text="Request body must be a JSON object")
    return body


def setup_signal_handlers(app: GitShelfApp) -> None:
    """Set up signal handlers for graceful shutdown."""
    def signal_handler(signum, frame):
        app.logger.info("Received signal", signum=signum)
        app.running = False

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


async def main() -> None:
    """Main entry point."""
    settings = get_settings()
    settings.ensure_data_dir()
    setup_logging()

    app = GitShelfApp(settings)
    setup_signal_handlers(app)
    await app.run()


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        sys.exit(0)
    except Exception as e:
        print(f"gitshelf failed to start: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    run()
