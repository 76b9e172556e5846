"""Development server for cssg.

Serves the built site with live reload on a single port:
- ``/_ws`` upgrades to a WebSocket used to push reload notifications.
- HTML pages are served through a modification-time cache with the live
  reload client script injected before ``</body>``.
- Everything else is served as static files from the output directory.
All responses disable client caching since files change between rebuilds.

Source changes are picked up by a watchdog observer, debounced, rebuilt and
announced to every connected browser.

Key classes:
- DevServer: Owns the build trigger, executor, cache and client registry for
  one development session.
- DevServerError: Raised when the server cannot start listening.
"""

from __future__ import annotations

import asyncio
import mimetypes
from http import HTTPStatus
from pathlib import Path
from urllib.parse import unquote, urlsplit

import click
from watchdog.observers import Observer
from websockets.asyncio.server import ServerConnection, serve
from websockets.datastructures import Headers
from websockets.http11 import Request, Response

from .broadcast import ClientRegistry
from .build import BuildError, build_site
from .cache import FileCache, NotFoundError
from .config import ResolvedConfig
from .debounce import DEFAULT_QUIET_PERIOD, BuildTrigger
from .hmr import CLIENT_SCRIPT, LIVE_RELOAD_PATH
from .html_utils import inject_before_body_end
from .protocols import SiteBuilder
from .rebuild import BuildExecutor
from .watcher import ChangeEvent, ChangeFilter, WatchdogBridge

NO_CACHE = "no-cache, no-store, must-revalidate"


class DevServerError(Exception):
    """Raised when the development server cannot start."""


class DevServer:
    """Development server with live reload functionality.

    Attributes:
        port: Port for HTTP and WebSocket connections.
        host: Interface to bind.
        cache: Cache of served HTML files.
        clients: Connected live-reload clients.
        executor: Runs rebuilds and owns the current configuration.
        trigger: Debounces change notifications into rebuilds.
        change_filter: Drops changes that cannot affect the site.
        _observer: File system observer for changes.
    """

    def __init__(
        self,
        config: ResolvedConfig,
        port: int | None = None,
        host: str = "0.0.0.0",
        quiet_period: float = DEFAULT_QUIET_PERIOD,
        builder: SiteBuilder = build_site,
    ):
        """Initialize the development server.

        Args:
            config: Resolved project configuration.
            port: Optional override for the configured port.
            host: Interface to bind.
            quiet_period: Seconds of inactivity before a rebuild starts.
            builder: Function performing the site build.
        """
        self.port = int(port if port is not None else config.port)
        self.host = host
        self.cache = FileCache()
        self.clients = ClientRegistry()
        self.executor = BuildExecutor(config, builder)
        self.trigger = BuildTrigger(self.rebuild, quiet_period)
        self.change_filter = ChangeFilter.for_config(config)
        self._observer: Observer | None = None

    @property
    def config(self) -> ResolvedConfig:
        return self.executor.config

    @property
    def output_dir(self) -> Path:
        return self.config.output_dir

    def start(self) -> None:  # pragma: no cover - integration path
        """Build once, then serve and watch until interrupted.

        Raises:
            DevServerError: If the listener cannot be bound.
        """
        click.echo("Initial build...")
        try:
            self.executor.builder(self.config, "dev")
        except (BuildError, FileNotFoundError) as exc:
            click.echo(click.style("Initial build failed:", fg="red", bold=True), err=True)
            click.echo(f"  {exc}", err=True)
        try:
            asyncio.run(self.serve())
        except KeyboardInterrupt:
            click.echo("Stopped.")

    async def serve(self) -> None:
        """Listen for HTTP/WebSocket connections and watch for changes."""
        try:
            server = await serve(
                self.ws_handler,
                self.host,
                self.port,
                process_request=self.process_request,
            )
        except OSError as exc:
            raise DevServerError(f"Could not listen on port {self.port}: {exc}") from exc
        try:
            self.start_watcher(asyncio.get_running_loop())
            click.echo(
                click.style(f"Dev server running on http://localhost:{self.port}", fg="green")
            )
            await asyncio.Future()  # Run forever
        finally:
            self.stop()
            server.close()
            await server.wait_closed()

    def stop(self) -> None:
        self.trigger.cancel()
        if self._observer:
            self._observer.stop()
            self._observer.join()
            self._observer = None

    def start_watcher(self, loop: asyncio.AbstractEventLoop) -> None:
        """Watch the project tree, handing events to ``loop``."""
        handler = WatchdogBridge(
            lambda event: loop.call_soon_threadsafe(self.handle_change, event)
        )
        observer = Observer()
        observer.schedule(handler, str(self.config.root), recursive=True)
        observer.start()
        self._observer = observer

    def handle_change(self, event: ChangeEvent) -> None:
        """Feed a filesystem event through the filter into the trigger."""
        paths = self.change_filter.filter(event)
        if paths:
            self.trigger.notify(paths)

    async def rebuild(self, changed_paths: frozenset[str]) -> None:
        """Rebuild and notify clients; called by the trigger."""
        previous_config = self.config
        outcome = await self.executor.run(changed_paths)
        if self.config is not previous_config:
            # Output directory may have moved even if the build failed.
            self.change_filter = ChangeFilter.for_config(self.config)
            self.cache.invalidate()
        if not outcome.ok:
            return
        for message in outcome.messages:
            await self.clients.broadcast(message)

    async def ws_handler(self, connection: ServerConnection) -> None:
        self.clients.register(connection)
        try:
            await connection.wait_closed()
        finally:
            self.clients.unregister(connection)

    async def process_request(
        self, connection: ServerConnection, request: Request
    ) -> Response | None:
        """Route a request before the WebSocket handshake.

        Returns:
            None to continue with the live-reload handshake, otherwise the
            HTTP response to send.
        """
        path = unquote(urlsplit(request.path).path)
        if path == LIVE_RELOAD_PATH:
            return None
        if path == "/" or path.endswith((".html", "/")):
            return await self.serve_html(path)
        return await self.serve_static(path)

    def resolve(self, url_path: str) -> Path | None:
        """Map a URL path to a file below the output directory.

        Returns:
            The target path, or None when it would escape the output directory.
        """
        root = self.output_dir.resolve()
        target = (root / url_path.lstrip("/")).resolve()
        if not target.is_relative_to(root):
            return None
        if url_path.endswith("/"):
            target = target / "index.html"
        return target

    async def serve_html(self, url_path: str) -> Response:
        target = self.resolve(url_path)
        if target is None:
            return await self.not_found()
        try:
            content = await asyncio.to_thread(self.cache.get, target)
        except NotFoundError:
            return await self.not_found()
        return self._html_response(HTTPStatus.OK, content)

    async def serve_static(self, url_path: str) -> Response:
        target = self.resolve(url_path)
        if target is None:
            return await self.not_found()
        if target.is_dir():
            return await self.serve_html(url_path.rstrip("/") + "/")
        try:
            body = await asyncio.to_thread(target.read_bytes)
        except OSError:
            return await self.not_found()
        content_type = mimetypes.guess_type(target.name)[0] or "application/octet-stream"
        return self._response(HTTPStatus.OK, body, content_type)

    async def not_found(self) -> Response:
        """404 response, using the site's own 404.html when it exists."""
        try:
            content = await asyncio.to_thread(self.cache.get, self.output_dir / "404.html")
        except NotFoundError:
            return self._response(
                HTTPStatus.NOT_FOUND, b"404 - Page not found", "text/plain; charset=utf-8"
            )
        return self._html_response(HTTPStatus.NOT_FOUND, content)

    def _html_response(self, status: HTTPStatus, content: str) -> Response:
        body = inject_before_body_end(content, CLIENT_SCRIPT).encode("utf-8")
        return self._response(status, body, "text/html; charset=utf-8")

    @staticmethod
    def _response(status: HTTPStatus, body: bytes, content_type: str) -> Response:
        headers = Headers()
        headers["Content-Type"] = content_type
        headers["Content-Length"] = str(len(body))
        headers["Cache-Control"] = NO_CACHE
        headers["Access-Control-Allow-Origin"] = "*"
        headers["Connection"] = "close"
        return Response(status.value, status.phrase, headers, body)
