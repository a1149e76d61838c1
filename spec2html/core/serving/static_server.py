"""
Static Content Server
=====================

Ephemeral aiohttp server exposing a directory (the working directory by
default) so a local document can be addressed by URL.

Anything under the served directory is readable over plain HTTP with no
authentication. Only use it on localhost.
"""

import os
import re
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import quote, urljoin

from aiohttp import web

from spec2html.config.logging import get_logger
from spec2html.config.settings import get_settings
from spec2html.core.errors import InvalidPort, InvalidSource, ServerStartError

logger = get_logger(__name__)

URL_SCHEME = re.compile(r"^(\w+://)")
INDEX_FILE = "index.html"


def validate_port(port: Union[int, str]) -> int:
    """Return ``port`` as an int, or raise InvalidPort."""
    if isinstance(port, bool):
        raise InvalidPort("Invalid port number.")
    if isinstance(port, str):
        if not port.strip().isdigit():
            raise InvalidPort("Invalid port number.")
        port = int(port.strip())
    if not isinstance(port, int) or not 0 < port <= 65535:
        raise InvalidPort("Invalid port number.")
    return port


def validate_relative_source(source: str) -> str:
    """Reject absolute paths and URLs; only relative paths can be served."""
    if os.path.isabs(source) or URL_SCHEME.match(source.strip()):
        raise InvalidSource(
            "Invalid path for use with --localhost. Only relative paths allowed.",
            hint=(
                "Please ensure your document and its local resources"
                " (e.g., data-includes) are accessible from the current working directory."
            ),
        )
    return source


class StaticServer:
    """Serves a directory over HTTP for the duration of one render."""

    def __init__(
        self,
        source: str,
        port: Optional[Union[int, str]] = None,
        root: Optional[Path] = None,
        host: Optional[str] = None,
    ):
        settings = get_settings()
        self.source = validate_relative_source(source)
        self.port = validate_port(settings.server_port if port is None else port)
        self.host = host or settings.server_host
        self.root = Path(root) if root is not None else Path.cwd()
        self.logger: Any = logger.bind(component="static_server", port=self.port)

        self.app = web.Application()
        self.app.router.add_get("/{path:.*}", self._serve_file)
        self._runner: Optional[web.AppRunner] = None

    @property
    def url(self) -> str:
        """Address of the source document on this server."""
        return urljoin(f"http://localhost:{self.port}/", quote(self.source, safe="/?#&=%"))

    @property
    def is_running(self) -> bool:
        return self._runner is not None

    async def _serve_file(self, request: web.Request) -> web.StreamResponse:
        """Serve a file under the root; directories serve their index file."""
        root = self.root.resolve()
        try:
            target = (root / request.match_info["path"]).resolve()
            target.relative_to(root)
        except (OSError, ValueError):
            raise web.HTTPNotFound() from None

        if target.is_dir():
            if not request.path.endswith("/"):
                location = request.rel_url.with_path(request.path + "/")
                raise web.HTTPMovedPermanently(location.with_query(request.rel_url.query))
            target = target / INDEX_FILE
        if not target.is_file():
            raise web.HTTPNotFound()
        return web.FileResponse(target)

    async def start(self) -> None:
        """Bind the listener; returns once the socket is listening."""
        runner = web.AppRunner(self.app, access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, self.host, self.port)
        try:
            await site.start()
        except OSError as e:
            await runner.cleanup()
            self.logger.error("Failed to start static server", error=str(e))
            raise ServerStartError(f"Could not listen on port {self.port}: {e}") from e

        self._runner = runner
        self.logger.info("Static server listening", root=str(self.root), url=self.url)

    async def stop(self) -> None:
        """Close the listener and release the port."""
        if self._runner is None:
            return
        runner, self._runner = self._runner, None
        await runner.cleanup()
        self.logger.info("Static server stopped")
