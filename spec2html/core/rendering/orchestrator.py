"""
Render Orchestrator
===================

Drives one conversion end to end:

    IDLE -> (SERVER_STARTING) -> RESOLVING_SOURCE -> RENDERING -> POLICY_CHECK
         -> SANITIZING -> WRITING -> (SERVER_STOPPING) -> DONE

Any unrecoverable error moves the pipeline to ABORTED. When a local content
server was started it is stopped exactly once, whatever happens after start.
"""

import asyncio
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Callable, List, Optional
from urllib.parse import urlparse, urlsplit, urlunsplit

from spec2html.config.logging import get_logger
from spec2html.core.errors import (
    InvalidSource,
    PipelineError,
    PolicyHalt,
    RenderFailure,
    RenderTimeout,
)
from spec2html.core.output.writer import write_output
from spec2html.core.rendering.diagnostics import DiagnosticChannel, DiagnosticReporter
from spec2html.core.rendering.renderer import BaseRenderer, RendererFactory
from spec2html.core.rendering.sanitizer import SVGMarkupSanitizer
from spec2html.core.serving.static_server import StaticServer
from spec2html.models.schemas import (
    ConversionRequest,
    PipelineState,
    RenderOptions,
    RenderResult,
)

logger = get_logger(__name__)

NETWORK_SCHEMES = {"http", "https"}


def evaluate_policy(result: RenderResult, halt_on_error: bool, halt_on_warning: bool) -> None:
    """
    Apply the halt policy to a finished render.

    Raises:
        PolicyHalt: "Errors" when errors exist and halt_on_error is set,
            otherwise "Warnings" when any diagnostic exists and
            halt_on_warning is set
    """
    exit_on_error = bool(result.errors) and halt_on_error
    exit_on_warning = bool(result.warnings or result.errors) and halt_on_warning
    if exit_on_error or exit_on_warning:
        raise PolicyHalt("Errors" if exit_on_error else "Warnings")


def resolve_source(
    use_local_server: bool, raw_source: str, server: Optional[StaticServer] = None
) -> str:
    """
    Turn a source reference into the URL the renderer should load.

    With a local server the server's URL is used. Otherwise URLs pass through
    and paths are resolved against the working directory as ``file://`` URIs.

    Raises:
        InvalidSource: If no well-formed URL can be produced
    """
    if use_local_server:
        if server is None:
            raise InvalidSource("A local server is required to resolve the source.")
        return server.url

    source = raw_source.strip() if raw_source else ""
    if not source or "\x00" in source:
        raise InvalidSource(f"Invalid source: {raw_source!r}")

    parsed = urlparse(source)
    # Single letters are Windows drive letters, not schemes.
    if len(parsed.scheme) > 1:
        if parsed.scheme in NETWORK_SCHEMES and not parsed.netloc:
            raise InvalidSource(f"Invalid source URL: {source}")
        if parsed.scheme == "file" and not parsed.path:
            raise InvalidSource(f"Invalid source URL: {source}")
        return source

    # Query and fragment belong to the URL, not the file name.
    location, _, fragment = source.partition("#")
    location, _, query = location.partition("?")
    path = Path(os.path.abspath(os.path.join(os.getcwd(), location)))
    return urlunsplit(("file", "", urlsplit(path.as_uri()).path, query, fragment))


class RenderOrchestrator:
    """Runs the conversion pipeline for one request at a time."""

    def __init__(
        self,
        renderer: Optional[BaseRenderer] = None,
        reporter: Optional[DiagnosticReporter] = None,
        writer: Callable[[Optional[str], str], None] = write_output,
    ):
        self.renderer = renderer or RendererFactory.create_renderer()
        self.reporter = reporter
        self.writer = writer
        self.sanitizer = SVGMarkupSanitizer()
        self.logger: Any = logger.bind(component="orchestrator")  # structlog.BoundLoggerBase
        self.state = PipelineState.IDLE
        self.history: List[PipelineState] = [PipelineState.IDLE]

    def _transition(self, state: PipelineState) -> None:
        self.logger.debug("Pipeline state change", previous=self.state.value, state=state.value)
        self.state = state
        self.history.append(state)

    async def run(self, request: ConversionRequest) -> str:
        """
        Convert ``request.source`` and write it to ``request.destination``.

        Returns:
            The sanitized HTML

        Raises:
            PipelineError: Any terminal failure; nothing is written
        """
        self.state = PipelineState.IDLE
        self.history = [PipelineState.IDLE]
        channel = DiagnosticChannel(self.reporter)

        try:
            async with self._serving(request) as server:
                self._transition(PipelineState.RESOLVING_SOURCE)
                url = resolve_source(request.use_local_server, request.source, server)
                channel.on_progress(f"Processing resource: {url} ...", request.timeout_ms)

                self._transition(PipelineState.RENDERING)
                options = channel.render_options(
                    timeout_ms=request.timeout_ms,
                    use_local=request.use_local,
                    disable_sandbox=not request.sandbox,
                    devtools=request.devtools,
                )
                try:
                    result = await self.render(url, options)
                finally:
                    channel.seal()

                self._transition(PipelineState.POLICY_CHECK)
                evaluate_policy(result, request.halt_on_error, request.halt_on_warning)

                self._transition(PipelineState.SANITIZING)
                html = self.sanitizer.sanitize(result.html)

                self._transition(PipelineState.WRITING)
                self.writer(request.destination, html)
        except Exception as e:
            self._transition(PipelineState.ABORTED)
            self.logger.info("Pipeline aborted", error=str(e), error_type=type(e).__name__)
            raise

        self._transition(PipelineState.DONE)
        return html

    @asynccontextmanager
    async def _serving(self, request: ConversionRequest) -> AsyncGenerator[Optional[StaticServer], None]:
        """Run a local content server around the block when requested."""
        if not request.use_local_server:
            yield None
            return

        self._transition(PipelineState.SERVER_STARTING)
        server = StaticServer(request.source, port=request.port)
        await server.start()
        try:
            yield server
            self._transition(PipelineState.SERVER_STOPPING)
        finally:
            try:
                await server.stop()
            except Exception as e:
                self.logger.error("Failed to stop static server", error=str(e))

    async def render(self, url: str, options: RenderOptions) -> RenderResult:
        """
        Render ``url`` under the session timeout.

        Raises:
            RenderTimeout: If the renderer does not finish in time
            RenderFailure: For any other renderer failure
        """
        self.logger.info("Rendering", url=url, timeout_ms=options.timeout_ms)
        try:
            return await asyncio.wait_for(
                self.renderer.render(url, options), timeout=options.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            raise RenderTimeout(
                f"Timeout: rendering {url} took longer than {options.timeout_ms}ms."
            ) from e
        except PipelineError:
            raise
        except Exception as e:
            raise RenderFailure(f"Rendering {url} failed: {e}") from e
