"""
Browser Renderer
================

Playwright-based rendering of documents that build themselves in the browser
(ReSpec-style documents exposing ``document.respec``). Loads the document,
waits for its render logic to finish and exports the resulting HTML together
with the errors and warnings the document reported.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple
import asyncio
import time
from abc import ABC, abstractmethod

from playwright.async_api import (
    Error as PlaywrightError,
    Page,
    Route,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from spec2html.config.logging import get_logger
from spec2html.config.settings import get_settings
from spec2html.core.errors import PipelineError, RenderFailure, RenderTimeout
from spec2html.models.schemas import DiagnosticEvent, RenderOptions, RenderResult, Severity

logger = get_logger(__name__)

RUNTIME_CHECK_SCRIPT = """
() => Boolean(
  document.respec ||
  window.respecVersion ||
  document.querySelector("script[src*='respec'], script[data-main*='profile-']")
)
"""

EXPORT_SCRIPT = """
async () => {
  await document.respec.ready;
  const serialize = (issue) => ({
    message: String(issue && issue.message !== undefined ? issue.message : issue),
    plugin: issue && issue.plugin ? String(issue.plugin) : null,
    hint: issue && issue.hint ? String(issue.hint) : null,
    elements: issue && Array.isArray(issue.elements)
      ? issue.elements.map((el) => (el && el.outerHTML ? el.outerHTML.slice(0, 200) : String(el)))
      : null,
    stack: issue && issue.stack ? String(issue.stack) : null,
    cause: issue && issue.cause
      ? {
          message: String(issue.cause.message !== undefined ? issue.cause.message : issue.cause),
          stack: issue.cause.stack ? String(issue.cause.stack) : null,
        }
      : null,
  });
  return {
    html: await document.respec.toHTML(),
    errors: (document.respec.errors || []).map(serialize),
    warnings: (document.respec.warnings || []).map(serialize),
  };
}
"""


class RenderTimer:
    """Counts down the render budget shared by every step of a session."""

    def __init__(self, timeout_ms: int):
        self.timeout_ms = timeout_ms
        self._started = time.monotonic()

    @property
    def remaining(self) -> int:
        """Milliseconds left, never below zero."""
        elapsed_ms = (time.monotonic() - self._started) * 1000
        return max(0, int(self.timeout_ms - elapsed_ms))

    @property
    def expired(self) -> bool:
        return self.remaining == 0


class BaseRenderer(ABC):
    """Abstract base class for renderers."""

    @abstractmethod
    async def render(self, source_url: str, options: RenderOptions) -> RenderResult:
        """Render the document at ``source_url`` to static HTML."""
        pass


class PlaywrightRenderer(BaseRenderer):
    """Chromium renderer driven through Playwright, one browser per render."""

    def __init__(self) -> None:
        self.settings = get_settings()
        self.logger: Any = logger.bind(renderer="playwright")  # structlog.BoundLoggerBase

    async def render(self, source_url: str, options: RenderOptions) -> RenderResult:
        """
        Render a document in a fresh browser.

        Args:
            source_url: Address of the document
            options: Session options; progress and diagnostics go to its callbacks

        Returns:
            RenderResult with the exported HTML and reported diagnostics

        Raises:
            RenderTimeout: If the session exceeds ``options.timeout_ms``
            RenderFailure: For any other fatal condition
        """
        timer = RenderTimer(options.timeout_ms)

        def progress(message: str) -> None:
            options.on_progress(message, timer.remaining)

        try:
            async with async_playwright() as playwright:
                progress("Launching browser")
                browser = await playwright.chromium.launch(**self._launch_options(options))
                try:
                    page = await browser.new_page()
                    page.set_default_timeout(self._budget(timer))

                    if options.use_local:
                        await self._use_local_render_logic(page, progress)

                    progress(f"Navigating to {source_url}")
                    response = await page.goto(source_url, timeout=self._budget(timer))
                    if response is not None and not response.ok and response.status != 304:
                        raise RenderFailure(f"HTTP Error {response.status}: {source_url}")
                    progress("Navigation complete.")

                    await self._check_render_runtime(page, source_url)

                    progress("Processing document...")
                    html, errors, warnings = await self._export_html(page, timer, options)
                    progress("Processed document.")
                finally:
                    await browser.close()

        except PipelineError:
            raise
        except (PlaywrightTimeoutError, asyncio.TimeoutError) as e:
            self.logger.error("Render timed out", url=source_url, timeout_ms=options.timeout_ms)
            raise RenderTimeout(
                f"Timeout: rendering {source_url} took longer than {options.timeout_ms}ms."
            ) from e
        except PlaywrightError as e:
            self.logger.error("Browser error", url=source_url, error=str(e))
            raise RenderFailure(f"Browser error while rendering {source_url}: {e}") from e

        self.logger.info(
            "Render completed",
            url=source_url,
            html_length=len(html),
            errors=len(errors),
            warnings=len(warnings),
        )
        return RenderResult(html=html, errors=errors, warnings=warnings)

    def _launch_options(self, options: RenderOptions) -> Dict[str, Any]:
        """Chromium launch arguments for the session."""
        args: List[str] = []
        if options.devtools:
            args.append("--auto-open-devtools-for-tabs")
        return {
            "headless": self.settings.playwright_headless and not options.devtools,
            "chromium_sandbox": not options.disable_sandbox,
            "args": args,
        }

    @staticmethod
    def _budget(timer: RenderTimer) -> int:
        # Playwright treats 0 as "no timeout".
        return max(1, timer.remaining)

    async def _use_local_render_logic(self, page: Page, progress: Callable[[str], None]) -> None:
        """Serve the configured local render script instead of the document's own."""
        script = self.settings.local_render_script
        if script is None or not script.is_file():
            raise RenderFailure(
                "No local render logic available.",
                hint="Set SPEC2HTML_LOCAL_RENDER_SCRIPT to the path of a built render script.",
            )

        async def fulfill(route: Route) -> None:
            self.logger.debug("Serving local render logic", url=route.request.url)
            await route.fulfill(path=str(script), content_type="application/javascript")

        await page.route(self.settings.render_script_pattern, fulfill)
        progress(f"Using local render logic from {script}")

    async def _check_render_runtime(self, page: Page, source_url: str) -> None:
        """Fail early when the page carries no render logic at all."""
        if not await page.evaluate(RUNTIME_CHECK_SCRIPT):
            raise RenderFailure(
                f"{source_url} doesn't seem to be a document this tool can render.",
                hint="The page must load ReSpec, which exposes `document.respec`.",
            )

    async def _export_html(
        self, page: Page, timer: RenderTimer, options: RenderOptions
    ) -> Tuple[str, List[DiagnosticEvent], List[DiagnosticEvent]]:
        """Wait for the document to finish and export HTML plus diagnostics."""
        await page.wait_for_function(
            "() => Boolean(document.respec && document.respec.ready)",
            timeout=self._budget(timer),
        )
        exported = await asyncio.wait_for(
            page.evaluate(EXPORT_SCRIPT), timeout=self._budget(timer) / 1000
        )

        errors = [self._to_event(raw, Severity.ERROR) for raw in exported.get("errors", [])]
        warnings = [self._to_event(raw, Severity.WARNING) for raw in exported.get("warnings", [])]
        for event in errors:
            options.on_error(event)
        for event in warnings:
            options.on_warning(event)

        return exported["html"], errors, warnings

    @staticmethod
    def _to_event(raw: Dict[str, Any], severity: Severity) -> DiagnosticEvent:
        return DiagnosticEvent(severity=severity, **raw)


class RendererFactory:
    """Factory for creating renderers."""

    _renderers = {
        "playwright": PlaywrightRenderer,
    }

    @classmethod
    def create_renderer(cls, renderer_type: Optional[str] = None) -> BaseRenderer:
        """
        Create renderer instance.

        Args:
            renderer_type: Type of renderer (default: "playwright")

        Returns:
            Renderer instance
        """
        if renderer_type not in cls._renderers:
            renderer_type = "playwright"

        return cls._renderers[renderer_type]()
