"""
Diagnostics
===========

Diagnostic channel wired into the renderer callbacks, and the reporter that
presents diagnostics on the terminal.

The channel accumulates warnings and errors for one render session. The
reporter is a pure consumer: it formats events but never changes them.
Markdown rendering is delegated to a pluggable formatter.
"""

import io
import traceback
from typing import Any, List, Optional, Protocol, Tuple, Union

from rich.console import Console
from rich.markdown import Markdown
from rich.text import Text

from spec2html.config.logging import get_logger
from spec2html.models.schemas import DiagnosticEvent, RenderOptions

logger = get_logger(__name__)


class MarkdownFormatter(Protocol):
    """Turns a markdown message into text for the presentation medium."""

    def format(self, markdown: str) -> Text:
        ...


class PlainMarkdownFormatter:
    """Leaves markdown untouched; for logs, pipes and tests."""

    def format(self, markdown: str) -> Text:
        return Text(markdown)


class RichMarkdownFormatter:
    """Renders markdown with terminal emphasis using rich."""

    def __init__(self, width: int = 100, color: bool = True):
        self.width = width
        self.color = color

    def format(self, markdown: str) -> Text:
        buffer = io.StringIO()
        console = Console(
            file=buffer,
            width=self.width,
            force_terminal=self.color,
            no_color=not self.color,
            highlight=False,
        )
        console.print(Markdown(markdown), end="")
        rendered = "\n".join(line.rstrip() for line in buffer.getvalue().strip("\n").splitlines())
        return Text.from_ansi(rendered) if self.color else Text(rendered)


class DiagnosticReporter:
    """
    Severity-tiered terminal presentation of diagnostics.

    Events carrying a plugin identifier get a detail block with the element
    count, plugin, hint and, in verbose mode, the stack trace.
    """

    def __init__(
        self,
        verbose: bool = False,
        console: Optional[Console] = None,
        formatter: Optional[MarkdownFormatter] = None,
    ):
        self.verbose = verbose
        self.console = console or Console(stderr=True, highlight=False)
        if formatter is None:
            formatter = (
                RichMarkdownFormatter(width=self.console.width)
                if self.console.is_terminal
                else PlainMarkdownFormatter()
            )
        self.formatter = formatter

    def info(self, message: str, time_remaining_ms: int) -> None:
        if not self.verbose:
            return
        header = Text("[INFO]", style="dim bold black on white")
        time = Text(f"[Timeout: {time_remaining_ms}ms]", style="dim")
        self.console.print(header, time, Text(message))

    def error(self, event: DiagnosticEvent) -> None:
        header = Text("[ERROR]", style="bold white on red")
        message = self._format_markdown(event.message)
        message.stylize("red")
        self.console.print(header, message)
        if event.plugin:
            self._print_details(event)

    def warn(self, event: DiagnosticEvent) -> None:
        header = Text("[WARNING]", style="bold black on yellow")
        message = self._format_markdown(event.message)
        message.stylize("yellow")
        self.console.print(header, message)
        if event.plugin:
            self._print_details(event)

    def fatal(self, error: Union[BaseException, str]) -> None:
        header = Text("[FATAL]", style="bold white on red")
        if isinstance(error, BaseException) and self.verbose:
            text = "".join(traceback.format_exception(type(error), error, error.__traceback__))
            text = text.rstrip("\n")
        else:
            text = str(error)
        self.console.print(header, Text(text, style="red"))

    def _format_markdown(self, markdown: str) -> Text:
        return self.formatter.format(markdown)

    def _print_details(self, event: DiagnosticEvent) -> None:
        print_stacktrace = self._should_print_stacktrace(event)
        longest_title = "Stacktrace" if print_stacktrace else "Plugin"
        pad_width = len(longest_title) + 1

        def show(title: str, value: Optional[str]) -> None:
            if not value:
                return
            padded_title = Text(f"{title}:".rjust(pad_width), style="bold")
            self.console.print(" ", padded_title, self._format_markdown(value))

        show("Count", str(event.element_count) if event.element_count else None)
        show("Plugin", event.plugin)
        show("Hint", event.hint)
        if print_stacktrace:
            stacktrace = str(event.stack)
            if event.cause is not None and event.cause.stack:
                cause_stack = "\n   ".join(event.cause.stack.split("\n"))
                stacktrace += f"\n    Caused by: {cause_stack}"
            # Stack traces are not markdown.
            padded_title = Text("Stacktrace:".rjust(pad_width), style="bold")
            self.console.print(" ", padded_title, Text(stacktrace))

    def _should_print_stacktrace(self, event: DiagnosticEvent) -> bool:
        has_cause_stack = event.cause is not None and bool(event.cause.stack)
        return (
            self.verbose
            and bool(event.stack)
            and (has_cause_stack or event.plugin == "unknown")
        )


class DiagnosticChannel:
    """
    Per-session accumulator for renderer diagnostics.

    The renderer calls the sinks in any order while it works. Accumulated
    warnings and errors become readable once the session is sealed, i.e. after
    the render result has been delivered.
    """

    def __init__(self, reporter: Optional[DiagnosticReporter] = None):
        self.reporter = reporter
        self.logger: Any = logger.bind(component="diagnostic_channel")  # structlog.BoundLoggerBase
        self._errors: List[DiagnosticEvent] = []
        self._warnings: List[DiagnosticEvent] = []
        self._sealed = False

    def on_progress(self, message: str, time_remaining_ms: int) -> None:
        self.logger.debug("Render progress", message=message, time_remaining_ms=time_remaining_ms)
        if self.reporter:
            self.reporter.info(message, time_remaining_ms)

    def on_warning(self, event: DiagnosticEvent) -> None:
        if self._reject_late(event):
            return
        self._warnings.append(event)
        if self.reporter:
            self.reporter.warn(event)

    def on_error(self, event: DiagnosticEvent) -> None:
        if self._reject_late(event):
            return
        self._errors.append(event)
        if self.reporter:
            self.reporter.error(event)

    def render_options(
        self,
        timeout_ms: int,
        use_local: bool = False,
        disable_sandbox: bool = False,
        devtools: bool = False,
    ) -> RenderOptions:
        """Build render options whose callbacks feed this channel."""
        return RenderOptions(
            timeout_ms=timeout_ms,
            use_local=use_local,
            disable_sandbox=disable_sandbox,
            devtools=devtools,
            on_progress=self.on_progress,
            on_warning=self.on_warning,
            on_error=self.on_error,
        )

    def seal(self) -> None:
        """Mark the session's render result as delivered."""
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def errors(self) -> Tuple[DiagnosticEvent, ...]:
        self._require_sealed()
        return tuple(self._errors)

    @property
    def warnings(self) -> Tuple[DiagnosticEvent, ...]:
        self._require_sealed()
        return tuple(self._warnings)

    def _require_sealed(self) -> None:
        if not self._sealed:
            raise RuntimeError("Diagnostics are only available after the render completes")

    def _reject_late(self, event: DiagnosticEvent) -> bool:
        if self._sealed:
            self.logger.warning(
                "Dropping diagnostic reported after render completed",
                severity=event.severity.value,
                message=event.message,
            )
        return self._sealed
