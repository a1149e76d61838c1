"""
Pydantic Models and Schemas
===========================

Core data models for diagnostics, render sessions and conversion requests.
Diagnostic events and render options are immutable once constructed.
"""

from typing import Optional, List, Callable, Union
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from spec2html.config.settings import get_settings


def _noop(*args: object) -> None:
    return None


# Enums
class Severity(str, Enum):
    """Diagnostic severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"


class PipelineState(str, Enum):
    """Render pipeline states."""
    IDLE = "idle"
    SERVER_STARTING = "server_starting"
    RESOLVING_SOURCE = "resolving_source"
    RENDERING = "rendering"
    POLICY_CHECK = "policy_check"
    SANITIZING = "sanitizing"
    WRITING = "writing"
    SERVER_STOPPING = "server_stopping"
    DONE = "done"
    ABORTED = "aborted"


# Diagnostics
class DiagnosticCause(BaseModel):
    """Error that caused a diagnostic event."""
    model_config = ConfigDict(frozen=True)

    message: str = Field(..., description="Cause message")
    stack: Optional[str] = Field(None, description="Cause stack trace")


class DiagnosticEvent(BaseModel):
    """One condition reported by the renderer or the pipeline."""
    model_config = ConfigDict(frozen=True)

    message: str = Field(..., description="Markdown formatted message")
    severity: Severity = Field(Severity.WARNING, description="Event severity")
    plugin: Optional[str] = Field(None, description="Originating plugin identifier")
    hint: Optional[str] = Field(None, description="Markdown formatted hint")
    elements: Optional[List[str]] = Field(None, description="Implicated document elements")
    stack: Optional[str] = Field(None, description="Stack trace at the point of emission")
    cause: Optional[DiagnosticCause] = Field(None, description="Chained cause")

    @property
    def element_count(self) -> Optional[int]:
        """Number of implicated elements, if any were reported."""
        if not self.elements:
            return None
        return len(self.elements)


# Render session
class RenderOptions(BaseModel):
    """Configuration for one rendering session."""
    model_config = ConfigDict(frozen=True)

    timeout_ms: int = Field(..., gt=0, description="Render timeout in milliseconds")
    use_local: bool = Field(False, description="Use the local copy of the render logic")
    disable_sandbox: bool = Field(False, description="Disable browser sandboxing")
    devtools: bool = Field(False, description="Open browser developer tools")

    on_progress: Callable[[str, int], None] = Field(default=_noop, exclude=True)
    on_warning: Callable[[DiagnosticEvent], None] = Field(default=_noop, exclude=True)
    on_error: Callable[[DiagnosticEvent], None] = Field(default=_noop, exclude=True)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


class RenderResult(BaseModel):
    """Finished HTML plus the diagnostics gathered while producing it."""
    html: str = Field(..., description="Rendered HTML")
    errors: List[DiagnosticEvent] = Field(default_factory=list)
    warnings: List[DiagnosticEvent] = Field(default_factory=list)


# Invocation
class ConversionRequest(BaseModel):
    """Everything one conversion invocation needs."""
    source: str = Field(..., description="URL or local path of the document")
    destination: Optional[str] = Field(
        None, description="'stdout', a file path, or empty to discard"
    )
    timeout: float = Field(
        default_factory=lambda: get_settings().render_timeout,
        gt=0,
        description="Render timeout in seconds",
    )
    use_local: bool = Field(False, description="Use the local copy of the render logic")
    halt_on_error: bool = Field(False, description="Abort if the document has errors")
    halt_on_warning: bool = Field(False, description="Abort on warnings or errors")
    sandbox: bool = Field(True, description="Keep browser sandboxing enabled")
    devtools: bool = Field(False, description="Open browser developer tools")
    verbose: bool = Field(False, description="Report progress and stack traces")
    use_local_server: bool = Field(False, description="Serve the source from a local server")
    port: Union[int, str] = Field(
        default_factory=lambda: get_settings().server_port,
        description="Local server port, validated when the server is built",
    )

    @property
    def timeout_ms(self) -> int:
        return max(1, int(self.timeout * 1000))
