"""
Pipeline Errors
===============

Every error here is terminal for the invocation that raised it.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for conversion pipeline failures."""

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message if not hint else f"{message} {hint}")
        self.message = message
        self.hint = hint


class InvalidSource(PipelineError):
    """Raised when a source reference cannot be used."""

    pass


class InvalidPort(PipelineError):
    """Raised when the local server port is not a positive integer."""

    pass


class ServerStartError(PipelineError):
    """Raised when the local content server fails to bind."""

    pass


class RenderTimeout(PipelineError):
    """Raised when the renderer does not finish within the timeout."""

    pass


class RenderFailure(PipelineError):
    """Raised for any other fatal renderer condition."""

    pass


class PolicyHalt(PipelineError):
    """Raised when accumulated diagnostics trip the configured halt policy."""

    def __init__(self, threshold: str):
        super().__init__(f"{threshold} found during processing.")
        self.threshold = threshold


class WriteFailure(PipelineError):
    """Raised when the finished HTML cannot be written."""

    pass
