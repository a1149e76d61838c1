"""
Output Writer
=============

Destination handling for finished HTML: discard, stdout, or a UTF-8 file.
"""

import sys
from pathlib import Path
from typing import Optional, TextIO

from spec2html.config.logging import get_logger
from spec2html.core.errors import WriteFailure

logger = get_logger(__name__)

STDOUT_DESTINATION = "stdout"


def resolve_destination(destination: str) -> Path:
    """Resolve a destination path against the current working directory."""
    path = Path(destination)
    return path if path.is_absolute() else (Path.cwd() / path).resolve()


def write_output(destination: Optional[str], html: str, stdout: Optional[TextIO] = None) -> None:
    """
    Write HTML to its destination.

    Args:
        destination: None or "" to discard, "stdout", or a file path
        html: Sanitized HTML
        stdout: Stream used for the "stdout" destination (default: sys.stdout)

    Raises:
        WriteFailure: If the file or stream cannot be written
    """
    if not destination:
        logger.debug("No destination given, discarding output", html_length=len(html))
        return

    if destination == STDOUT_DESTINATION:
        stream = stdout or sys.stdout
        try:
            stream.write(html)
            stream.flush()
        except (OSError, UnicodeError) as e:
            raise WriteFailure(f"Could not write to stdout: {e}") from e
        return

    path = resolve_destination(destination)
    try:
        path.write_text(html, encoding="utf-8")
    except OSError as e:
        logger.error("Failed to write output", path=str(path), error=str(e))
        raise WriteFailure(f"Could not write {path}: {e}") from e
    logger.info("Output written", path=str(path), html_length=len(html))
