"""
Markup Sanitizer
================

Repairs inline SVG emitted by diagramming libraries that write HTML-style
``<br>`` tags inside ``<svg>`` fragments (see mermaid-js/mermaid#1766).
Strict XML parsing of the final document rejects those, so they are rewritten
to ``<br />``. Text outside ``<svg>...</svg>`` spans is never touched.
"""

import re
from enum import Enum
from typing import Any, List

from spec2html.config.logging import get_logger

logger = get_logger(__name__)

SVG_OPEN_TAG = re.compile(r"<svg(?: [\s\S]*?|)>")
SVG_CLOSE_TAG = "</svg>"
UNCLOSED_BREAK = "<br>"
SELF_CLOSED_BREAK = "<br />"


class _ScanState(Enum):
    OUTSIDE_SVG = "outside"
    INSIDE_SVG = "inside"


def sanitize_svg_markup(html: str) -> str:
    """
    Rewrite ``<br>`` to ``<br />`` inside every ``<svg>...</svg>`` span.

    Single left-to-right pass. An opening tag without a matching ``</svg>``
    is left verbatim along with everything after it.

    Args:
        html: Rendered HTML

    Returns:
        HTML with SVG line breaks self-closed
    """
    output: List[str] = []
    position = 0
    state = _ScanState.OUTSIDE_SVG

    while position < len(html):
        if state is _ScanState.OUTSIDE_SVG:
            match = SVG_OPEN_TAG.search(html, position)
            if match is None:
                output.append(html[position:])
                break
            output.append(html[position : match.start()])
            position = match.start()
            state = _ScanState.INSIDE_SVG
        else:
            # Searched from the opening tag itself, not from its end.
            close_at = html.find(SVG_CLOSE_TAG, position)
            if close_at == -1:
                output.append(html[position:])
                break
            end = close_at + len(SVG_CLOSE_TAG)
            output.append(html[position:end].replace(UNCLOSED_BREAK, SELF_CLOSED_BREAK))
            position = end
            state = _ScanState.OUTSIDE_SVG

    return "".join(output)


class SVGMarkupSanitizer:
    """Sanitizer stage of the render pipeline."""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(component="sanitizer")  # structlog.BoundLoggerBase

    def sanitize(self, html: str) -> str:
        """Sanitize rendered HTML, logging how many line breaks were repaired."""
        sanitized = sanitize_svg_markup(html)
        repaired = sanitized.count(SELF_CLOSED_BREAK) - html.count(SELF_CLOSED_BREAK)
        self.logger.debug(
            "Sanitized rendered markup",
            html_length=len(html),
            repaired_line_breaks=repaired,
        )
        return sanitized
