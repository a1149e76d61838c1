"""
Command Line Interface
======================

``spec2html [source] [destination]`` converts a document to static HTML.

Examples:
    spec2html input.html output.html                      # Output to a file.
    spec2html http://example.com/spec.html stdout         # Output to stdout.
    spec2html http://example.com/spec.html out.html -e -w # Halt on errors or warning.
    spec2html --src http://example.com/spec.html --out spec.html
    spec2html --localhost index.html out.html             # Use a local web server.
"""

import argparse
import asyncio
import sys
from typing import List, NoReturn, Optional

from spec2html import __version__
from spec2html.config.logging import setup_logging
from spec2html.config.settings import get_settings
from spec2html.core.rendering.diagnostics import DiagnosticReporter
from spec2html.core.rendering.orchestrator import RenderOrchestrator
from spec2html.core.rendering.renderer import BaseRenderer
from spec2html.models.schemas import ConversionRequest


class UsageError(Exception):
    """Raised for malformed command line arguments."""

    pass


class ArgumentParser(argparse.ArgumentParser):
    """Argument parser that raises on usage errors instead of exiting."""

    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser; defaults come from settings."""
    settings = get_settings()
    parser = ArgumentParser(
        prog="spec2html",
        description="Converts a document source file to HTML and writes to destination.",
        epilog=__doc__.split("Examples:", 1)[1],
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("source", nargs="?", help="URL or path of the source document.")
    parser.add_argument(
        "destination", nargs="?", help="'stdout', an output file path, or omit to discard."
    )
    # For backward compatibility
    parser.add_argument("-s", "--src", help="URL to the source file.")
    # For backward compatibility
    parser.add_argument("-o", "--out", help="Path to output file.")
    parser.add_argument(
        "-t",
        "--timeout",
        type=float,
        default=settings.render_timeout,
        help="How long to wait before timing out (in seconds).",
    )
    parser.add_argument(
        "--use-local",
        action="store_true",
        help="Use the locally installed render logic instead of the one in the document.",
    )
    parser.add_argument(
        "-e", "--haltonerror", action="store_true", help="Abort if the document has any errors."
    )
    parser.add_argument(
        "-w",
        "--haltonwarn",
        action="store_true",
        help="Abort if rendering generates warnings (or errors).",
    )
    parser.add_argument(
        "--sandbox",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Disable Chromium sandboxing if needed, with --no-sandbox.",
    )
    parser.add_argument(
        "--disable-sandbox", action="store_true", help="Alias of --no-sandbox."
    )
    parser.add_argument(
        "--devtools", action="store_true", help="Enable debugging and show Chrome's DevTools."
    )
    parser.add_argument("--verbose", action="store_true", help="Log processing status.")
    parser.add_argument(
        "--localhost", action="store_true", help="Spin up a local server to perform processing."
    )
    parser.add_argument(
        "--port", default=settings.server_port, help="Port override for --localhost."
    )
    parser.add_argument("-v", "--version", action="version", version=__version__)
    return parser


def main(argv: Optional[List[str]] = None, renderer: Optional[BaseRenderer] = None) -> int:
    """
    Run the CLI.

    Args:
        argv: Arguments without the program name (default: sys.argv[1:])
        renderer: Renderer override

    Returns:
        Process exit code
    """
    parser = build_parser()
    try:
        opts, unknown = parser.parse_known_args(argv)
    except UsageError as e:
        DiagnosticReporter().fatal(str(e))
        return 1

    reporter = DiagnosticReporter(verbose=opts.verbose)
    if unknown:
        reporter.fatal(f"Unknown option: {unknown[0]}")
        return 1

    source = opts.source or opts.src
    destination = opts.destination or opts.out
    if not source:
        reporter.fatal("A source is required.")
        parser.print_help(sys.stderr)
        return 1

    if opts.verbose:
        setup_logging("INFO")

    try:
        request = ConversionRequest(
            source=source,
            destination=destination,
            timeout=opts.timeout,
            use_local=opts.use_local,
            halt_on_error=opts.haltonerror,
            halt_on_warning=opts.haltonwarn,
            sandbox=opts.sandbox and not opts.disable_sandbox,
            devtools=opts.devtools,
            verbose=opts.verbose,
            use_local_server=opts.localhost,
            port=opts.port,
        )
        orchestrator = RenderOrchestrator(renderer=renderer, reporter=reporter)
        asyncio.run(orchestrator.run(request))
    except Exception as e:
        reporter.fatal(e)
        return 1
    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
