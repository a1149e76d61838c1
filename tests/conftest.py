"""
Test Configuration
==================

Pytest configuration with fixtures shared by all test types.
"""

import io
import os

os.environ.setdefault("SPEC2HTML_ENVIRONMENT", "testing")

import pytest
from typing import Generator
from rich.console import Console

from spec2html.config.settings import Settings, reload_settings
from spec2html.core.rendering.diagnostics import DiagnosticReporter, PlainMarkdownFormatter

from tests.utils.helpers import get_free_port
from tests.utils.mocks import MockRenderer, RecordingWriter


@pytest.fixture(autouse=True)
def test_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[Settings, None, None]:
    """Fresh testing settings for every test."""
    monkeypatch.setenv("SPEC2HTML_ENVIRONMENT", "testing")
    settings = reload_settings()
    yield settings
    monkeypatch.undo()
    reload_settings()


@pytest.fixture
def console_buffer() -> io.StringIO:
    """Captured terminal output."""
    return io.StringIO()


@pytest.fixture
def console(console_buffer: io.StringIO) -> Console:
    """Plain, wide console writing into ``console_buffer``."""
    return Console(file=console_buffer, width=200, no_color=True, highlight=False)


@pytest.fixture
def reporter(console: Console) -> DiagnosticReporter:
    """Non-verbose reporter writing plain text."""
    return DiagnosticReporter(verbose=False, console=console, formatter=PlainMarkdownFormatter())


@pytest.fixture
def verbose_reporter(console: Console) -> DiagnosticReporter:
    """Verbose reporter writing plain text."""
    return DiagnosticReporter(verbose=True, console=console, formatter=PlainMarkdownFormatter())


@pytest.fixture
def mock_renderer() -> MockRenderer:
    """Renderer returning canned HTML."""
    return MockRenderer()


@pytest.fixture
def recording_writer() -> RecordingWriter:
    """Writer double."""
    return RecordingWriter()


@pytest.fixture
def free_port() -> int:
    """A currently unused TCP port."""
    return get_free_port()


@pytest.fixture
def workdir(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Run the test from an empty temporary working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path
