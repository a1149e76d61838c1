"""
Unit Tests for Models and Settings
==================================
"""

import pytest
from pydantic import ValidationError

from spec2html.config.settings import Settings, get_settings, reload_settings
from spec2html.core.errors import PipelineError, PolicyHalt, RenderFailure
from spec2html.models.schemas import (
    ConversionRequest,
    DiagnosticCause,
    DiagnosticEvent,
    RenderOptions,
    Severity,
)


class TestSettings:
    """Test environment-driven configuration."""

    def test_defaults(self):
        settings = Settings()
        assert settings.render_timeout == 10
        assert settings.server_port == 3000
        assert settings.server_host == "127.0.0.1"
        assert settings.log_level == "WARNING"
        assert settings.environment == "testing"

    def test_every_field_is_configuration(self):
        """Settings only carry values the tool reads; the version lives in the package."""
        assert set(Settings.model_fields) == {
            "environment",
            "log_level",
            "log_file",
            "render_timeout",
            "local_render_script",
            "render_script_pattern",
            "playwright_headless",
            "server_host",
            "server_port",
        }

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("SPEC2HTML_SERVER_PORT", "8081")
        monkeypatch.setenv("SPEC2HTML_LOG_LEVEL", "debug")
        settings = reload_settings()
        assert settings.server_port == 8081
        assert settings.log_level == "DEBUG"
        assert get_settings() is settings

    @pytest.mark.parametrize(
        "field,value",
        [
            ("environment", "staging"),
            ("log_level", "LOUD"),
            ("server_port", 0),
            ("server_port", 70000),
            ("render_timeout", 0),
        ],
    )
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            Settings(**{field: value})


class TestDiagnosticEvent:
    """Test diagnostic event models."""

    def test_defaults(self):
        event = DiagnosticEvent(message="x")
        assert event.severity is Severity.WARNING
        assert event.plugin is None
        assert event.element_count is None

    def test_element_count(self):
        assert DiagnosticEvent(message="x", elements=["a", "b"]).element_count == 2
        assert DiagnosticEvent(message="x", elements=[]).element_count is None

    def test_frozen(self):
        event = DiagnosticEvent(message="x", cause=DiagnosticCause(message="y"))
        with pytest.raises(ValidationError):
            event.message = "changed"
        with pytest.raises(ValidationError):
            event.cause.message = "changed"


class TestRenderOptions:
    """Test render session options."""

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            RenderOptions(timeout_ms=0)

    def test_default_callbacks_are_noops(self):
        options = RenderOptions(timeout_ms=100)
        options.on_progress("x", 1)
        options.on_warning(DiagnosticEvent(message="w"))
        options.on_error(DiagnosticEvent(message="e"))

    def test_callbacks_excluded_from_dump(self):
        dumped = RenderOptions(timeout_ms=100).model_dump()
        assert "on_progress" not in dumped
        assert dumped["timeout_ms"] == 100

    def test_timeout_seconds(self):
        assert RenderOptions(timeout_ms=1500).timeout_seconds == 1.5


class TestConversionRequest:
    """Test invocation requests."""

    def test_defaults_from_settings(self, monkeypatch):
        monkeypatch.setenv("SPEC2HTML_RENDER_TIMEOUT", "3")
        reload_settings()
        request = ConversionRequest(source="index.html")
        assert request.timeout == 3
        assert request.port == 3000
        assert request.sandbox is True
        assert request.destination is None

    @pytest.mark.parametrize("timeout,expected", [(10, 10000), (0.25, 250), (0.0001, 1)])
    def test_timeout_ms(self, timeout, expected):
        assert ConversionRequest(source="x", timeout=timeout).timeout_ms == expected

    @pytest.mark.parametrize("timeout", [0, -1])
    def test_timeout_must_be_positive(self, timeout):
        with pytest.raises(ValidationError):
            ConversionRequest(source="x", timeout=timeout)


class TestErrors:
    """Test pipeline error types."""

    def test_hint_is_appended(self):
        error = RenderFailure("Failed.", hint="Try again.")
        assert str(error) == "Failed. Try again."
        assert error.message == "Failed."
        assert error.hint == "Try again."

    def test_policy_halt(self):
        error = PolicyHalt("Errors")
        assert isinstance(error, PipelineError)
        assert str(error) == "Errors found during processing."
        assert error.threshold == "Errors"
