"""Unit tests for caprouter.observability.logging module."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any
from unittest.mock import patch

from pydantic import ValidationError as PydanticValidationError
import pytest

from caprouter.backends.base import BackendRegistry
from caprouter.config.models import get_default_config
from caprouter.observability.logging import (
    LoggingConfig,
    LogMode,
    bind_context,
    clear_context,
    configure_logging,
    get_current_config,
    get_logger,
    is_configured,
    set_console_logging,
    unbind_context,
)
from caprouter.routing.registry import RuleRegistry
from caprouter.routing.router import Router


@pytest.fixture(autouse=True)
def console_logging(quiet_logging: Any) -> Any:
    """Re-enable console output after the shared quiet_logging fixture."""
    set_console_logging(True)
    yield
    clear_context()


def _json_lines(captured: str) -> list[dict[str, Any]]:
    return [json.loads(line) for line in captured.splitlines() if line.startswith("{")]


class TestLoggingConfig:
    """Test LoggingConfig model."""

    def test_default_config(self) -> None:
        """Defaults are dev mode, INFO level, no file logging."""
        config = LoggingConfig()
        assert config.mode == LogMode.DEV
        assert config.log_level == "INFO"
        assert config.enable_file_logging is False
        assert config.log_dir == Path.home() / ".caprouter" / "logs"

    def test_config_is_frozen(self) -> None:
        """LoggingConfig is immutable."""
        config = LoggingConfig()
        with pytest.raises(PydanticValidationError):
            config.log_level = "DEBUG"  # type: ignore[misc]

    def test_max_log_days_bounds(self) -> None:
        """Retention must be between 1 and 365 days."""
        with pytest.raises(PydanticValidationError):
            LoggingConfig(max_log_days=0)
        with pytest.raises(PydanticValidationError):
            LoggingConfig(max_log_days=366)


class TestConfigureLogging:
    """Test configure_logging function."""

    def test_configure_sets_state(self) -> None:
        """configure_logging records the active configuration."""
        config = LoggingConfig(mode=LogMode.PROD, log_level="DEBUG")

        configure_logging(config)

        assert is_configured()
        assert get_current_config() == config

    def test_env_mode(self) -> None:
        """CAPROUTER_LOG_MODE=prod selects JSON output."""
        with patch.dict(os.environ, {"CAPROUTER_LOG_MODE": "prod"}):
            configure_logging()
        assert get_current_config().mode == LogMode.PROD  # type: ignore[union-attr]

    def test_env_mode_invalid_defaults_to_dev(self) -> None:
        """Unknown modes fall back to dev."""
        with patch.dict(os.environ, {"CAPROUTER_LOG_MODE": "loud"}):
            configure_logging()
        assert get_current_config().mode == LogMode.DEV  # type: ignore[union-attr]

    def test_get_logger_auto_configures(self) -> None:
        """get_logger configures defaults on first use."""
        assert not is_configured()
        get_logger(__name__)
        assert is_configured()


class TestOutput:
    """Test rendered log lines."""

    def test_prod_mode_json(self, capsys: Any) -> None:
        """Prod mode writes one JSON object per event to stderr."""
        configure_logging(LoggingConfig(mode=LogMode.PROD))

        get_logger("test").info("registry.load.completed", version="abc123")

        captured = capsys.readouterr()
        assert captured.out == ""
        (entry,) = _json_lines(captured.err)
        assert entry["event"] == "registry.load.completed"
        assert entry["version"] == "abc123"
        assert entry["level"] == "info"
        assert "timestamp" in entry

    def test_dev_mode_human_readable(self, capsys: Any) -> None:
        """Dev mode renders console lines, not JSON."""
        configure_logging(LoggingConfig(mode=LogMode.DEV))

        get_logger("test").info("dispatch.attempt.failed")

        err = capsys.readouterr().err
        assert "dispatch.attempt.failed" in err
        assert not err.lstrip().startswith("{")

    def test_level_filtering(self, capsys: Any) -> None:
        """Events below the configured level are dropped."""
        configure_logging(LoggingConfig(mode=LogMode.PROD, log_level="WARNING"))
        log = get_logger("test")

        log.info("dispatch.attempt.succeeded")
        log.warning("dispatch.tier.degraded")

        events = [e["event"] for e in _json_lines(capsys.readouterr().err)]
        assert events == ["dispatch.tier.degraded"]

    def test_console_logging_disabled(self, capsys: Any) -> None:
        """set_console_logging(False) silences stderr."""
        configure_logging(LoggingConfig(mode=LogMode.PROD))
        set_console_logging(False)

        get_logger("test").error("router.reload.rejected")

        assert capsys.readouterr().err == ""

    def test_sensitive_values_masked(self, capsys: Any) -> None:
        """API keys and secret-named fields never reach the output."""
        configure_logging(LoggingConfig(mode=LogMode.PROD))

        get_logger("test").info(
            "backend.litellm.configured",
            api_key="sk-1234567890abcdef",
            headers={"authorization": "Bearer abc"},
            endpoint_token_hint="sk-abcdefghijklmnop",
            model="openai/gpt-4o",
        )

        (entry,) = _json_lines(capsys.readouterr().err)
        assert entry["api_key"] == "<REDACTED>"
        assert entry["headers"]["authorization"] == "<REDACTED>"
        assert entry["endpoint_token_hint"] == "<REDACTED>"
        assert entry["model"] == "openai/gpt-4o"


class TestContext:
    """Test context binding."""

    def test_bind_and_unbind(self, capsys: Any) -> None:
        """Bound keys appear until unbound."""
        configure_logging(LoggingConfig(mode=LogMode.PROD))
        log = get_logger("test")

        bind_context(request_id="req_abc", domain="bug-fix")
        log.info("router.decision.made")
        unbind_context("request_id")
        log.info("router.cycle.completed")

        first, second = _json_lines(capsys.readouterr().err)
        assert first["request_id"] == "req_abc"
        assert first["domain"] == "bug-fix"
        assert "request_id" not in second
        assert second["domain"] == "bug-fix"

    def test_routing_cycle_binds_request_id(
        self, capsys: Any, default_backend_registry: BackendRegistry
    ) -> None:
        """Every log line of a routing cycle carries its request id."""
        configure_logging(LoggingConfig(mode=LogMode.PROD))
        router = Router(
            RuleRegistry.load(get_default_config()).unwrap(),
            default_backend_registry,
            get_default_config(),
        )

        outcome = router.route("Payment flow occasionally fails").unwrap()

        err = capsys.readouterr().err
        assert "router.decision.made" in err
        assert outcome.decision.request_id in err


class TestFileLogging:
    """Test daily-rotating file output."""

    def test_log_file_written(self, tmp_path: Path) -> None:
        """Enabled file logging writes rendered lines to caprouter.log."""
        configure_logging(
            LoggingConfig(mode=LogMode.PROD, log_dir=tmp_path / "logs", enable_file_logging=True)
        )

        get_logger("test").info("registry.load.completed", version="v1")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = (tmp_path / "logs" / "caprouter.log").read_text(encoding="utf-8")
        assert "registry.load.completed" in content

    def test_no_file_when_disabled(self, tmp_path: Path) -> None:
        """Disabled file logging creates nothing."""
        configure_logging(LoggingConfig(log_dir=tmp_path / "logs", enable_file_logging=False))

        get_logger("test").info("registry.load.completed")

        assert not (tmp_path / "logs").exists()
