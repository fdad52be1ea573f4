"""Structured logging configuration for caprouter.

Configures structlog with a shared processor chain. Development mode renders
human-readable console lines; production mode renders JSON. Console output
goes to stderr so CLI output on stdout stays machine-readable.

Standard log keys:
- request_id: Routing cycle identifier
- domain: Rule domain
- rule_id: Routing rule identifier
- target: Execution target identifier
- tier: Capability tier name

Event naming convention:
- dot.notation, format domain.entity.verb_past_tense
  (e.g. "registry.load.completed", "dispatch.attempt.failed")

Usage:
    from caprouter.observability import configure_logging, get_logger, bind_context

    configure_logging(LoggingConfig(mode=LogMode.PROD))
    log = get_logger(__name__)
    bind_context(request_id="req_123")
    log.info("routing.decision.made", target="debugger", tier="standard")
"""

from __future__ import annotations

from enum import Enum
import logging
from logging.handlers import TimedRotatingFileHandler
import os
from pathlib import Path
import sys
from typing import Any

from pydantic import BaseModel, Field
import structlog

from caprouter.core.security import (
    is_sensitive_field,
    is_sensitive_value,
    mask_api_key,
)


class LogMode(str, Enum):
    """Logging output mode."""

    DEV = "dev"
    PROD = "prod"


class LoggingConfig(BaseModel):
    """Configuration for structured logging.

    Attributes:
        mode: Output mode (dev for human-readable, prod for JSON).
        log_level: Minimum log level to output.
        log_dir: Directory for log files.
        max_log_days: Number of days to retain log files.
        enable_file_logging: Whether to write logs to files.
    """

    mode: LogMode = Field(default=LogMode.DEV)
    log_level: str = Field(default="INFO")
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".caprouter" / "logs")
    max_log_days: int = Field(default=7, ge=1, le=365)
    enable_file_logging: bool = Field(default=False)

    model_config = {"frozen": True}


_configured: bool = False
_current_config: LoggingConfig | None = None
_console_logging_enabled: bool = True

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def _get_mode_from_env() -> LogMode:
    """Read CAPROUTER_LOG_MODE; anything but "prod" means DEV."""
    env_mode = os.environ.get("CAPROUTER_LOG_MODE", "dev").lower()
    if env_mode == "prod":
        return LogMode.PROD
    return LogMode.DEV


def _get_log_level(level_str: str) -> int:
    return _LEVELS.get(level_str.upper(), logging.INFO)


def _setup_file_handler(config: LoggingConfig) -> TimedRotatingFileHandler | None:
    """Create a daily-rotating file handler, or None when file logging is off."""
    if not config.enable_file_logging:
        return None

    config.log_dir.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=str(config.log_dir / "caprouter.log"),
        when="midnight",
        interval=1,
        backupCount=config.max_log_days,
        encoding="utf-8",
        utc=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(_get_log_level(config.log_level))
    return handler


def _mask_value(key: str, value: Any) -> Any:
    if is_sensitive_field(key):
        return "<REDACTED>"
    if isinstance(value, str) and is_sensitive_value(value):
        return mask_api_key(value)
    if isinstance(value, dict):
        return {k: _mask_value(k, v) for k, v in value.items()}
    return value


def _mask_sensitive_data(
    _logger: Any,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Structlog processor that masks API keys and tokens in log entries."""
    for key, value in list(event_dict.items()):
        if key in ("event", "level", "timestamp", "filename", "lineno"):
            continue
        event_dict[key] = _mask_value(key, value)
    return event_dict


def _get_processors(mode: LogMode) -> list[Any]:
    """Build the processor chain ending in the renderer for ``mode``."""
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _mask_sensitive_data,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
        structlog.processors.format_exc_info,
    ]
    if mode == LogMode.DEV:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors.append(structlog.processors.JSONRenderer())
    return processors


def set_console_logging(enabled: bool) -> None:
    """Enable or disable console log output."""
    global _console_logging_enabled
    _console_logging_enabled = enabled


class _TeeLogger:
    """Writes rendered lines to stderr and, optionally, to a file handler."""

    def __init__(self, file_handler: TimedRotatingFileHandler | None = None) -> None:
        self._file_handler = file_handler

    def _log(self, message: str, level: int = logging.INFO) -> None:
        if _console_logging_enabled:
            print(message, file=sys.stderr)

        if self._file_handler:
            record = logging.LogRecord(
                name="caprouter",
                level=level,
                pathname="",
                lineno=0,
                msg=message,
                args=(),
                exc_info=None,
            )
            self._file_handler.emit(record)

    def msg(self, message: str) -> None:
        self._log(message, logging.INFO)

    def debug(self, message: str) -> None:
        self._log(message, logging.DEBUG)

    def info(self, message: str) -> None:
        self._log(message, logging.INFO)

    def warning(self, message: str) -> None:
        self._log(message, logging.WARNING)

    warn = warning

    def error(self, message: str) -> None:
        self._log(message, logging.ERROR)

    exception = error

    def critical(self, message: str) -> None:
        self._log(message, logging.CRITICAL)

    fatal = critical


class _TeeLoggerFactory:
    def __init__(self, file_handler: TimedRotatingFileHandler | None = None) -> None:
        self._file_handler = file_handler

    def __call__(self, *_args: Any) -> _TeeLogger:
        return _TeeLogger(self._file_handler)


def configure_logging(config: LoggingConfig | None = None) -> None:
    """Configure structlog for the application.

    Call once at startup (the CLI does this). Reconfiguring replaces the
    previous handlers.

    Args:
        config: Logging configuration. If None, defaults are used with the
            mode taken from CAPROUTER_LOG_MODE.
    """
    global _configured, _current_config

    if config is None:
        config = LoggingConfig(mode=_get_mode_from_env())

    _current_config = config
    log_level = _get_log_level(config.log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    file_handler = _setup_file_handler(config)
    if file_handler:
        root_logger.addHandler(file_handler)

    structlog.configure(
        processors=_get_processors(config.mode),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=_TeeLoggerFactory(file_handler),
        cache_logger_on_first_use=True,
    )

    _configured = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a bound logger, configuring defaults on first use.

    Args:
        name: Optional logger name, usually ``__name__``.
    """
    if not _configured:
        configure_logging()

    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables included in every subsequent log entry.

    Never bind sensitive data (API keys, credentials).
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove context variables from the logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


def get_current_config() -> LoggingConfig | None:
    """Return the active LoggingConfig, or None if not configured."""
    return _current_config


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _configured


def reset_logging() -> None:
    """Reset module state and structlog defaults (for tests)."""
    global _configured, _current_config
    _configured = False
    _current_config = None
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
