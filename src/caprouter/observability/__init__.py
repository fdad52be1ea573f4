"""Observability module for caprouter.

Structured logging (structlog) shared by the registry, routing pipeline,
dispatcher and CLI.
"""

from caprouter.observability.logging import (
    LoggingConfig,
    LogMode,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    reset_logging,
    set_console_logging,
    unbind_context,
)

__all__ = [
    "LoggingConfig",
    "LogMode",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "reset_logging",
    "set_console_logging",
    "unbind_context",
]
