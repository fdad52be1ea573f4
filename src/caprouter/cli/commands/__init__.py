"""CLI command implementations for caprouter.

This module contains the command implementations:
- classify: Show the routing Decision for a request
- route: Classify and execute a request
- rules: Inspect and validate rule sets
- config: Write and show configuration
"""

from pathlib import Path
from typing import Annotated

import typer

from caprouter.cli.formatters.panels import print_error
from caprouter.config import load_config
from caprouter.config.models import RouterConfig
from caprouter.core.errors import ConfigError
from caprouter.observability.logging import configure_logging, set_console_logging
from caprouter.routing.registry import RuleRegistry

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Rule set YAML (defaults to CAPROUTER_CONFIG or built-in rules).",
    ),
]


def load_cli_config(config_path: Path | None, *, verbose: bool = False) -> RouterConfig:
    """Load configuration and set up logging for a CLI command.

    Raises:
        typer.Exit: With code 2 if the configuration is invalid.
    """
    try:
        config = load_config(config_path)
    except ConfigError as e:
        print_error(str(e), title="Configuration error")
        raise typer.Exit(2) from e
    configure_logging(config.logging)
    set_console_logging(verbose)
    return config


def load_cli_registry(config: RouterConfig) -> RuleRegistry:
    """Build the rule registry, exiting with code 2 on validation errors."""
    result = RuleRegistry.load(config)
    if result.is_err:
        print_error(str(result.error), title="Invalid rule set")
        raise typer.Exit(2)
    return result.value
