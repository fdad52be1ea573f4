"""Config command group for caprouter.

Write the built-in rule set to disk and show the effective configuration.
"""

from pathlib import Path
from typing import Annotated

import typer

from caprouter.cli.commands import ConfigOption, load_cli_config
from caprouter.cli.formatters import console
from caprouter.cli.formatters.panels import print_error, print_info, print_success
from caprouter.cli.formatters.tables import create_key_value_table
from caprouter.config import get_config_dir, resolve_config_path, write_config
from caprouter.core.errors import ConfigError

app = typer.Typer(
    name="config",
    help="Manage caprouter configuration.",
    no_args_is_help=True,
)


@app.command()
def init(
    path: Annotated[
        Path | None,
        typer.Argument(help="Destination file (default: ~/.caprouter/rules.yaml)."),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing file."),
    ] = False,
) -> None:
    """Write the built-in rule set as an editable YAML file."""
    destination = path or get_config_dir() / "rules.yaml"
    try:
        written = write_config(destination, overwrite=force)
    except ConfigError as e:
        print_error(str(e))
        print_info("Use --force to overwrite the existing file.")
        raise typer.Exit(1) from e
    print_success(f"Wrote rule set to {written}")
    print_info(f"Point CAPROUTER_CONFIG at it or pass --config {written}")


@app.command()
def show(
    config_path: ConfigOption = None,
) -> None:
    """Display the effective routing and dispatch settings."""
    config = load_cli_config(config_path)
    source = resolve_config_path(config_path)
    data = {
        "source": source or "built-in rules",
        "version": config.version,
        "tiers": " < ".join(config.tiers),
        "confidence_threshold": config.routing.confidence_threshold,
        "timeout_seconds": config.dispatch.timeout_seconds,
        "max_retries": config.dispatch.max_retries,
        "post_processing": "on" if config.post_processing.enabled else "off",
        "rewriter_model": config.post_processing.rewriter_model or "-",
    }
    console.print(create_key_value_table(data, "Current Configuration"))


__all__ = ["app"]
