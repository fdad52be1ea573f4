"""caprouter CLI main entry point.

This module defines the main Typer application and registers
all commands for the caprouter CLI.
"""

from typing import Annotated

import typer

from caprouter import __version__
from caprouter.cli.commands import classify, config, route, rules
from caprouter.cli.formatters import console

app = typer.Typer(
    name="caprouter",
    help="caprouter - Capability-based task router",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("classify")(classify.classify)
app.command("route")(route.route)
app.add_typer(rules.app, name="rules")
app.add_typer(config.app, name="config")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]caprouter[/] version [green]{__version__}[/]")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
) -> None:
    """caprouter - Capability-based task router.

    Classifies requests with declarative rules and routes them inline or to
    a more capable execution target.

    Use [bold cyan]caprouter COMMAND --help[/] for command-specific help.
    """
    pass


__all__ = ["app", "main"]
