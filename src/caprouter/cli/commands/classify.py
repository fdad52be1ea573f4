"""Classify command for caprouter.

Shows where a request would be routed without executing it.
"""

from typing import Annotated

import typer

from caprouter.cli.commands import ConfigOption, load_cli_config, load_cli_registry
from caprouter.cli.formatters import console
from caprouter.cli.formatters.panels import decision_panel
from caprouter.cli.formatters.tables import matches_table
from caprouter.routing.router import Router


def classify(
    text: Annotated[str, typer.Argument(help="Request text to classify.")],
    config_path: ConfigOption = None,
    target: Annotated[
        str | None,
        typer.Option("--target", "-t", help="Explicit execution target; skips classification."),
    ] = None,
    domain: Annotated[
        str | None,
        typer.Option("--domain", "-d", help="Domain hint used to pick simple rules."),
    ] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the Decision as JSON.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show routing logs.")] = False,
) -> None:
    """Show the routing Decision for a request."""
    config = load_cli_config(config_path, verbose=verbose)
    registry = load_cli_registry(config)
    router = Router(registry, config=config)

    decision = router.classify(text, explicit_target=target, domain_hint=domain)

    if as_json:
        typer.echo(decision.to_json())
        return

    console.print(decision_panel(decision))
    if decision.matches:
        console.print(matches_table(decision.matches))


__all__ = ["classify"]
