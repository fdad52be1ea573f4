"""Rules command group for caprouter.

Inspect the loaded rule set and validate rule files before deploying them.
"""

from pathlib import Path
from typing import Annotated

import typer

from caprouter.cli.commands import ConfigOption, load_cli_config, load_cli_registry
from caprouter.cli.formatters import console
from caprouter.cli.formatters.panels import print_error, print_success
from caprouter.cli.formatters.tables import rules_table, targets_table

app = typer.Typer(
    name="rules",
    help="Inspect and validate routing rules.",
    no_args_is_help=True,
)


@app.command("list")
def list_rules(
    config_path: ConfigOption = None,
    domain: Annotated[
        str | None,
        typer.Option("--domain", "-d", help="Only show this domain."),
    ] = None,
) -> None:
    """List rules and execution targets in evaluation order."""
    config = load_cli_config(config_path)
    registry = load_cli_registry(config)
    if domain is not None and not registry.has_domain(domain):
        print_error(f"Unknown domain '{domain}'. Known: {', '.join(registry.domains)}")
        raise typer.Exit(1)
    console.print(rules_table(registry, domain))
    console.print(targets_table(registry))


@app.command()
def validate(
    config_path: Annotated[Path, typer.Argument(help="Rule set YAML to validate.")],
) -> None:
    """Validate a rule set without routing anything.

    Exits with code 2 when the file is malformed or the rules are invalid.
    """
    config = load_cli_config(config_path)
    registry = load_cli_registry(config)
    rule_count = len(registry.all_rules())
    print_success(
        f"{config_path}: {rule_count} rules in {len(registry.domains)} domains, "
        f"{len(registry.targets)} targets (version {registry.version})",
        title="Valid",
    )


__all__ = ["app"]
