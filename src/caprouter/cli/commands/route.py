"""Route command for caprouter.

Classifies a request and executes it on the chosen target. The CLI has no
inline handler of its own: inline decisions echo the request back so the
caller can handle it locally.
"""

import asyncio
from typing import Annotated

import typer

from caprouter.backends import BackendRegistry, CallableBackend, build_backends
from caprouter.cli.commands import ConfigOption, load_cli_config, load_cli_registry
from caprouter.cli.formatters import console
from caprouter.cli.formatters.panels import decision_panel, print_error, print_warning
from caprouter.cli.formatters.tables import attempts_table
from caprouter.config.models import RouterConfig
from caprouter.core.errors import BackendUnavailable
from caprouter.routing.router import Router


def _echo(text: str) -> str:
    return text


def _cli_backends(config: RouterConfig) -> BackendRegistry:
    inline = {
        t.backend: CallableBackend(_echo, name="echo")
        for t in config.targets.values()
        if t.inline
    }
    return build_backends(config).merged(BackendRegistry(inline))


def route(
    text: Annotated[str, typer.Argument(help="Request text to route and execute.")],
    config_path: ConfigOption = None,
    target: Annotated[
        str | None,
        typer.Option("--target", "-t", help="Explicit execution target; skips classification."),
    ] = None,
    domain: Annotated[
        str | None,
        typer.Option("--domain", "-d", help="Domain hint used to pick simple rules."),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show routing logs.")] = False,
) -> None:
    """Classify a request and execute it on the chosen target."""
    config = load_cli_config(config_path, verbose=verbose)
    registry = load_cli_registry(config)
    router = Router(registry, _cli_backends(config), config)

    result = asyncio.run(router.aroute(text, explicit_target=target, domain_hint=domain))

    if result.is_err:
        error = result.error
        if error.decision is not None:
            console.print(decision_panel(error.decision))
        if error.attempts:
            console.print(attempts_table(error.attempts))
        if isinstance(error, BackendUnavailable):
            print_error(error.message, title="Backend unavailable")
        else:
            print_error(error.message, title="Dispatch failed")
        raise typer.Exit(1)

    outcome = result.value
    console.print(decision_panel(outcome.decision))
    if verbose or outcome.degraded:
        console.print(attempts_table(outcome.attempts))
    if outcome.degraded:
        print_warning(f"Served by lower tier target '{outcome.executed_target}'", title="Degraded")
    console.print(outcome.output)


__all__ = ["route"]
