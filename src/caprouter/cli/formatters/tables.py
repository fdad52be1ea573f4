"""Rich tables for rules, targets, matches and dispatch attempts."""

from collections.abc import Iterable
from typing import Any

from rich.table import Table

from caprouter.routing.cycle import AttemptRecord
from caprouter.routing.models import MatchResult
from caprouter.routing.registry import RuleRegistry


def create_table(
    title: str | None = None,
    *,
    show_header: bool = True,
    border_style: str = "blue",
) -> Table:
    """Create a Rich Table with consistent caprouter styling."""
    return Table(
        title=title,
        show_header=show_header,
        border_style=border_style,
        header_style="bold cyan",
        row_styles=["", "dim"],
    )


def create_key_value_table(data: dict[str, Any], title: str | None = None) -> Table:
    """Create a two-column table for key-value data.

    Example:
        table = create_key_value_table({"version": "1+3f2a"}, "Registry")
        console.print(table)
    """
    table = create_table(title, show_header=False)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(str(key), str(value))
    return table


def rules_table(registry: RuleRegistry, domain: str | None = None) -> Table:
    """One row per rule, in evaluation order within each domain."""
    table = create_table(f"Rules ({registry.version})")
    table.add_column("Domain", style="cyan", no_wrap=True)
    table.add_column("Rule", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Target")
    table.add_column("Predicates")

    domains = [domain] if domain else list(registry.domains)
    for name in domains:
        for rule in registry.rules_for(name):
            table.add_row(
                name,
                rule.id,
                rule.kind.value,
                rule.target or registry.domain(name).inline_target or "-",
                "; ".join(p.describe() for p in rule.predicates),
            )
    return table


def targets_table(registry: RuleRegistry) -> Table:
    table = create_table("Execution targets")
    table.add_column("Target", style="cyan", no_wrap=True)
    table.add_column("Tier")
    table.add_column("Backend")
    table.add_column("Flags")
    for target in sorted(registry.targets.values(), key=lambda t: (t.rank, t.order)):
        flags = [
            name
            for name, on in (("inline", target.inline), ("low-fidelity", target.low_fidelity))
            if on
        ]
        table.add_row(target.id, target.tier, target.backend, ", ".join(flags))
    return table


def matches_table(matches: Iterable[MatchResult]) -> Table:
    table = create_table("Matched rules")
    table.add_column("Rule", style="cyan", no_wrap=True)
    table.add_column("Domain")
    table.add_column("Kind")
    table.add_column("Strength", justify="right")
    table.add_column("Evidence")
    for m in matches:
        strength_style = "success" if m.strength >= 1.0 else "warning"
        table.add_row(
            m.rule_id,
            m.domain,
            m.kind.value,
            f"[{strength_style}]{m.strength:.2f}[/]",
            ", ".join(m.evidence),
        )
    return table


def attempts_table(attempts: Iterable[AttemptRecord | dict[str, Any]]) -> Table:
    table = create_table("Dispatch attempts")
    table.add_column("#", justify="right")
    table.add_column("Target", style="cyan")
    table.add_column("Result")
    table.add_column("Latency", justify="right")
    for item in attempts:
        record = item.to_dict() if isinstance(item, AttemptRecord) else item
        outcome = "[success]ok[/]" if record["succeeded"] else f"[error]{record['reason']}[/]"
        label = f"{record['target']} (degraded)" if record["degraded"] else record["target"]
        table.add_row(str(record["attempt"]), label, outcome, f"{record['latency_ms']} ms")
    return table


__all__ = [
    "attempts_table",
    "create_key_value_table",
    "create_table",
    "matches_table",
    "rules_table",
    "targets_table",
]
