"""Rich panels for messages and routing decisions."""

from rich.panel import Panel

from caprouter.cli.formatters import console
from caprouter.routing.decision import Decision
from caprouter.routing.models import Mode

_STYLES = {
    "info": "blue",
    "warning": "yellow",
    "error": "red",
    "success": "green",
}


def message_panel(
    message: str,
    style: str,
    title: str | None = None,
    *,
    expand: bool = False,
) -> Panel:
    """Create a panel with one of the semantic styles (info, warning, error, success).

    Args:
        message: Message content to display.
        style: Semantic style name.
        title: Panel title; defaults to the capitalized style name.
        expand: Whether to expand panel to full width.

    Returns:
        Configured Rich Panel.
    """
    color = _STYLES[style]
    return Panel(
        f"[{style}]{message}[/]",
        title=f"[bold {color}]{title or style.capitalize()}[/]",
        border_style=color,
        expand=expand,
    )


def decision_panel(decision: Decision) -> Panel:
    """Summarize a Decision: mode, target, tier, confidence and escalation."""
    mode_style = "inline" if decision.mode == Mode.INLINE else "delegate"
    lines = [
        f"[{mode_style}]{decision.mode.value.upper()}[/] -> [highlight]{decision.target or '-'}[/]"
        f" [muted]({decision.tier or 'unknown tier'})[/]",
        f"confidence: {decision.confidence:.2f}",
        f"classified as: {decision.kind.value}"
        + (f" in [highlight]{decision.domain}[/]" if decision.domain else ""),
    ]
    if decision.escalation:
        origin = decision.classified_target or "no classification"
        lines.append(f"[warning]escalated[/] from {origin}")
    if decision.reason:
        lines.append(f"[muted]{decision.reason}[/]")
    return Panel(
        "\n".join(lines),
        title="[bold cyan]Decision[/]",
        border_style="cyan",
        expand=False,
    )


def print_info(message: str, title: str = "Info") -> None:
    console.print(message_panel(message, "info", title))


def print_warning(message: str, title: str = "Warning") -> None:
    console.print(message_panel(message, "warning", title))


def print_error(message: str, title: str = "Error") -> None:
    console.print(message_panel(message, "error", title))


def print_success(message: str, title: str = "Success") -> None:
    console.print(message_panel(message, "success", title))


__all__ = [
    "decision_panel",
    "message_panel",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]
