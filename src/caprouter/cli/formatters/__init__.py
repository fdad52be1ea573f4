"""Rich formatters for CLI output.

This module provides the shared Console instance used by every caprouter
command.

Semantic Colors:
- green: success, inline handling
- yellow: warning, escalation
- red: error
- blue: info, delegation
"""

from rich.console import Console
from rich.theme import Theme

CAPROUTER_THEME = Theme(
    {
        "success": "green",
        "warning": "yellow",
        "error": "red",
        "info": "blue",
        "muted": "dim",
        "highlight": "bold cyan",
        "inline": "bold green",
        "delegate": "bold blue",
    }
)

# Shared Console instance for all CLI modules
console = Console(theme=CAPROUTER_THEME)

__all__ = ["console", "CAPROUTER_THEME"]
