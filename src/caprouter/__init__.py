"""caprouter - Capability-based task router.

Classifies free-text requests with declarative rules, decides whether to
handle them inline or delegate them to a more capable execution target,
and escalates when the classification is uncertain.

Example:
    # Using CLI
    caprouter classify "Payment flow occasionally fails"
    caprouter rules validate rules.yaml

    # Using Python
    from caprouter.config import load_config
    from caprouter.routing import Router
"""

__version__ = "0.1.0"

__all__ = ["__version__", "main"]


def main() -> None:
    """Main entry point for the caprouter CLI.

    This function invokes the Typer app from caprouter.cli.main.
    """
    from caprouter.cli.main import app

    app()
