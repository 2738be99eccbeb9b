"""CLI package - Typer-based developer tooling for calculator definitions.

Usage:
    python -m calcform.cli --help
    python -m calcform.cli show area-calculator
"""

from calcform.cli._app import app

# Register command modules (side-effect imports)
import calcform.cli.cmd_catalog  # noqa: F401
import calcform.cli.cmd_form  # noqa: F401

__all__ = ["app"]
