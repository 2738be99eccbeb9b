"""Rich console singleton and output helpers."""

import json as json_mod
import sys

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from calcform.schemas.errors import AGGREGATE_ERROR_KEY

# Status to stderr so it doesn't pollute piped JSON output
console = Console(stderr=True)

# Data output to stdout (pipeable to jq)
stdout_console = Console(file=sys.stdout)


def print_ok(msg: str) -> None:
    console.print(f"[green]✓[/green] {msg}")


def print_err(msg: str) -> None:
    console.print(f"[red]✗[/red] {msg}")


def print_warn(msg: str) -> None:
    console.print(f"[yellow]![/yellow] {msg}")


def output_result(data: dict, *, ctx: typer.Context, title: str = "") -> None:
    """Print a mapping as JSON (stdout) or as a Rich panel (stderr)."""
    if ctx.obj.get("json"):
        stdout_console.print_json(data=data)
        return

    formatted = json_mod.dumps(data, indent=2, ensure_ascii=False, default=str)
    if title:
        console.print(Panel(formatted, title=title, border_style="blue"))
    else:
        console.print(formatted)


def output_table(rows: list[dict], *, ctx: typer.Context, title: str = "", columns: list[str] | None = None) -> None:
    """Print rows as a JSON array or a Rich table."""
    if ctx.obj.get("json"):
        stdout_console.print_json(data=rows)
        return

    if not rows:
        console.print("[dim]No data[/dim]")
        return

    cols = columns or list(rows[0].keys())
    table = Table(title=title, show_lines=False)
    for col in cols:
        table.add_column(col)
    for row in rows:
        table.add_row(*[str(row.get(c, "")) for c in cols])
    console.print(table)


def output_errors(errors: dict[str, str], *, ctx: typer.Context) -> None:
    """Print a form error map: the aggregate error first, then field errors."""
    if ctx.obj.get("json"):
        stdout_console.print_json(data={"errors": errors})
        return

    if AGGREGATE_ERROR_KEY in errors:
        print_err(errors[AGGREGATE_ERROR_KEY])
    for name, message in errors.items():
        if name != AGGREGATE_ERROR_KEY:
            print_err(f"{name}: {message}")
