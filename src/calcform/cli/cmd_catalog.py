"""Catalog commands: list, show and lint calculator definitions."""

from typing import Optional

import typer

from calcform.cli._app import app
from calcform.cli._common import get_registry, load_settings, require_definition, setup_logging
from calcform.cli._console import console, output_result, output_table, print_err, print_ok, print_warn
from calcform.runtime.defaults import DefaultResolver
from calcform.runtime.schema_loader import load_definition
from calcform.runtime.visibility import find_visibility_chains, is_visible
from calcform.schemas.errors import SchemaLoadError


@app.command("list", help="List enabled calculators.")
def list_calculators(
    ctx: typer.Context,
    locale: Optional[str] = typer.Option(None, "--locale", "-l", help="Locale (default from settings)"),
):
    """List enabled calculators with their category."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])
    settings = load_settings()
    registry = get_registry(settings)

    rows = []
    try:
        for calculator_id in registry.list_ids(locale):
            definition = registry.get_by_id(calculator_id, locale)
            rows.append({
                "id": definition.id,
                "category": definition.category.value,
                "title": definition.title,
                "locale": definition.content_locale or definition.locale,
            })
    except SchemaLoadError as e:
        print_err(e.message)
        raise SystemExit(1)

    output_table(rows, ctx=ctx, title=f"Calculators ({len(rows)})", columns=["id", "category", "title", "locale"])


@app.command("show", help="Show a calculator's inputs with resolved defaults.")
def show_calculator(
    ctx: typer.Context,
    calculator_id: str = typer.Argument(..., help="Calculator id"),
    locale: Optional[str] = typer.Option(None, "--locale", "-l", help="Locale (default from settings)"),
):
    """Show inputs, initial values, visibility and bounds."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])
    settings = load_settings()
    definition = require_definition(get_registry(settings), calculator_id, locale)

    values = DefaultResolver().initial_values(definition)

    rows = []
    for field in definition.inputs:
        low, high = field.effective_bounds()
        rows.append({
            "name": field.name,
            "kind": field.kind.value,
            "label": field.label,
            "value": values.get(field.name, ""),
            "visible": is_visible(field, values),
            "required": field.is_required,
            "bounds": "" if low is None and high is None else f"[{'' if low is None else low}, {'' if high is None else high}]",
            "visible_if": f"{field.visible_if.field}={field.visible_if.value}" if field.visible_if else "",
        })

    if ctx.obj["json"]:
        output_result(
            {
                "id": definition.id,
                "category": definition.category.value,
                "locale": definition.locale,
                "content_locale": definition.content_locale,
                "inputs": rows,
                "outputs": [output.model_dump(mode="json", exclude_none=True) for output in definition.outputs],
            },
            ctx=ctx,
        )
        return

    console.print(f"\n[bold]{definition.title or definition.id}[/bold] ({definition.category.value})")
    if definition.content_locale and definition.content_locale != definition.locale:
        print_warn(f"Not translated to '{definition.locale}', showing '{definition.content_locale}'")
    output_table(rows, ctx=ctx, title="Inputs")
    output_table(
        [
            {"name": o.name, "label": o.label, "format": o.format_type.value if o.format_type else "", "unit": o.unit_label or ""}
            for o in definition.outputs
        ],
        ctx=ctx,
        title="Outputs",
    )


@app.command("lint", help="Load every definition and report problems.")
def lint_definitions(ctx: typer.Context):
    """Validate all definition files; exit 1 if any is invalid."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])
    settings = load_settings()
    registry = get_registry(settings)

    rows = []
    error_count = 0
    for locale, path in registry.iter_files():
        try:
            definition = load_definition(path)
        except SchemaLoadError as e:
            rows.append({"file": f"{locale}/{path.name}", "level": "error", "message": e.message})
            error_count += 1
            continue

        if definition.id != path.stem:
            rows.append({
                "file": f"{locale}/{path.name}",
                "level": "error",
                "message": f"id '{definition.id}' does not match file name",
            })
            error_count += 1

        for name, controller in find_visibility_chains(definition.inputs):
            rows.append({
                "file": f"{locale}/{path.name}",
                "level": "warning",
                "message": f"'{name}' depends on conditional input '{controller}'",
            })

    if ctx.obj["json"]:
        output_result({"issues": rows, "errors": error_count}, ctx=ctx)
    elif rows:
        output_table(rows, ctx=ctx, title="Definition issues")

    if error_count:
        print_err(f"{error_count} invalid definition(s)")
        raise SystemExit(1)
    print_ok("All definitions are valid")
