"""Form commands: check values locally or run a calculation end to end."""

from typing import Optional

import typer

from calcform.cli._app import app
from calcform.cli._common import (
    get_registry,
    load_settings,
    parse_assignments,
    require_definition,
    setup_logging,
)
from calcform.cli._console import console, output_errors, output_result, print_err, print_ok
from calcform.config.settings import EngineSettings
from calcform.runtime.coercion import coerce_payload
from calcform.runtime.dispatcher import HttpComputationDispatcher
from calcform.runtime.explanations import ResultExplanationLookup
from calcform.runtime.form_session import FormSession
from calcform.runtime.interpreter import ResultInterpreter
from calcform.runtime.validators import validate
from calcform.schemas.errors import AGGREGATE_ERROR_KEY, CoercionError, SchemaLoadError

SET_HELP = "Input value as name=value (repeatable, applied in order)"


def _build_session(
    settings: EngineSettings,
    calculator_id: str,
    locale: Optional[str],
    assignments: Optional[list[str]],
) -> FormSession:
    """Create a session and apply ``--set`` edits the way a user would."""
    definition = require_definition(get_registry(settings), calculator_id, locale)
    session = FormSession(
        definition,
        HttpComputationDispatcher.from_settings(settings),
        settings=settings,
        locale=locale,
    )

    try:
        edits = parse_assignments(assignments)
    except ValueError as e:
        print_err(str(e))
        raise SystemExit(1)

    for name, value in edits:
        try:
            session.on_change(name, value)
        except KeyError:
            print_err(f"Unknown input '{name}' for {calculator_id}")
            raise SystemExit(1)
        session.hydrate()
    return session


@app.command("check", help="Validate and coerce values without calling the endpoint.")
def check_values(
    ctx: typer.Context,
    calculator_id: str = typer.Argument(..., help="Calculator id"),
    assignments: Optional[list[str]] = typer.Option(None, "--set", "-s", help=SET_HELP),
    locale: Optional[str] = typer.Option(None, "--locale", "-l", help="Locale (default from settings)"),
):
    """Run validation and coercion on defaults plus the given edits."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])
    settings = load_settings()
    session = _build_session(settings, calculator_id, locale, assignments)

    errors = validate(session.definition.inputs, session.values)
    if errors:
        output_errors(errors, ctx=ctx)
        raise SystemExit(1)

    try:
        payload = coerce_payload(session.definition, session.values)
    except CoercionError as e:
        output_errors({AGGREGATE_ERROR_KEY: e.message}, ctx=ctx)
        raise SystemExit(1)

    output_result({"id": calculator_id, "payload": payload}, ctx=ctx, title="Payload")
    if not ctx.obj["json"]:
        print_ok("Values are valid")


@app.command("calculate", help="Submit values to the computation endpoint and show the result.")
def calculate(
    ctx: typer.Context,
    calculator_id: str = typer.Argument(..., help="Calculator id"),
    assignments: Optional[list[str]] = typer.Option(None, "--set", "-s", help=SET_HELP),
    locale: Optional[str] = typer.Option(None, "--locale", "-l", help="Locale (default from settings)"),
):
    """Validate, coerce, dispatch and interpret one calculation."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])
    settings = load_settings()
    session = _build_session(settings, calculator_id, locale, assignments)

    result = session.submit()
    if not result.ok:
        output_errors(result.errors, ctx=ctx)
        raise SystemExit(1)

    try:
        explanations = ResultExplanationLookup.from_yaml()
    except SchemaLoadError as e:
        print_err(e.message)
        raise SystemExit(1)

    interpreted = session.interpret(ResultInterpreter(settings, explanations))
    if interpreted is None:
        print_err("Calculation returned no outputs")
        raise SystemExit(1)

    data = interpreted.model_dump(mode="json", exclude_none=True)
    if ctx.obj["json"]:
        output_result(data, ctx=ctx)
        return

    view = interpreted.view
    if view.main is not None:
        unit = ""
        if view.main.unit_label and not view.main.formatted.endswith(view.main.unit_label):
            unit = f" {view.main.unit_label}"
        console.print(f"\n[bold]{view.main.label}:[/bold] [blue]{view.main.formatted}[/blue]{unit}")
    output_result(data["view"], ctx=ctx, title=interpreted.calculator_id)
    for explanation in interpreted.explanations:
        console.print(f"[dim]{explanation.output_name}:[/dim] {explanation.text}")
