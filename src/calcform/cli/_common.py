"""Shared CLI utilities."""

import logging
from typing import Optional

from rich.logging import RichHandler

from calcform.config.settings import EngineSettings, get_engine_settings
from calcform.runtime.schema_loader import CalculatorRegistry
from calcform.schemas.calculator import CalculatorDefinition
from calcform.schemas.errors import SchemaLoadError

logger = logging.getLogger(__name__)


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging with Rich handler."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = RichHandler(
        console=None,  # Use default stderr
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Suppress noisy third-party loggers
    for name in ("urllib3", "urllib3.connectionpool", "requests"):
        logging.getLogger(name).setLevel(logging.WARNING)


def parse_assignments(assignments: Optional[list[str]]) -> list[tuple[str, str]]:
    """Parse ``--set name=value`` options, keeping their order.

    Raises:
        ValueError: If an assignment has no ``=`` or an empty name.
    """
    parsed = []
    for item in assignments or []:
        name, sep, value = item.partition("=")
        name = name.strip()
        if not sep or not name:
            raise ValueError(f"Expected name=value, got '{item}'")
        parsed.append((name, value))
    return parsed


def load_settings() -> EngineSettings:
    """Load engine settings or exit with an error."""
    try:
        return get_engine_settings()
    except ValueError as e:
        from calcform.cli._console import print_err
        print_err(str(e))
        raise SystemExit(1)


def get_registry(settings: EngineSettings) -> CalculatorRegistry:
    return CalculatorRegistry(settings.definitions_dir, default_locale=settings.default_locale)


def require_definition(
    registry: CalculatorRegistry,
    calculator_id: str,
    locale: Optional[str] = None,
) -> CalculatorDefinition:
    """Look up a calculator or exit with an error.

    Raises:
        SystemExit: If the calculator is missing, disabled or invalid.
    """
    from calcform.cli._console import print_err

    try:
        definition = registry.get_by_id(calculator_id, locale)
    except SchemaLoadError as e:
        print_err(e.message)
        raise SystemExit(1)

    if definition is None:
        print_err(f"Calculator not found: {calculator_id}")
        raise SystemExit(1)
    return definition
