"""
Validation Engine - checks candidate form values against declarative rules.

Checks run per field in a fixed order; the first failure wins:
1. Required (None, "", whitespace-only)
2. Well-formedness by kind (finite number, ISO date, known select option)
3. Range (inclusive ``validation.min`` / ``validation.max``)
4. Non-negative guard (``validation.min >= 0`` rejects negatives)
5. Custom predicate

``validation.message`` replaces every generated message on its field. A
custom predicate's string result is always used verbatim.

Synchronous and free of I/O, so it is safe to call on every keystroke.
"""

import math
import re
from datetime import date
from typing import Any, Dict, Iterable, Mapping, Optional

from calcform.runtime.visibility import as_comparable_text, is_visible
from calcform.schemas.calculator import InputField, InputKind

GENERIC_INVALID_MESSAGE = "Invalid value"

_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_blank(value: Any) -> bool:
    """True for None, empty string and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a form value to a finite float.

    Accepts ints, floats and decimal strings (surrounding whitespace
    allowed). Booleans, "inf", "nan" and other text are rejected.

    Returns:
        Float value, or None if the value is not a finite number
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not _NUMBER_PATTERN.match(text):
            return None
        number = float(text)
    else:
        return None

    if not math.isfinite(number):
        return None
    return number


def _format_bound(bound: float) -> str:
    if float(bound).is_integer():
        return str(int(bound))
    return str(bound)


def _is_iso_date(value: Any) -> bool:
    if isinstance(value, date):
        return True
    if not isinstance(value, str) or not _ISO_DATE_PATTERN.match(value.strip()):
        return False
    try:
        date.fromisoformat(value.strip())
    except ValueError:
        return False
    return True


def validate_one(input_field: InputField, value: Any) -> Optional[str]:
    """
    Validate a single field value.

    Args:
        input_field: Input definition
        value: Current value from the form

    Returns:
        Error message, or None if the value is valid
    """
    rule = input_field.validation
    label = input_field.label or input_field.name
    override = rule.message if rule is not None else None

    def fail(generated: str) -> str:
        return override or generated

    # 1. Required
    if is_blank(value):
        if rule is not None and rule.required:
            return fail(f"{label} is required")
        return None

    # 2. Well-formedness
    number: Optional[float] = None
    if input_field.kind == InputKind.NUMBER:
        number = parse_number(value)
        if number is None:
            return fail(f"{label} must be a valid number")
    elif input_field.kind == InputKind.DATE:
        if not _is_iso_date(value):
            return fail(f"{label} must be a valid date")
    elif input_field.kind == InputKind.SELECT:
        allowed = input_field.option_values()
        if as_comparable_text(value) not in allowed:
            return fail(f"{label} must be one of: {', '.join(allowed)}")

    if rule is None:
        return None

    if number is not None:
        # 3. Range
        if rule.min is not None and number < rule.min:
            return fail(f"{label} must be at least {_format_bound(rule.min)}")
        if rule.max is not None and number > rule.max:
            return fail(f"{label} must be at most {_format_bound(rule.max)}")

        # 4. Non-negative guard
        if rule.min is not None and rule.min >= 0 and number < 0:
            return fail(f"{label} cannot be negative")

    # 5. Custom predicate
    if rule.custom is not None:
        result = rule.custom(value)
        if result is not True:
            if isinstance(result, str):
                return result
            return fail(GENERIC_INVALID_MESSAGE)

    return None


def validate(inputs: Iterable[InputField], values: Mapping[str, Any]) -> Dict[str, str]:
    """
    Validate every visible input.

    Hidden inputs are skipped entirely, whatever stale value they hold.

    Args:
        inputs: Input definitions (usually ``definition.inputs``)
        values: Current form values

    Returns:
        Map of input name to error message (empty if all valid)
    """
    errors: Dict[str, str] = {}
    for field in inputs:
        if not is_visible(field, values):
            continue
        error = validate_one(field, values.get(field.name))
        if error is not None:
            errors[field.name] = error
    return errors

