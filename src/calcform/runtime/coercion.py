"""
Type Coercion Pass - turns validated form values into the computation payload.

Only visible inputs are sent. Number inputs become floats (blank -> 0).
A non-finite number here means validation and submission disagree, which is
a programming error rather than a user mistake, so it aborts the whole
submission with one aggregate ``CoercionError``.
"""

import logging
from typing import Any, Dict, Mapping, Union

from calcform.runtime.validators import is_blank, parse_number
from calcform.runtime.visibility import is_visible
from calcform.schemas.calculator import CalculatorDefinition, InputKind
from calcform.schemas.errors import CoercionError

logger = logging.getLogger(__name__)

PayloadValue = Union[float, str]


def coerce_payload(definition: CalculatorDefinition, values: Mapping[str, Any]) -> Dict[str, PayloadValue]:
    """
    Build the typed payload for the computation endpoint.

    Args:
        definition: Calculator definition
        values: Current (already validated) form values

    Returns:
        Map of visible input name to float (number inputs) or string

    Raises:
        CoercionError: If a number input does not coerce to a finite float
    """
    payload: Dict[str, PayloadValue] = {}

    for field in definition.inputs:
        if not is_visible(field, values):
            continue

        value = values.get(field.name)

        if field.kind == InputKind.NUMBER:
            if is_blank(value):
                payload[field.name] = 0.0
                continue
            number = parse_number(value)
            if number is None:
                label = field.label or field.name
                logger.error(
                    f"Coercion failed for '{field.name}' of {definition.id} after validation: {value!r}"
                )
                raise CoercionError(field.name, f"Invalid number for {label}")
            payload[field.name] = number
            continue

        if value is None:
            continue
        payload[field.name] = value if isinstance(value, str) else str(value)

    return payload
