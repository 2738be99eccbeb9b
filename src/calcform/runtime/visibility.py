"""
Visibility Resolver - decides which inputs are active for the current values.

A rule ``{field, value}`` makes its input visible iff the text form of the
controlling field's current value equals the text form of ``value``.

Rules are single-level. The controlling field's own visibility is never
consulted, so a chain (A depends on B, B depends on C) is evaluated one hop
at a time. ``find_visibility_chains`` reports such chains so definition
authors can flatten them.

Everything here is pure: no caching, re-evaluated on every value change.
"""

from typing import Any, Iterable, List, Mapping, Optional, Tuple

from calcform.schemas.calculator import InputField


def as_comparable_text(value: Any) -> Optional[str]:
    """
    Render a value the way the page runtime stringifies it for comparison.

    Integral floats drop their fraction (5.0 -> "5") and booleans are
    lowercase, so YAML-typed rule values compare equal to form strings.

    Args:
        value: Current field value or rule value

    Returns:
        Comparable text, or None for a missing value (never matches)
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def is_visible(input_field: InputField, current_values: Mapping[str, Any]) -> bool:
    """Return True when the input should be rendered, validated and sent."""
    rule = input_field.visible_if
    if rule is None:
        return True

    current = as_comparable_text(current_values.get(rule.field))
    if current is None:
        return False
    return current == as_comparable_text(rule.value)


def visible_inputs(inputs: Iterable[InputField], current_values: Mapping[str, Any]) -> List[InputField]:
    """Filter inputs to the active subset, preserving declaration order."""
    return [field for field in inputs if is_visible(field, current_values)]


def dependents_of(inputs: Iterable[InputField], controller: str) -> List[InputField]:
    """Inputs whose visibility rule references ``controller``."""
    return [
        field for field in inputs
        if field.visible_if is not None and field.visible_if.field == controller
    ]


def find_visibility_chains(inputs: Iterable[InputField]) -> List[Tuple[str, str]]:
    """
    Find rules whose controlling field is itself conditional.

    Returns:
        List of (input name, controller name) pairs forming a chain
    """
    inputs = list(inputs)
    conditional = {field.name for field in inputs if field.visible_if is not None}
    return [
        (field.name, field.visible_if.field)
        for field in inputs
        if field.visible_if is not None and field.visible_if.field in conditional
    ]
