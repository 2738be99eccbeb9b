"""
Default Resolver - computes the initial value of every calculator input.

Precedence for one input:
1. ``input.default_value`` from the definition
2. a pluggable sensible-default lookup (heuristics keyed on the input name)
3. a kind fallback: first option for selects, today for dates, "" otherwise

``DefaultResolver.initial_values`` runs two passes. The second pass only
fills inputs made visible by values resolved in the first, so the
controlling field always has its value before its dependents are judged.
"""

import logging
from datetime import date, timedelta
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from calcform.runtime.visibility import is_visible
from calcform.schemas.calculator import CalculatorDefinition, InputField, InputKind

logger = logging.getLogger(__name__)

SensibleDefaultLookup = Callable[[InputField, Optional[str]], Any]

_DefaultValue = Union[int, float, Callable[[str], Union[int, float]]]

# Exact (lowercased) input names.
_EXACT_NUMBER_DEFAULTS: Dict[str, _DefaultValue] = {
    "years": 10,
    "height": 170,  # cm
    "weight": 70,  # kg
    "age": 30,
    "spacing": 200,  # rebar spacing, mm
}

# (keywords, excluded keywords, value), first match wins.
_NUMBER_KEYWORD_DEFAULTS: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...], _DefaultValue], ...] = (
    # Finance
    (("interestrate",), (), 5),
    (("loanterm",), (), 12),  # months
    (("investmentperiod",), (), 10),
    (("initialinvestment", "initialamount", "initialdeposit", "initialsavings"), (), 10000),
    (("monthlycontribution", "monthlydeposit", "monthlypayment"), (), 500),
    (("loanamount", "principal"), (), 100000),
    # Auto
    (("fuelconsumption",), (), 8),  # L/100km
    (("fuelprice", "priceperunit"), (), 1.5),
    (("distance",), (), 100),
    # Health
    (("duration", "minutes"), (), 30),
    # Construction
    (("wastemargin",), (), lambda calc_id: 5 if "rebar" in calc_id else 10),
    (("coats",), (), lambda calc_id: 2 if "paint" in calc_id else 1),
    (("primercoverage",), (), 12),  # m2/L on a smooth surface
    (("coverage",), (), 10),
    (("edgeallowance",), (), 50),
    (("jointthickness",), (), 10),
    (("layerthickness",), (), 1),
    (("consumptionrate",), (), 1.5),
    (("slabthickness",), (), 0.12),
    (("pipethickness",), (), 0.15),
    (("wallheight",), (), 2.5),
    (("wallwidth",), (), 4),
    (("roomlength",), (), 5),
    (("roomwidth",), (), 4),
    (("surfacearea",), (), 20),
    (("pipelength",), (), 20),
    (("pipeinnerdiameter",), (), 25),
    (("slablength",), (), 6),
    (("slabwidth",), (), 4),
    (("foundationlength",), (), 10),
    (("foundationwidth", "foundationheight"), (), 0.5),
    (("tilelength", "tilewidth"), (), 0.3),
    (("bricklength",), (), 0.2),
    (("brickwidth",), (), 0.1),
    # Generic dimensions
    (("length",), ("pipe", "slab"), 5),
    (("width",), ("pipe", "slab", "edge"), 4),
    (("height",), ("wall",), 2.5),
)


def _years_before(today: date, years: int) -> date:
    try:
        return today.replace(year=today.year - years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return today.replace(year=today.year - years, day=28)


def get_sensible_default(
    input_field: InputField,
    calculator_id: Optional[str] = None,
    today: Optional[date] = None,
) -> Any:
    """
    Heuristic default for an input that declares no ``default_value``.

    Args:
        input_field: Input definition
        calculator_id: Calculator id, used for calculator-specific values
            (e.g. waste margin is 5% for rebar, 10% otherwise)
        today: Reference date for date inputs (defaults to today)

    Returns:
        A value compatible with the input kind, or None when no heuristic
        applies
    """
    if input_field.default_value is not None:
        return None

    name = input_field.name.lower()
    calc_id = (calculator_id or "").lower()

    if input_field.kind == InputKind.NUMBER:
        value = _EXACT_NUMBER_DEFAULTS.get(name)
        if value is None:
            for keywords, excluded, candidate in _NUMBER_KEYWORD_DEFAULTS:
                if any(kw in name for kw in keywords) and not any(ex in name for ex in excluded):
                    value = candidate
                    break
        if callable(value):
            return value(calc_id)
        return value

    if input_field.kind == InputKind.DATE:
        today = today or date.today()
        if "birth" in name:
            return _years_before(today, 30).isoformat()
        if "start" in name:
            return today.isoformat()
        if any(kw in name for kw in ("end", "reference", "target")):
            return (today + timedelta(days=30)).isoformat()
        return today.isoformat()

    return None


class DefaultResolver:
    """
    Resolves initial values for calculator inputs.

    Args:
        sensible_default: Heuristic lookup ``(input, calculator_id) -> value``.
            Pass None to disable heuristics.
        clock: Returns today's date for the date fallback.
    """

    def __init__(
        self,
        sensible_default: Optional[SensibleDefaultLookup] = get_sensible_default,
        clock: Callable[[], date] = date.today,
    ):
        self._sensible_default = sensible_default
        self._clock = clock

    def resolve(self, input_field: InputField, calculator_id: Optional[str] = None) -> Any:
        """Resolve one input's default. None means no value could be derived."""
        if input_field.default_value is not None:
            return input_field.default_value

        if self._sensible_default is not None:
            value = self._sensible_default(input_field, calculator_id)
            if value is not None:
                return value

        return self._kind_fallback(input_field)

    def _kind_fallback(self, input_field: InputField) -> Any:
        if input_field.kind == InputKind.SELECT:
            options = input_field.option_values()
            return options[0] if options else None
        if input_field.kind == InputKind.DATE:
            return self._clock().isoformat()
        return ""

    def initial_values(self, definition: CalculatorDefinition) -> Dict[str, Any]:
        """Build the initial value map for a freshly rendered form."""
        values: Dict[str, Any] = {}
        for field in definition.inputs:
            value = self.resolve(field, definition.id)
            if value is not None:
                values[field.name] = value

        # Second pass runs strictly after the first: controllers are resolved.
        return self.fill_missing(definition, values)

    def fill_missing(self, definition: CalculatorDefinition, values: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Give every currently visible input without a value its default.

        Used for the second initialization pass and for the next render after
        a controller change deleted its dependents.

        Returns:
            New value map; the input mapping is not modified
        """
        filled = dict(values)
        for field in definition.inputs:
            if filled.get(field.name) is not None:
                continue
            if not is_visible(field, filled):
                continue
            value = self.resolve(field, definition.id)
            if value is not None:
                filled[field.name] = value
                logger.debug(f"Initialized '{field.name}' of {definition.id} to {value!r}")
        return filled
