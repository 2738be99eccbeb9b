"""
Output formatters.

Turn raw output values into display strings. Numbers follow en-US grouping
(``1,234.5``); missing values render as an em dash.
"""

from typing import Any, Iterable, Optional, Union

from calcform.runtime.visibility import as_comparable_text
from calcform.schemas.calculator import FormatType

MISSING_VALUE = "—"
NO_REAL_ROOTS = "No real roots"
NO_MODE = "No mode"

_CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "RUB": "₽",
    "INR": "₹",
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _strip_fraction(text: str) -> str:
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def format_number(value: float, max_decimals: int = 2) -> str:
    """Group thousands and keep up to ``max_decimals`` fraction digits."""
    return _strip_fraction(f"{value:,.{max_decimals}f}")


def format_currency(value: float, currency_code: str = "USD") -> str:
    symbol = _CURRENCY_SYMBOLS.get(currency_code.upper())
    amount = f"{abs(value):,.2f}"
    sign = "-" if value < 0 and amount.strip("0.,") else ""
    if symbol is None:
        return f"{sign}{currency_code.upper()} {amount}"
    return f"{sign}{symbol}{amount}"


def format_plain(value: Any) -> str:
    """Render a value the way the page runtime stringifies it."""
    if isinstance(value, (list, tuple)):
        return ", ".join(format_plain(item) for item in value)
    text = as_comparable_text(value)
    return MISSING_VALUE if text is None else text


def format_output_value(
    value: Any,
    format_type: Optional[Union[FormatType, str]] = None,
    unit_label: Optional[str] = None,
    currency_code: str = "USD",
) -> str:
    """
    Format one output value for display.

    Args:
        value: Raw value from the result map
        format_type: Formatting strategy; unknown or missing means plain
        unit_label: Suffix for the ``unit`` strategy
        currency_code: ISO code for the ``currency`` strategy

    Returns:
        Display string. Strings pass through unchanged; None renders as an
        em dash.
    """
    if value is None:
        return MISSING_VALUE
    if isinstance(value, str):
        return value
    if not _is_number(value):
        return format_plain(value)

    if format_type is not None and not isinstance(format_type, FormatType):
        try:
            format_type = FormatType(format_type)
        except ValueError:
            format_type = FormatType.DEFAULT

    if format_type == FormatType.CURRENCY:
        return format_currency(value, currency_code)
    if format_type == FormatType.PERCENTAGE:
        return f"{value:.2f}%"
    if format_type == FormatType.NUMBER:
        return format_number(value)
    if format_type == FormatType.UNIT:
        number = format_number(value)
        return f"{number} {unit_label}" if unit_label else number
    return format_plain(value)


def format_roots(value: Any) -> str:
    """
    Format a roots output.

    An empty list is "No real roots"; a single string element (a message
    from the solver) passes through; numbers render as ``x = v`` with six
    decimals, comma-joined.
    """
    if isinstance(value, str):
        return value
    if not isinstance(value, (list, tuple)):
        return NO_REAL_ROOTS
    if len(value) == 1 and isinstance(value[0], str):
        return value[0]

    roots = [f"x = {float(root):.6f}" for root in value if _is_number(root)]
    if not roots:
        return NO_REAL_ROOTS
    return ", ".join(roots)


def format_discriminant(value: Any) -> str:
    return f"D = {float(value):.6f}"


def format_percentage_change(value: Any) -> str:
    """Signed percentage with six decimals: ``+25.000000%``."""
    number = float(value)
    sign = "+" if number >= 0 else ""
    return f"{sign}{number:.6f}%"


def format_equation_result(value: Any) -> str:
    if isinstance(value, str):
        return value
    if _is_number(value):
        return f"x = {float(value):.6f}"
    if isinstance(value, (list, tuple)):
        return format_roots(value)
    return format_plain(value)


def format_mode(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return ", ".join(format_plain(item) for item in value) if value else NO_MODE
    return format_plain(value)


def format_sorted_data(values: Iterable[float]) -> str:
    """Comma-joined numbers, six decimals with trailing zeros dropped."""
    return ", ".join(_strip_fraction(f"{float(n):.6f}") for n in values)
