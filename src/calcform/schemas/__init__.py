"""Pydantic schemas for calculator definitions, results and errors."""

from calcform.schemas.calculator import (
    CalculatorCategory,
    CalculatorDefinition,
    FormatType,
    InputField,
    InputKind,
    OutputField,
    SelectOption,
    ValidationRule,
    VisibilityRule,
)
from calcform.schemas.errors import (
    AGGREGATE_ERROR_KEY,
    CalcFormError,
    CoercionError,
    ComputationError,
    FormErrorKind,
    SchemaLoadError,
)
from calcform.schemas.result_views import CalculatorResultView, InterpretedResult

__all__ = [
    "AGGREGATE_ERROR_KEY",
    "CalcFormError",
    "CalculatorCategory",
    "CalculatorDefinition",
    "CalculatorResultView",
    "CoercionError",
    "ComputationError",
    "FormErrorKind",
    "FormatType",
    "InputField",
    "InputKind",
    "InterpretedResult",
    "OutputField",
    "SchemaLoadError",
    "SelectOption",
    "ValidationRule",
    "VisibilityRule",
]
