"""Error taxonomy for form submissions.

Field validation errors are keyed by input name. Coercion and computation
failures are aggregate errors keyed under a reserved pseudo-field so they can
share the same error map as field errors.
"""

from enum import Enum
from typing import Dict, Optional

AGGREGATE_ERROR_KEY = "_calculation"

GENERIC_COMPUTATION_ERROR = "Calculation failed"
NO_RESULTS_ERROR = "Calculation completed but no results returned"


class FormErrorKind(str, Enum):
    """Why a submission stopped. The three kinds never mix in one submission."""

    VALIDATION = "validation"  # one message per offending visible field
    COERCION = "coercion"  # programming error between validation and dispatch
    COMPUTATION = "computation"  # remote endpoint reported a failure


class CalcFormError(Exception):
    """Base class for engine errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class SchemaLoadError(CalcFormError):
    """Raised when a calculator definition cannot be loaded or is invalid."""

    pass


class CoercionError(CalcFormError):
    """Raised when a validated value still fails numeric coercion."""

    def __init__(self, field_key: str, message: str):
        self.field_key = field_key
        super().__init__(message)


class ComputationError(CalcFormError):
    """Raised when the computation endpoint fails.

    ``field_errors`` holds per-field messages when the server rejected the
    inputs itself; otherwise ``message`` is the aggregate error.
    """

    def __init__(
        self,
        message: str = GENERIC_COMPUTATION_ERROR,
        *,
        status_code: Optional[int] = None,
        field_errors: Optional[Dict[str, str]] = None,
    ):
        self.status_code = status_code
        self.field_errors = dict(field_errors or {})
        super().__init__(message)
