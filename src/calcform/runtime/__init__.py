"""
Runtime components of the calculator form engine.

Data flow for one form:
1. Default Resolver (initial state) - defaults
2. Visibility Resolver (active field set) - visibility
3. Validation Engine (gate) - validators
4. Type Coercion Pass - coercion
5. Computation Dispatcher (external endpoint) - dispatcher
6. Result Interpreter (presentation) - interpreter, formatters, explanations

``FormSession`` wires them together for one rendered form.
"""

from calcform.runtime.coercion import coerce_payload
from calcform.runtime.defaults import DefaultResolver, get_sensible_default
from calcform.runtime.dispatcher import ComputationDispatcher, HttpComputationDispatcher
from calcform.runtime.explanations import ResultExplanationLookup
from calcform.runtime.form_session import FormSession, SubmissionResult
from calcform.runtime.formatters import format_output_value, format_roots
from calcform.runtime.interpreter import ResultInterpreter
from calcform.runtime.schema_loader import CalculatorRegistry, load_definition
from calcform.runtime.validators import validate, validate_one
from calcform.runtime.visibility import is_visible, visible_inputs

__all__ = [
    "CalculatorRegistry",
    "ComputationDispatcher",
    "DefaultResolver",
    "FormSession",
    "HttpComputationDispatcher",
    "ResultExplanationLookup",
    "ResultInterpreter",
    "SubmissionResult",
    "coerce_payload",
    "format_output_value",
    "format_roots",
    "get_sensible_default",
    "is_visible",
    "load_definition",
    "validate",
    "validate_one",
    "visible_inputs",
]
