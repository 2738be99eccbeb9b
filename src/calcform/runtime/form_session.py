"""
Form Session - per-form state, edit handling and submission.

One session owns the state of one rendered calculator form: current values,
the error map and the last outputs. It wires the resolvers together:

    initial values -> edits (shallow merge + clearing policy)
        -> submit: validate -> coerce -> dispatch -> outputs

Validation, coercion and computation errors are mutually exclusive: each
stage runs only when the previous one passed. Every submission takes a
token; a response that arrives after a newer submission started is
discarded, so the latest submission always wins.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from calcform.config.settings import EngineSettings
from calcform.runtime.coercion import coerce_payload
from calcform.runtime.defaults import DefaultResolver
from calcform.runtime.dispatcher import ComputationDispatcher
from calcform.runtime.interpreter import ResultInterpreter
from calcform.runtime.validators import validate, validate_one
from calcform.runtime.visibility import dependents_of, is_visible, visible_inputs
from calcform.schemas.calculator import CalculatorDefinition, InputField
from calcform.schemas.errors import (
    AGGREGATE_ERROR_KEY,
    CoercionError,
    ComputationError,
    FormErrorKind,
)
from calcform.schemas.result_views import InterpretedResult

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    """Outcome of one ``FormSession.submit`` call."""

    ok: bool
    error_kind: Optional[FormErrorKind] = None
    errors: Dict[str, str] = field(default_factory=dict)
    outputs: Optional[Dict[str, Any]] = None
    stale: bool = False  # a newer submission started; nothing was applied


class FormSession:
    """
    State holder for one calculator form instance.

    Args:
        definition: Calculator definition (immutable)
        dispatcher: Computation endpoint
        resolver: Default resolver (defaults to the heuristic one)
        settings: Engine settings (clearing controllers, default locale)
        locale: Locale sent with each computation
    """

    def __init__(
        self,
        definition: CalculatorDefinition,
        dispatcher: ComputationDispatcher,
        *,
        resolver: Optional[DefaultResolver] = None,
        settings: Optional[EngineSettings] = None,
        locale: Optional[str] = None,
    ):
        self.definition = definition
        self.dispatcher = dispatcher
        self.resolver = resolver or DefaultResolver()
        self.settings = settings or EngineSettings()
        self.locale = locale or definition.locale or self.settings.default_locale

        self.values: Dict[str, Any] = self.resolver.initial_values(definition)
        self.errors: Dict[str, str] = {}
        self.outputs: Optional[Dict[str, Any]] = None

        self._lock = threading.Lock()
        self._submission_token = 0

    def visible_inputs(self) -> List[InputField]:
        return visible_inputs(self.definition.inputs, self.values)

    def clears_dependents(self, input_field: InputField) -> bool:
        """Whether changing ``input_field`` deletes the inputs it controls."""
        if input_field.clears_dependents is not None:
            return input_field.clears_dependents
        return input_field.name in self.settings.clearing_controllers

    def on_change(self, name: str, value: Any) -> Dict[str, Any]:
        """
        Apply one edit.

        The new value is merged into the state. If the edited input clears
        its dependents, every input conditioned on it is removed from the
        state (not blanked), so ``hydrate`` re-derives its default once it
        becomes visible again.

        Args:
            name: Input name
            value: New raw value

        Returns:
            The new value map
        """
        input_field = self.definition.get_input(name)
        if input_field is None:
            raise KeyError(f"Calculator '{self.definition.id}' has no input '{name}'")

        values = dict(self.values)
        values[name] = value

        if self.clears_dependents(input_field):
            cleared = [dep.name for dep in dependents_of(self.definition.inputs, name) if dep.name in values]
            for dep_name in cleared:
                del values[dep_name]
            if cleared:
                logger.debug(f"'{name}' changed, cleared dependents {cleared}")

        self.values = values

        if name in self.errors and validate_one(input_field, value) is None:
            errors = dict(self.errors)
            del errors[name]
            self.errors = errors

        return self.values

    def hydrate(self) -> Dict[str, Any]:
        """Fill defaults for visible inputs that have no value (next render)."""
        self.values = self.resolver.fill_missing(self.definition, self.values)
        return self.values

    def blur(self, name: str) -> Optional[str]:
        """Validate one field when it loses focus and record the result."""
        input_field = self.definition.get_input(name)
        if input_field is None or not is_visible(input_field, self.values):
            return None

        error = validate_one(input_field, self.values.get(name))
        errors = dict(self.errors)
        if error is None:
            errors.pop(name, None)
        else:
            errors[name] = error
        self.errors = errors
        return error

    def submit(self) -> SubmissionResult:
        """
        Validate, coerce and dispatch the current values.

        Returns:
            SubmissionResult. ``stale`` is True when a newer submission
            started before this one finished; its outcome was dropped.
        """
        with self._lock:
            self._submission_token += 1
            token = self._submission_token
            self.errors = {}
            values = dict(self.values)

        field_errors = validate(self.definition.inputs, values)
        if field_errors:
            logger.debug(f"Submission {token} for {self.definition.id} blocked by {sorted(field_errors)}")
            return self._finish(token, FormErrorKind.VALIDATION, field_errors)

        try:
            payload = coerce_payload(self.definition, values)
        except CoercionError as e:
            return self._finish(token, FormErrorKind.COERCION, {AGGREGATE_ERROR_KEY: e.message})

        try:
            outputs = self.dispatcher.dispatch(self.definition.id, payload, self.locale)
        except ComputationError as e:
            errors = dict(e.field_errors) if e.field_errors else {AGGREGATE_ERROR_KEY: e.message}
            return self._finish(token, FormErrorKind.COMPUTATION, errors)

        return self._finish(token, None, {}, outputs)

    def _finish(
        self,
        token: int,
        error_kind: Optional[FormErrorKind],
        errors: Dict[str, str],
        outputs: Optional[Dict[str, Any]] = None,
    ) -> SubmissionResult:
        with self._lock:
            if token != self._submission_token:
                logger.debug(
                    f"Discarding stale submission {token} for {self.definition.id} "
                    f"(latest is {self._submission_token})"
                )
                return SubmissionResult(ok=False, error_kind=error_kind, errors=errors, outputs=outputs, stale=True)

            self.errors = errors
            if outputs is not None:
                self.outputs = outputs

        return SubmissionResult(ok=error_kind is None, error_kind=error_kind, errors=errors, outputs=outputs)

    def interpret(self, interpreter: Optional[ResultInterpreter] = None) -> Optional[InterpretedResult]:
        """Interpret the last accepted outputs."""
        interpreter = interpreter or ResultInterpreter(self.settings)
        return interpreter.interpret(self.definition, self.outputs)
