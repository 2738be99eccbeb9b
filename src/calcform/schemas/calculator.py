"""Pydantic models for declarative calculator definitions.

A calculator definition describes its inputs and outputs only. It carries no
behavior: defaults, visibility, validation and interpretation live in
``calcform.runtime``. Definitions are loaded once per render and are frozen.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


class InputKind(str, Enum):
    """Kind of an input widget."""

    NUMBER = "number"
    TEXT = "text"
    SELECT = "select"
    DATE = "date"


class FormatType(str, Enum):
    """Formatting strategy for an output value."""

    NUMBER = "number"
    CURRENCY = "currency"
    PERCENTAGE = "percentage"
    UNIT = "unit"  # plain number with the unit label appended
    DEFAULT = "default"


class CalculatorCategory(str, Enum):
    """Catalog section a calculator belongs to."""

    FINANCE = "finance"
    MATH = "math"
    EVERYDAY = "everyday"
    ENGINEERING = "engineering"
    BUSINESS = "business"
    CONSTRUCTION = "construction"
    AUTO = "auto"
    HEALTH = "health"
    GEOMETRY = "geometry"
    LIFE = "life"
    TIME = "time"
    SCIENCE = "science"
    CONVERTER = "converter"
    FUN = "fun"
    IT = "it"
    COMPATIBILITY = "compatibility"


class SelectOption(BaseModel):
    """One value/label pair of a select input."""

    model_config = ConfigDict(frozen=True)

    value: str
    label: str

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, v: Any) -> Any:
        """Option values are compared as text; YAML may hand us numbers."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class ValidationRule(BaseModel):
    """Declarative validation attached to an input.

    Attributes:
        required: Reject empty, None and whitespace-only values.
        min: Inclusive lower bound (number inputs only).
        max: Inclusive upper bound (number inputs only).
        message: Replaces every generated message for the field.
        custom: Predicate run last. ``True`` passes; a string is used
            verbatim as the error; anything else is a generic failure.
    """

    model_config = ConfigDict(frozen=True)

    required: bool = False
    min: Optional[float] = None
    max: Optional[float] = None
    message: Optional[str] = None
    custom: Optional[Callable[[Any], Any]] = Field(default=None, exclude=True)

    @model_validator(mode="after")
    def check_bounds_order(self) -> "ValidationRule":
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"validation.min ({self.min}) is greater than validation.max ({self.max})")
        return self


class VisibilityRule(BaseModel):
    """Show the owning input only while ``field`` currently equals ``value``.

    Comparison is on the text form of both sides. Rules are single-level:
    the controlling field's own visibility is not consulted.
    """

    model_config = ConfigDict(frozen=True)

    field: str = Field(..., min_length=1)
    value: Union[bool, int, float, str]


class InputField(BaseModel):
    """A single input of a calculator form."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1)
    kind: InputKind = Field(
        default=InputKind.TEXT,
        validation_alias=AliasChoices("kind", "type"),
    )
    label: str = ""
    unit_label: Optional[str] = None
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    default_value: Optional[Union[int, float, str]] = None
    options: Optional[List[SelectOption]] = None
    validation: Optional[ValidationRule] = None
    visible_if: Optional[VisibilityRule] = None
    # Display bounds. Dates use ISO strings here.
    min: Optional[Union[float, str]] = None
    max: Optional[Union[float, str]] = None
    step: Optional[Union[float, Literal["any"]]] = None
    clears_dependents: Optional[bool] = Field(
        default=None,
        description="Delete inputs conditioned on this one when it changes. "
        "None defers to EngineSettings.clearing_controllers.",
    )

    @model_validator(mode="after")
    def check_select_options(self) -> "InputField":
        if self.kind == InputKind.SELECT and self.options is None:
            raise ValueError(f"Input '{self.name}': options are required for select inputs")
        return self

    @property
    def is_required(self) -> bool:
        return bool(self.validation and self.validation.required)

    def option_values(self) -> List[str]:
        return [option.value for option in self.options or []]

    def effective_bounds(self) -> Tuple[Optional[Union[float, str]], Optional[Union[float, str]]]:
        """Bounds to show on the widget.

        Validation bounds win over the generic display bounds when both are
        declared.
        """
        low, high = self.min, self.max
        if self.validation is not None:
            if self.validation.min is not None:
                low = self.validation.min
            if self.validation.max is not None:
                high = self.validation.max
        return low, high


class OutputField(BaseModel):
    """A single output of a calculator result map."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1)
    label: str = ""
    format_type: Optional[FormatType] = None
    unit_label: Optional[str] = None


class CalculatorExample(BaseModel):
    """Worked example shown on the calculator page."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    input_description: str = ""
    steps: List[str] = Field(default_factory=list)
    result_description: str = ""


class FaqItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    question: str
    answer: str


class CalculatorDefinition(BaseModel):
    """Complete, immutable definition of one calculator in one locale.

    ``id`` is the dispatch key for result interpretation, not just a
    descriptor. Metadata such as examples and FAQ is carried for the page
    and ignored by the engine.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    slug: str = ""
    category: CalculatorCategory
    title: str = ""
    short_description: str = ""
    locale: str = "en"
    content_locale: Optional[str] = None
    inputs: List[InputField] = Field(default_factory=list)
    outputs: List[OutputField] = Field(default_factory=list)
    how_to_bullets: List[str] = Field(default_factory=list)
    examples: List[CalculatorExample] = Field(default_factory=list)
    faq: List[FaqItem] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    related_ids: List[str] = Field(default_factory=list)
    is_enabled: bool = True

    @model_validator(mode="after")
    def check_inputs(self) -> "CalculatorDefinition":
        names = [field.name for field in self.inputs]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Calculator '{self.id}': duplicate input names {duplicates}")

        known = set(names)
        for field in self.inputs:
            if field.visible_if is not None and field.visible_if.field not in known:
                raise ValueError(
                    f"Calculator '{self.id}': input '{field.name}' is conditioned on "
                    f"unknown field '{field.visible_if.field}'"
                )
            if field.visible_if is not None and field.visible_if.field == field.name:
                raise ValueError(
                    f"Calculator '{self.id}': input '{field.name}' cannot be conditioned on itself"
                )

        if self.is_enabled and (not self.inputs or not self.outputs):
            raise ValueError(f"Calculator '{self.id}': enabled calculators need inputs and outputs")
        return self

    def get_input(self, name: str) -> Optional[InputField]:
        for field in self.inputs:
            if field.name == name:
                return field
        return None

    def get_output(self, name: str) -> Optional[OutputField]:
        for output in self.outputs:
            if output.name == name:
                return output
        return None

    @property
    def input_map(self) -> Dict[str, InputField]:
        return {field.name: field for field in self.inputs}
