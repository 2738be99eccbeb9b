"""Tests for the validation engine."""

import pytest

from calcform.runtime.validators import (
    GENERIC_INVALID_MESSAGE,
    is_blank,
    parse_number,
    validate,
    validate_one,
)
from calcform.schemas.calculator import InputField, ValidationRule


def _number(validation=None, label="Amount", **extra):
    data = {"name": "amount", "kind": "number", "label": label, **extra}
    field = InputField.model_validate(data)
    if validation is not None:
        field = field.model_copy(update={"validation": validation})
    return field


class TestParsing:
    """Blank detection and finite number parsing."""

    @pytest.mark.parametrize("value", [None, "", "   ", "\t"])
    def test_blank(self, value):
        assert is_blank(value) is True

    @pytest.mark.parametrize("value", [0, "0", "a"])
    def test_not_blank(self, value):
        assert is_blank(value) is False

    @pytest.mark.parametrize("value, expected", [
        ("5", 5.0),
        (" 2.5 ", 2.5),
        ("-0.01", -0.01),
        (".5", 0.5),
        ("1e3", 1000.0),
        (7, 7.0),
    ])
    def test_parse_number(self, value, expected):
        assert parse_number(value) == expected

    @pytest.mark.parametrize("value", ["abc", "5x", "inf", "NaN", float("inf"), True, None, "1,000"])
    def test_parse_number_rejects(self, value):
        assert parse_number(value) is None


class TestValidateOne:
    """Per-field checks in their fixed order."""

    def test_required_blank_fails(self):
        field = _number(ValidationRule(required=True))
        assert validate_one(field, "  ") == "Amount is required"

    def test_blank_not_required_passes_and_skips_custom(self):
        field = _number(ValidationRule(custom=lambda v: "never"))
        assert validate_one(field, "") is None

    def test_number_must_parse(self):
        assert validate_one(_number(), "abc") == "Amount must be a valid number"

    @pytest.mark.parametrize("value", ["0", "100", 0, 100.0])
    def test_range_bounds_are_inclusive(self, value):
        field = _number(ValidationRule(min=0, max=100))
        assert validate_one(field, value) is None

    def test_below_min(self):
        field = _number(ValidationRule(min=1))
        assert validate_one(field, "0.5") == "Amount must be at least 1"

    def test_above_max(self):
        field = _number(ValidationRule(max=12.5))
        assert validate_one(field, "13") == "Amount must be at most 12.5"

    def test_non_negative_guard_at_min_zero(self):
        """min: 0 rejects a small negative value."""
        field = _number(ValidationRule(min=0))
        assert validate_one(field, "-0.01") is not None
        assert validate_one(field, -0.01) is not None

    def test_message_override_replaces_generated_messages(self):
        field = _number(ValidationRule(required=True, min=0, message="Enter a positive amount"))
        assert validate_one(field, "") == "Enter a positive amount"
        assert validate_one(field, "-1") == "Enter a positive amount"
        assert validate_one(field, "x") == "Enter a positive amount"

    def test_custom_predicate_string_is_used_verbatim(self):
        field = _number(ValidationRule(custom=lambda v: "Must be even", message="ignored"))
        assert validate_one(field, "3") == "Must be even"

    def test_custom_predicate_false_uses_override_or_generic(self):
        assert validate_one(_number(ValidationRule(custom=lambda v: False)), "3") == GENERIC_INVALID_MESSAGE
        field = _number(ValidationRule(custom=lambda v: False, message="Nope"))
        assert validate_one(field, "3") == "Nope"

    def test_custom_predicate_true_passes(self):
        assert validate_one(_number(ValidationRule(custom=lambda v: True)), "3") is None

    def test_custom_runs_after_range(self):
        field = _number(ValidationRule(min=10, custom=lambda v: "custom"))
        assert validate_one(field, "5") == "Amount must be at least 10"

    def test_label_falls_back_to_name(self):
        field = _number(ValidationRule(required=True), label="")
        assert validate_one(field, None) == "amount is required"

    def test_display_bounds_are_not_validated(self):
        field = _number(min=10, max=20)
        assert validate_one(field, "50") is None

    def test_range_ignored_for_text(self):
        field = InputField(name="note", kind="text", label="Note", validation=ValidationRule(min=5))
        assert validate_one(field, "abc") is None

    def test_date_must_be_iso(self):
        field = InputField(name="when", kind="date", label="Date")
        assert validate_one(field, "2024-02-29") is None
        assert validate_one(field, "2023-02-29") == "Date must be a valid date"
        assert validate_one(field, "15/03/2024") == "Date must be a valid date"

    def test_select_membership(self):
        field = InputField.model_validate({
            "name": "mode",
            "kind": "select",
            "label": "Mode",
            "options": [{"value": "metric", "label": "Metric"}, {"value": 2, "label": "Two"}],
        })
        assert validate_one(field, "metric") is None
        assert validate_one(field, 2) is None
        assert validate_one(field, "other") == "Mode must be one of: metric, 2"


class TestValidate:
    """Whole-form validation."""

    def test_only_visible_inputs_are_validated(self, area_definition):
        values = {"shape": "circle", "radius": "", "side": "not a number"}
        assert validate(area_definition.inputs, values) == {"radius": "Radius is required"}

    def test_valid_values_give_empty_map(self, area_definition):
        assert validate(area_definition.inputs, {"shape": "rectangle", "length": "2", "width": "3"}) == {}

    def test_every_visible_invalid_field_is_reported(self, area_definition):
        errors = validate(area_definition.inputs, {"shape": "rectangle", "length": "-1", "width": ""})
        assert set(errors) == {"length", "width"}

    @pytest.mark.parametrize("value", [None, "", "abc", "-5", "1e400", 12, "7.5"])
    def test_totality(self, area_definition, value):
        """Any value yields either no entry or a non-empty message."""
        errors = validate(area_definition.inputs, {"shape": "circle", "radius": value})
        assert errors.get("radius", "x") != ""
