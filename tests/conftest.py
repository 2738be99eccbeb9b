"""
Pytest fixtures and configuration for calcform tests.
Provides calculator definitions, a fixed clock and a recording dispatcher.
"""

from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import pytest

from calcform.config.settings import EngineSettings, reset_engine_settings_cache
from calcform.runtime.defaults import DefaultResolver
from calcform.runtime.dispatcher import ComputationDispatcher
from calcform.schemas.calculator import CalculatorDefinition
from calcform.schemas.errors import ComputationError

FIXED_TODAY = date(2024, 3, 15)


class RecordingDispatcher(ComputationDispatcher):
    """Test double: returns canned results and records every call."""

    def __init__(self, results: Optional[Dict[str, Any]] = None, error: Optional[ComputationError] = None):
        self.results = results if results is not None else {"value": 1}
        self.error = error
        self.calls: List[Tuple[str, Dict[str, Any], str]] = []

    def dispatch(self, calculator_id, inputs, locale):
        self.calls.append((calculator_id, dict(inputs), locale))
        if self.error is not None:
            raise self.error
        return self.results


def make_definition(**overrides) -> CalculatorDefinition:
    """Build a definition from a plain dict, filling required keys."""
    data = {
        "id": "test-calculator",
        "category": "math",
        "inputs": [{"name": "x", "kind": "number", "label": "X"}],
        "outputs": [{"name": "result", "label": "Result"}],
    }
    data.update(overrides)
    return CalculatorDefinition.model_validate(data)


@pytest.fixture
def area_definition() -> CalculatorDefinition:
    """Circle/square/rectangle area calculator with a `shape` controller."""
    return CalculatorDefinition.model_validate({
        "id": "area-calculator",
        "category": "geometry",
        "title": "Area Calculator",
        "inputs": [
            {
                "name": "shape",
                "kind": "select",
                "label": "Shape",
                "options": [
                    {"value": "circle", "label": "Circle"},
                    {"value": "square", "label": "Square"},
                    {"value": "rectangle", "label": "Rectangle"},
                ],
            },
            {
                "name": "radius",
                "kind": "number",
                "label": "Radius",
                "visible_if": {"field": "shape", "value": "circle"},
                "validation": {"required": True, "min": 0},
            },
            {
                "name": "side",
                "kind": "number",
                "label": "Side",
                "visible_if": {"field": "shape", "value": "square"},
                "validation": {"required": True, "min": 0},
            },
            {
                "name": "length",
                "kind": "number",
                "label": "Length",
                "visible_if": {"field": "shape", "value": "rectangle"},
                "validation": {"required": True, "min": 0},
            },
            {
                "name": "width",
                "kind": "number",
                "label": "Width",
                "visible_if": {"field": "shape", "value": "rectangle"},
                "validation": {"required": True, "min": 0},
            },
        ],
        "outputs": [
            {"name": "area", "label": "Area", "format_type": "number", "unit_label": "m²"},
            {"name": "perimeter", "label": "Perimeter", "format_type": "number"},
            {"name": "formula", "label": "Formula"},
            {"name": "shapeName", "label": "Shape"},
        ],
    })


@pytest.fixture
def fixed_resolver() -> DefaultResolver:
    """Default resolver whose clock is pinned to FIXED_TODAY."""
    return DefaultResolver(
        sensible_default=lambda field, calc_id: None,
        clock=lambda: FIXED_TODAY,
    )


@pytest.fixture
def settings(tmp_path) -> EngineSettings:
    return EngineSettings(computation_base_url="http://calc.test", definitions_dir=tmp_path)


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def definition_factory():
    """Factory fixture: ``definition_factory(inputs=[...], outputs=[...])``."""
    return make_definition


@pytest.fixture
def dispatcher_factory():
    """Factory fixture: ``dispatcher_factory(results=..., error=...)``."""
    return RecordingDispatcher


@pytest.fixture(autouse=True)
def _clean_settings_env(monkeypatch):
    """Keep settings tests independent of the developer's environment."""
    for name in ("CALCFORM_CONFIG", "CALCFORM_COMPUTATION_URL", "CALCFORM_DEFINITIONS_DIR"):
        monkeypatch.delenv(name, raising=False)
    reset_engine_settings_cache()
    yield
    reset_engine_settings_cache()
