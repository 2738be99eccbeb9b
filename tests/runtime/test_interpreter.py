"""
Tests for ResultInterpreter - dispatch by calculator id into typed views.
"""

import logging

import pytest

from calcform.config.settings import EngineSettings
from calcform.runtime.explanations import ResultExplanationLookup
from calcform.runtime.interpreter import STATISTICS_CALCULATORS, ResultInterpreter
from calcform.schemas.result_views import (
    EquationSolverView,
    GenericResultView,
    LoanComparisonView,
    NetWorthView,
    PercentageChangeView,
    StatisticsView,
)


@pytest.fixture
def interpreter():
    return ResultInterpreter(EngineSettings())


def _outputs(*names, **formats):
    return [{"name": n, "label": n.title(), **({"format_type": formats[n]} if n in formats else {})} for n in names]


class TestDispatch:
    """Registry lookup and generic fallback."""

    def test_empty_outputs_give_none(self, interpreter, area_definition):
        assert interpreter.interpret(area_definition, {}) is None
        assert interpreter.interpret(area_definition, None) is None

    def test_registry_is_enumerable(self, interpreter):
        ids = interpreter.registered_ids()
        assert "net-worth-calculator" in ids
        assert set(STATISTICS_CALCULATORS) <= set(ids)

    def test_unknown_id_uses_generic(self, interpreter, area_definition):
        result = interpreter.interpret(area_definition, {"area": 12.0})
        assert result.calculator_id == "area-calculator"
        assert isinstance(result.view, GenericResultView)

    def test_custom_builder_can_be_registered(self, interpreter, area_definition):
        interpreter.register("area-calculator", lambda definition, outputs: GenericResultView(formula="custom"))
        result = interpreter.interpret(area_definition, {"area": 1})
        assert result.view.formula == "custom"

    def test_schema_mismatch_falls_back_to_generic(self, interpreter, definition_factory, caplog):
        definition = definition_factory(
            id="net-worth-calculator",
            category="finance",
            outputs=_outputs("netWorth", "totalAssets"),
        )
        with caplog.at_level(logging.WARNING):
            result = interpreter.interpret(definition, {"netWorth": "lots", "totalAssets": 5})
        assert isinstance(result.view, GenericResultView)
        assert "does not match its schema" in caplog.text


class TestGenericView:
    """Main output selection and section surfacing."""

    def test_round_trip_area(self, interpreter, area_definition):
        view = interpreter.interpret(
            area_definition,
            {"area": 78.5398, "perimeter": 31.4159, "formula": "A = πr²", "shapeName": "Circle"},
        ).view
        assert view.main.name == "area"
        assert view.main.formatted == "78.54"
        assert view.main.unit_label == "m²"
        assert view.formula == "A = πr²"
        assert [(r.name, r.formatted) for r in view.rows] == [("perimeter", "31.42")]

    def test_priority_beats_declaration_order(self, interpreter, definition_factory):
        definition = definition_factory(outputs=_outputs("total", "monthlyPayment"))
        view = interpreter.interpret(definition, {"total": 10, "monthlyPayment": 2}).view
        assert view.main.name == "monthlyPayment"

    def test_first_output_when_no_priority_name(self, interpreter, definition_factory):
        definition = definition_factory(outputs=_outputs("bmi", "category"))
        view = interpreter.interpret(definition, {"bmi": 22.5, "category": "Normal"}).view
        assert view.main.name == "bmi"
        assert [r.name for r in view.rows] == ["category"]

    def test_quadratic_sections(self, interpreter, definition_factory):
        definition = definition_factory(
            id="quadratic-calculator",
            outputs=_outputs("roots", "discriminant", "formula", "steps"),
        )
        outputs = {
            "roots": [2, 1],
            "discriminant": 1,
            "formula": "x = (-b ± √D) / 2a",
            "steps": [{"title": "Discriminant", "math": "D = 1"}, "Apply formula"],
        }
        view = interpreter.interpret(definition, outputs).view
        assert view.main.formatted == "x = 2.000000, x = 1.000000"
        assert view.discriminant == "D = 1.000000"
        assert view.roots == "x = 2.000000, x = 1.000000"
        assert [s.title for s in view.steps] == ["Discriminant", "Apply formula"]
        assert view.steps[0].math == "D = 1"
        assert view.rows == []

    def test_no_real_roots(self, interpreter, definition_factory):
        definition = definition_factory(outputs=_outputs("roots"))
        view = interpreter.interpret(definition, {"roots": []}).view
        assert view.main.formatted == "No real roots"

    def test_untitled_step_gets_number(self, interpreter, definition_factory):
        definition = definition_factory(outputs=_outputs("result", "steps"))
        view = interpreter.interpret(definition, {"result": 1, "steps": [{"math": "1 + 0"}]}).view
        assert view.steps[0].title == "Step 1"

    def test_none_and_composite_values_are_not_rows(self, interpreter, definition_factory):
        definition = definition_factory(outputs=_outputs("result", "extra", "breakdown", "insights"))
        outputs = {"result": 1, "extra": None, "breakdown": {"a": 1}, "insights": ["Tip one"]}
        view = interpreter.interpret(definition, outputs).view
        assert view.rows == []
        assert view.insights == ["Tip one"]


class TestBespokeViews:
    """Per-calculator builders."""

    def test_statistics(self, interpreter, definition_factory):
        definition = definition_factory(
            id="descriptive-statistics-calculator",
            outputs=_outputs("mean", "median", "mode", "count", "sortedData", mean="number", median="number"),
        )
        outputs = {"mean": 3.5, "median": 3, "mode": [], "count": 4, "sortedData": [1.0, 2.5, 4.0, 6.5]}
        view = interpreter.interpret(definition, outputs).view

        assert isinstance(view, StatisticsView)
        assert view.main.name == "mean"
        rows = {r.name: r for r in view.rows}
        assert rows["mode"].formatted == "No mode"
        assert rows["median"].highlighted is True
        assert rows["count"].highlighted is False
        assert view.sorted_data == "1, 2.5, 4, 6.5"

    def test_average_calculator_highlights_all_rows(self, interpreter, definition_factory):
        definition = definition_factory(id="average-calculator", outputs=_outputs("mean", "count", "sum"))
        view = interpreter.interpret(definition, {"mean": 2, "count": 3, "sum": 6}).view
        assert all(r.highlighted for r in view.rows)

    @pytest.mark.parametrize("result, outcome", [
        (2, "solved"),
        ("No solution", "no_solution"),
        ("Equation has infinite solutions", "infinite"),
        ([], "no_solution"),
    ])
    def test_equation_solver_outcome(self, interpreter, definition_factory, result, outcome):
        definition = definition_factory(id="equation-solver", outputs=_outputs("result", "normalizedForm", "steps"))
        view = interpreter.interpret(definition, {"result": result, "normalizedForm": "2x - 4 = 0"}).view
        assert isinstance(view, EquationSolverView)
        assert view.outcome == outcome
        assert view.normalized_form == "2x - 4 = 0"

    def test_equation_solver_single_root(self, interpreter, definition_factory):
        definition = definition_factory(id="equation-solver", outputs=_outputs("result"))
        view = interpreter.interpret(definition, {"result": 2}).view
        assert view.main.formatted == "x = 2.000000"

    def test_percentage_change(self, interpreter, definition_factory):
        definition = definition_factory(
            id="percentage-change-calculator",
            outputs=_outputs("percentageChange", "direction", "difference", difference="number"),
        )
        view = interpreter.interpret(
            definition, {"percentageChange": -12.5, "direction": "Decrease", "difference": -12.5}
        ).view
        assert isinstance(view, PercentageChangeView)
        assert view.main.formatted == "-12.500000%"
        assert view.direction_tone == "negative"
        assert [(r.name, r.formatted) for r in view.rows] == [("difference", "-12.5")]

    def test_net_worth(self, interpreter, definition_factory):
        definition = definition_factory(
            id="net-worth-calculator",
            category="finance",
            outputs=_outputs("netWorth", "totalAssets", "totalLiabilities", "debtToAssetRatio"),
        )
        outputs = {
            "totalAssets": 200000,
            "totalLiabilities": 50000,
            "netWorth": 150000,
            "debtToAssetRatio": 25,
            "netWorthStatus": "positive",
            "formulaExplanation": "Net Worth = Assets - Liabilities",
        }
        view = interpreter.interpret(definition, outputs).view
        assert isinstance(view, NetWorthView)
        assert view.main.formatted == "$150,000.00"
        assert view.total_liabilities == "$50,000.00"
        assert view.debt_to_asset_ratio == "25.00%"
        assert view.status == "positive"
        assert view.bars.assets_percent == 100.0
        assert view.bars.liabilities_percent == 25.0

    def test_net_worth_missing_sections_render_nothing(self, interpreter, definition_factory):
        definition = definition_factory(id="net-worth-calculator", outputs=_outputs("netWorth"))
        view = interpreter.interpret(definition, {"netWorth": None, "netWorthStatus": None}).view
        assert isinstance(view, NetWorthView)
        assert view.main is None
        assert view.bars is None

    def test_loan_comparison(self, interpreter, definition_factory):
        definition = definition_factory(
            id="loan-comparison-calculator",
            outputs=_outputs("winner", "comparisonTable", "bestLoanByMetric"),
        )
        outputs = {
            "comparisonTable": [
                {"loanName": "Loan A", "monthlyPayment": 391.32, "totalCost": 23479.2},
                {"loanName": "Loan B", "monthlyPayment": 330.5, "totalCost": 24096.0, "fees": 300},
            ],
            "winner": {"loanName": "Loan A"},
            "bestLoanByMetric": {"metric": "lowest-total-cost", "loanIndex": 0, "loanName": "Loan A", "value": 23479.2},
        }
        view = interpreter.interpret(definition, outputs).view
        assert isinstance(view, LoanComparisonView)
        assert [(loan.loan_name, loan.is_winner) for loan in view.loans] == [("Loan A", True), ("Loan B", False)]
        assert view.loans[1].fees == "$300.00"
        assert view.winner.metric_label == "Lowest Total Cost"
        assert view.winner.value == "$23,479.20"
        assert view.main.formatted == "Loan A"


class TestExplanations:
    """Category prose only when the view has none of its own."""

    @pytest.fixture
    def explained(self):
        lookup = ResultExplanationLookup({"finance": {"monthlyPayment": {"text": "Budget for it."}}})
        return ResultInterpreter(EngineSettings(), lookup)

    def test_added_when_view_has_no_prose(self, explained, definition_factory):
        definition = definition_factory(category="finance", outputs=_outputs("monthlyPayment"))
        result = explained.interpret(definition, {"monthlyPayment": 536.82})
        assert [(e.output_name, e.text) for e in result.explanations] == [("monthlyPayment", "Budget for it.")]

    def test_skipped_when_view_has_formula(self, explained, definition_factory):
        definition = definition_factory(category="finance", outputs=_outputs("monthlyPayment", "formula"))
        result = explained.interpret(definition, {"monthlyPayment": 536.82, "formula": "M = P r / (1 - (1+r)^-n)"})
        assert result.explanations == []

    def test_skipped_when_view_has_steps(self, explained, definition_factory):
        definition = definition_factory(category="finance", outputs=_outputs("monthlyPayment", "steps"))
        result = explained.interpret(definition, {"monthlyPayment": 536.82, "steps": ["Compute rate"]})
        assert result.explanations == []
