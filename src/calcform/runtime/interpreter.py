"""
Result Interpreter - turns a raw result map into a calculator-specific view.

Responsibility: the computation endpoint decides what the numbers are; the
interpreter decides how to show them.

Dispatch is a closed registry keyed by calculator id. Result maps are not
self-describing, so each bespoke builder first validates the map against its
calculator's result schema (``calcform.schemas.computation``). A map that
does not fit is logged and rendered with the generic builder instead:
interpretation never raises on server data.

Category-level prose from ``ResultExplanationLookup`` is attached only when
the view carries no explanatory text of its own.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import ValidationError

from calcform.config.settings import EngineSettings
from calcform.runtime.explanations import ResultExplanationLookup
from calcform.runtime.formatters import (
    MISSING_VALUE,
    format_discriminant,
    format_equation_result,
    format_mode,
    format_output_value,
    format_percentage_change,
    format_roots,
    format_sorted_data,
)
from calcform.schemas.calculator import CalculatorDefinition, FormatType, OutputField
from calcform.schemas.computation import (
    EquationSolverResult,
    LoanComparisonResult,
    LoanComparisonRow,
    NetWorthResult,
    PercentageChangeResult,
    StatisticsResult,
)
from calcform.schemas.result_views import (
    AssetLiabilityBars,
    EquationSolverView,
    GenericResultView,
    InterpretedResult,
    LoanComparisonView,
    LoanRowView,
    MainResult,
    NetWorthView,
    OutputExplanation,
    PercentageChangeView,
    ResultRow,
    SolutionStep,
    StatisticsView,
    WinnerSummary,
)

logger = logging.getLogger(__name__)

ViewBuilder = Callable[[CalculatorDefinition, Mapping[str, Any]], Any]

STATISTICS_CALCULATORS = (
    "descriptive-statistics-calculator",
    "average-calculator",
    "standard-deviation-calculator",
)

# Outputs rendered in their own section, never as label/value rows.
_SECTION_OUTPUTS = frozenset({
    "formula",
    "explanation",
    "direction",
    "discriminant",
    "steps",
    "normalizedForm",
    "roots",
    "sortedData",
    "shapeName",
    "insights",
})

_HIGHLIGHTED_STATISTICS = frozenset({"mean", "median", "standardDeviation"})

_LOAN_METRIC_LABELS = {
    "lowest-monthly-payment": "Lowest Monthly Payment",
    "lowest-total-interest": "Lowest Total Interest",
    "lowest-total-cost": "Lowest Total Cost",
}


def _text(value: Any) -> Optional[str]:
    """Keep non-empty strings only."""
    if isinstance(value, str) and value:
        return value
    return None


def _is_composite(value: Any) -> bool:
    return isinstance(value, (list, tuple, dict))


def _steps(raw: Any) -> List[SolutionStep]:
    if not isinstance(raw, (list, tuple)):
        return []
    steps = []
    for index, step in enumerate(raw):
        if isinstance(step, str):
            steps.append(SolutionStep(title=step))
            continue
        if isinstance(step, Mapping):
            title, math, explanation = step.get("title"), step.get("math"), step.get("explanation")
        else:
            title = getattr(step, "title", None)
            math = getattr(step, "math", None)
            explanation = getattr(step, "explanation", None)
        steps.append(
            SolutionStep(
                title=_text(title) or f"Step {index + 1}",
                math=_text(math),
                explanation=_text(explanation),
            )
        )
    return steps


class ResultInterpreter:
    """
    Interprets raw computation output into a ``CalculatorResultView``.

    Args:
        settings: Engine settings (main output priority, currency code)
        explanations: Category-level explanation lookup. None disables it.
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        explanations: Optional[ResultExplanationLookup] = None,
    ):
        self.settings = settings or EngineSettings()
        self.explanations = explanations
        self._builders: Dict[str, ViewBuilder] = {}

        for calculator_id in STATISTICS_CALCULATORS:
            self.register(calculator_id, self.build_statistics)
        self.register("equation-solver", self.build_equation_solver)
        self.register("percentage-change-calculator", self.build_percentage_change)
        self.register("net-worth-calculator", self.build_net_worth)
        self.register("loan-comparison-calculator", self.build_loan_comparison)

    def register(self, calculator_id: str, builder: ViewBuilder) -> None:
        """Route ``calculator_id`` to a bespoke view builder."""
        self._builders[calculator_id] = builder

    def registered_ids(self) -> List[str]:
        return sorted(self._builders)

    def interpret(
        self,
        definition: CalculatorDefinition,
        outputs: Optional[Mapping[str, Any]],
    ) -> Optional[InterpretedResult]:
        """
        Build the display model for one result map.

        Args:
            definition: Calculator that produced the outputs
            outputs: Raw result map from the dispatcher

        Returns:
            InterpretedResult, or None when there is nothing to show
        """
        if not outputs:
            return None

        view = None
        builder = self._builders.get(definition.id)
        if builder is not None:
            try:
                view = builder(definition, outputs)
            except ValidationError as e:
                logger.warning(
                    f"Result for {definition.id} does not match its schema, "
                    f"using generic view: {e.error_count()} error(s)"
                )
                logger.debug(str(e))

        if view is None:
            view = self.build_generic(definition, outputs)

        explanations: List[OutputExplanation] = []
        if not view.has_explanation():
            explanations = self._explain(definition, outputs)

        return InterpretedResult(calculator_id=definition.id, view=view, explanations=explanations)

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _format(self, output: Optional[OutputField], value: Any) -> str:
        if output is None:
            return format_output_value(value, currency_code=self.settings.currency_code)
        return format_output_value(
            value,
            output.format_type,
            output.unit_label,
            currency_code=self.settings.currency_code,
        )

    def _currency(self, value: Optional[float]) -> Optional[str]:
        if value is None:
            return None
        return format_output_value(value, FormatType.CURRENCY, currency_code=self.settings.currency_code)

    def _label(self, definition: CalculatorDefinition, name: str, fallback: str) -> str:
        output = definition.get_output(name)
        if output is not None and output.label:
            return output.label
        return fallback

    def pick_main_output(self, definition: CalculatorDefinition) -> Optional[OutputField]:
        """First output named in the priority list, else the first declared."""
        for name in self.settings.main_output_priority:
            output = definition.get_output(name)
            if output is not None:
                return output
        return definition.outputs[0] if definition.outputs else None

    def _main_result(
        self,
        output: Optional[OutputField],
        value: Any,
        formatted: Optional[str] = None,
    ) -> Optional[MainResult]:
        if output is None or value is None:
            return None
        if formatted is None:
            if output.name == "roots":
                formatted = format_roots(value)
            elif output.name == "percentageChange" and isinstance(value, (int, float)):
                formatted = format_percentage_change(value)
            else:
                formatted = self._format(output, value)
        return MainResult(
            name=output.name,
            label=output.label or "Result",
            formatted=formatted,
            unit_label=output.unit_label,
        )

    def _rows(
        self,
        definition: CalculatorDefinition,
        outputs: Mapping[str, Any],
        exclude: frozenset,
    ) -> List[ResultRow]:
        rows = []
        for output in definition.outputs:
            if output.name in exclude or output.name in _SECTION_OUTPUTS:
                continue
            value = outputs.get(output.name)
            if value is None or _is_composite(value):
                continue
            rows.append(
                ResultRow(
                    name=output.name,
                    label=output.label or output.name,
                    formatted=self._format(output, value),
                )
            )
        return rows

    def _explain(
        self,
        definition: CalculatorDefinition,
        outputs: Mapping[str, Any],
    ) -> List[OutputExplanation]:
        if self.explanations is None:
            return []
        found = []
        for output in definition.outputs:
            text = self.explanations.explain(definition.category, output.name, outputs.get(output.name))
            if text:
                found.append(OutputExplanation(output_name=output.name, text=text))
        return found

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def build_generic(self, definition: CalculatorDefinition, outputs: Mapping[str, Any]) -> GenericResultView:
        main_output = self.pick_main_output(definition)
        main = self._main_result(main_output, outputs.get(main_output.name) if main_output else None)

        discriminant = outputs.get("discriminant")
        if isinstance(discriminant, (int, float)) and not isinstance(discriminant, bool):
            discriminant_text = format_discriminant(discriminant)
        else:
            discriminant_text = _text(discriminant)

        roots = outputs.get("roots")
        insights = outputs.get("insights")

        return GenericResultView(
            main=main,
            formula=_text(outputs.get("formula")),
            explanation=_text(outputs.get("explanation")),
            normalized_form=_text(outputs.get("normalizedForm")),
            direction=_text(outputs.get("direction")),
            discriminant=discriminant_text,
            roots=format_roots(roots) if roots is not None else None,
            steps=_steps(outputs.get("steps")),
            insights=[str(item) for item in insights] if isinstance(insights, (list, tuple)) else [],
            rows=self._rows(definition, outputs, frozenset({main.name}) if main else frozenset()),
        )

    def build_statistics(self, definition: CalculatorDefinition, outputs: Mapping[str, Any]) -> StatisticsView:
        result = StatisticsResult.model_validate(outputs)

        main_output = self.pick_main_output(definition)
        main = self._main_result(main_output, outputs.get(main_output.name) if main_output else None)

        rows = []
        for output in definition.outputs:
            if (main and output.name == main.name) or output.name in _SECTION_OUTPUTS:
                continue
            value = outputs.get(output.name)
            if value is None:
                continue
            if output.name == "mode":
                formatted = format_mode(result.mode)
            elif _is_composite(value):
                continue
            else:
                formatted = self._format(output, value)

            highlighted = (
                output.name in _HIGHLIGHTED_STATISTICS
                or definition.id == "average-calculator"
            )
            rows.append(
                ResultRow(
                    name=output.name,
                    label=output.label or output.name,
                    formatted=formatted,
                    highlighted=highlighted,
                )
            )

        return StatisticsView(
            main=main,
            formula=result.formula or None,
            rows=rows,
            sorted_data=format_sorted_data(result.sorted_data) if result.sorted_data else None,
        )

    def build_equation_solver(
        self, definition: CalculatorDefinition, outputs: Mapping[str, Any]
    ) -> EquationSolverView:
        result = EquationSolverResult.model_validate(outputs)

        main = None
        outcome = "solved"
        main_output = definition.get_output("result") or self.pick_main_output(definition)
        if result.result is not None and main_output is not None:
            formatted = format_equation_result(result.result)
            main = self._main_result(main_output, result.result, formatted=formatted)
            lowered = formatted.lower()
            if "no solution" in lowered or "no real roots" in lowered:
                outcome = "no_solution"
            elif "infinite" in lowered:
                outcome = "infinite"

        return EquationSolverView(
            main=main,
            outcome=outcome,
            formula=result.formula or None,
            explanation=result.explanation or None,
            normalized_form=result.normalized_form or None,
            roots=format_roots(result.roots) if result.roots is not None else None,
            steps=_steps(result.steps),
        )

    def build_percentage_change(
        self, definition: CalculatorDefinition, outputs: Mapping[str, Any]
    ) -> PercentageChangeView:
        result = PercentageChangeResult.model_validate(outputs)

        main = None
        if result.percentage_change is not None:
            main = MainResult(
                name="percentageChange",
                label=self._label(definition, "percentageChange", "Percentage Change"),
                formatted=format_percentage_change(result.percentage_change),
            )

        tone = "neutral"
        if result.direction == "Increase":
            tone = "positive"
        elif result.direction == "Decrease":
            tone = "negative"

        return PercentageChangeView(
            main=main,
            formula=result.formula or None,
            explanation=result.explanation or None,
            direction=result.direction or None,
            direction_tone=tone,
            rows=self._rows(definition, outputs, frozenset({"percentageChange"})),
        )

    def build_net_worth(self, definition: CalculatorDefinition, outputs: Mapping[str, Any]) -> NetWorthView:
        result = NetWorthResult.model_validate(outputs)

        main = None
        if result.net_worth is not None:
            main = MainResult(
                name="netWorth",
                label=self._label(definition, "netWorth", "Net Worth"),
                formatted=self._currency(result.net_worth),
            )

        ratio = None
        if result.debt_to_asset_ratio is not None:
            if not result.total_assets and result.total_liabilities:
                # Liabilities with no assets: the ratio is undefined.
                ratio = MISSING_VALUE
            else:
                ratio = format_output_value(result.debt_to_asset_ratio, FormatType.PERCENTAGE)

        bars = None
        assets = result.total_assets or 0.0
        liabilities = result.total_liabilities or 0.0
        largest = max(assets, liabilities)
        if largest > 0:
            bars = AssetLiabilityBars(
                assets_percent=round(max(assets, 0.0) / largest * 100, 2),
                liabilities_percent=round(max(liabilities, 0.0) / largest * 100, 2),
            )

        return NetWorthView(
            main=main,
            explanation=result.formula_explanation or None,
            total_assets=self._currency(result.total_assets),
            total_liabilities=self._currency(result.total_liabilities),
            debt_to_asset_ratio=ratio,
            status=result.net_worth_status,
            bars=bars,
        )

    def _loan_row(self, row: LoanComparisonRow, is_winner: bool) -> LoanRowView:
        return LoanRowView(
            loan_name=row.loan_name,
            monthly_payment=self._currency(row.monthly_payment),
            total_interest=self._currency(row.total_interest),
            fees=self._currency(row.fees),
            total_cost=self._currency(row.total_cost),
            payoff_months=row.payoff_months or None,
            interest_saved=self._currency(row.interest_saved) if row.interest_saved else None,
            is_winner=is_winner,
        )

    def build_loan_comparison(
        self, definition: CalculatorDefinition, outputs: Mapping[str, Any]
    ) -> LoanComparisonView:
        result = LoanComparisonResult.model_validate(outputs)
        best = result.best_loan_by_metric

        winner_index = best.loan_index if best is not None else None
        winner_name = result.winner.loan_name if result.winner is not None else None

        loans = []
        for index, row in enumerate(result.comparison_table or []):
            if winner_index is not None:
                is_winner = index == winner_index
            else:
                is_winner = winner_name is not None and row.loan_name == winner_name
            loans.append(self._loan_row(row, is_winner))

        winner = None
        main = None
        if best is not None and (best.loan_name or winner_name):
            loan_name = best.loan_name or winner_name
            metric_label = _LOAN_METRIC_LABELS.get(best.metric or "", best.metric or "")
            winner = WinnerSummary(
                loan_name=loan_name,
                metric_label=metric_label,
                value=self._currency(best.value),
            )
            main = MainResult(
                name="winner",
                label=self._label(definition, "winner", "Best Loan"),
                formatted=loan_name,
            )

        return LoanComparisonView(
            main=main,
            explanation=result.formula_explanation or None,
            loans=loans,
            winner=winner,
        )
