"""View models produced by the result interpreter.

``CalculatorResultView`` is a tagged union selected once per calculator id.
Each variant carries only the fields its layout needs, already formatted for
display. Sub-sections that could not be computed are ``None`` or empty.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class MainResult(BaseModel):
    """The headline output of a result display."""

    name: str
    label: str
    formatted: str
    unit_label: Optional[str] = None


class ResultRow(BaseModel):
    """One label/value line of a result display."""

    name: str
    label: str
    formatted: str
    highlighted: bool = False


class SolutionStep(BaseModel):
    title: str
    math: Optional[str] = None
    explanation: Optional[str] = None


class _ResultViewBase(BaseModel):
    main: Optional[MainResult] = None
    formula: Optional[str] = None
    explanation: Optional[str] = None

    def has_explanation(self) -> bool:
        """True when the view already carries prose of its own."""
        return bool(self.formula or self.explanation)


class GenericResultView(_ResultViewBase):
    kind: Literal["generic"] = "generic"
    normalized_form: Optional[str] = None
    direction: Optional[str] = None
    discriminant: Optional[str] = None
    roots: Optional[str] = None
    steps: List[SolutionStep] = Field(default_factory=list)
    insights: List[str] = Field(default_factory=list)
    rows: List[ResultRow] = Field(default_factory=list)

    def has_explanation(self) -> bool:
        return super().has_explanation() or bool(self.steps or self.insights)


class StatisticsView(_ResultViewBase):
    kind: Literal["statistics"] = "statistics"
    rows: List[ResultRow] = Field(default_factory=list)
    sorted_data: Optional[str] = None


class EquationSolverView(_ResultViewBase):
    kind: Literal["equation_solver"] = "equation_solver"
    outcome: Literal["solved", "no_solution", "infinite"] = "solved"
    normalized_form: Optional[str] = None
    roots: Optional[str] = None
    steps: List[SolutionStep] = Field(default_factory=list)

    def has_explanation(self) -> bool:
        return super().has_explanation() or bool(self.steps)


class PercentageChangeView(_ResultViewBase):
    kind: Literal["percentage_change"] = "percentage_change"
    direction: Optional[str] = None
    direction_tone: Literal["positive", "negative", "neutral"] = "neutral"
    rows: List[ResultRow] = Field(default_factory=list)


class AssetLiabilityBars(BaseModel):
    """Relative bar widths (0-100) for the asset vs liability comparison."""

    assets_percent: float
    liabilities_percent: float


class NetWorthView(_ResultViewBase):
    kind: Literal["net_worth"] = "net_worth"
    total_assets: Optional[str] = None
    total_liabilities: Optional[str] = None
    debt_to_asset_ratio: Optional[str] = None
    status: Optional[Literal["negative", "neutral", "positive"]] = None
    bars: Optional[AssetLiabilityBars] = None


class LoanRowView(BaseModel):
    loan_name: str
    monthly_payment: Optional[str] = None
    total_interest: Optional[str] = None
    fees: Optional[str] = None
    total_cost: Optional[str] = None
    payoff_months: Optional[int] = None
    interest_saved: Optional[str] = None
    is_winner: bool = False


class WinnerSummary(BaseModel):
    loan_name: str
    metric_label: str
    value: Optional[str] = None


class LoanComparisonView(_ResultViewBase):
    kind: Literal["loan_comparison"] = "loan_comparison"
    loans: List[LoanRowView] = Field(default_factory=list)
    winner: Optional[WinnerSummary] = None


CalculatorResultView = Annotated[
    Union[
        GenericResultView,
        StatisticsView,
        EquationSolverView,
        PercentageChangeView,
        NetWorthView,
        LoanComparisonView,
    ],
    Field(discriminator="kind"),
]


class OutputExplanation(BaseModel):
    """Category-level prose attached to one output."""

    output_name: str
    text: str


class InterpretedResult(BaseModel):
    """Interpreter output: the view plus any category-level explanations."""

    calculator_id: str
    view: CalculatorResultView
    explanations: List[OutputExplanation] = Field(default_factory=list)
