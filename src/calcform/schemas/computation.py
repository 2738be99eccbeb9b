"""Wire models for the computation endpoint and per-calculator result schemas.

The endpoint returns a free-form ``results`` map. Calculators with bespoke
result layouts validate that map against one of the schemas below before the
interpreter reads it, so view builders never probe an untyped dict. Every
field is optional: a calculator returns ``null`` for sections it could not
compute.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ComputationRequest(BaseModel):
    """Body POSTed to ``/api/calculators/{id}/calculate``."""

    inputs: Dict[str, Union[float, str]] = Field(default_factory=dict)
    locale: str = "en"


class ComputationResponse(BaseModel):
    """Body returned by the endpoint, success or failure."""

    model_config = ConfigDict(extra="ignore")

    results: Optional[Dict[str, Any]] = None
    formatted_results: Optional[Dict[str, str]] = Field(default=None, alias="formattedResults")
    error: Optional[str] = None
    message: Optional[str] = None
    errors: Optional[Dict[str, str]] = None


class _CalculatorResult(BaseModel):
    """Result maps use camelCase keys on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class NetWorthResult(_CalculatorResult):
    total_assets: Optional[float] = None
    total_liabilities: Optional[float] = None
    net_worth: Optional[float] = None
    debt_to_asset_ratio: Optional[float] = None
    net_worth_status: Optional[Literal["negative", "neutral", "positive"]] = None
    formula_explanation: Optional[str] = None


class LoanComparisonRow(_CalculatorResult):
    loan_name: str = ""
    loan_amount: Optional[float] = None
    annual_interest_rate: Optional[float] = None
    loan_term_years: Optional[float] = None
    fees: Optional[float] = None
    extra_monthly_payment: Optional[float] = None
    monthly_payment: Optional[float] = None
    total_payment: Optional[float] = None
    total_interest: Optional[float] = None
    total_cost: Optional[float] = None
    payoff_months: Optional[int] = None
    interest_saved: Optional[float] = None


class BestLoanByMetric(_CalculatorResult):
    metric: Optional[str] = None
    loan_index: Optional[int] = None
    loan_name: Optional[str] = None
    value: Optional[float] = None


class LoanComparisonResult(_CalculatorResult):
    comparison_table: Optional[List[LoanComparisonRow]] = None
    winner: Optional[LoanComparisonRow] = None
    best_loan_by_metric: Optional[BestLoanByMetric] = None
    formula_explanation: Optional[str] = None


class StepData(_CalculatorResult):
    title: Optional[str] = None
    math: Optional[str] = None
    explanation: Optional[str] = None


class EquationSolverResult(_CalculatorResult):
    result: Optional[Union[float, str, List[float]]] = None
    roots: Optional[Union[List[Union[float, str]], str]] = None
    steps: Optional[List[Union[StepData, str]]] = None
    normalized_form: Optional[str] = None
    formula: Optional[str] = None
    explanation: Optional[str] = None


class PercentageChangeResult(_CalculatorResult):
    percentage_change: Optional[float] = None
    direction: Optional[str] = None
    formula: Optional[str] = None
    explanation: Optional[str] = None


class StatisticsResult(_CalculatorResult):
    mode: Optional[Union[str, float, List[float]]] = None
    sorted_data: Optional[List[float]] = None
    formula: Optional[str] = None
