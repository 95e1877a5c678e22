"""Canonical AI prediction attached to each stored row."""

from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, Field

RiskCategory = Literal["ResourceConstraints", "TechDebt", "VendorDelay", "ScopeCreep"]
IssueCategory = Literal["Overtime", "BudgetCut", "EscalationPending", "RequirementGap"]

RISK_CATEGORIES: tuple[str, ...] = get_args(RiskCategory)
ISSUE_CATEGORIES: tuple[str, ...] = get_args(IssueCategory)


class PredictionResult(BaseModel):
    """
    Validated model output.
    forecasted_deviation is forecasted_cost minus planned cost: positive means
    over budget, negative means under budget.
    """

    model_config = ConfigDict(frozen=True)

    risk: RiskCategory
    issues: IssueCategory
    forecasted_cost: float = Field(..., allow_inf_nan=False, description="USD")
    forecasted_deviation: float = Field(..., allow_inf_nan=False, description="USD, signed")
    burnout_risk: float = Field(..., ge=0, le=100, allow_inf_nan=False, description="Percent")
