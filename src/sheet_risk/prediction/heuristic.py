"""Offline backend: applies the prompt's rules to the row without calling a model."""

import json
from datetime import date, datetime
from typing import Any, Optional

from sheet_risk.models.row import numeric_fields
from sheet_risk.prediction.backends import ChatBackend

_DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%Y/%m/%d", "%d-%b-%Y")
_TRUTHY = {"yes", "y", "true", "1", "expiring", "expiring soon"}
_PRESSURE_ROLES = ("qa", "test", "dev", "engineer", "project manager", "pm")


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _ratio(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    if numerator is None or not denominator:
        return None
    return numerator / denominator


def predict_from_rules(row: dict[str, Any]) -> dict[str, Any]:
    """Deterministic prediction in the reply shape the model is asked for."""
    nums = numeric_fields(row)
    allocated = nums["Allocated Hours"]
    planned = nums["Planned Cost"]
    actual_cost = nums["Actual Cost"]
    target = nums["Contract Target Price"]
    ceiling = nums["Contract Ceiling Price"]
    spend = nums["Actual Contract Spend"]

    milestone = str(row.get("Milestone Status") or "").strip().lower()
    completed = milestone == "completed"
    expiring = str(row.get("Expiring Soon") or "").strip().lower() in _TRUTHY
    update = _parse_date(row.get("Update Date"))
    end = _parse_date(row.get("Contract End Date"))
    late = bool(update and end and update > end)
    role = str(row.get("Role") or "").lower()
    has_vendor = bool(str(row.get("Vendor") or "").strip())

    util = _ratio(nums["Actual Hours"], allocated)
    over_hours = util is not None and util > 1.0
    over_budget = actual_cost is not None and planned is not None and actual_cost > planned
    spend_ratio = _ratio(spend, target)

    scores = {"Resource Constraints": 0, "Tech Debt": 0, "Vendor Delay": 0, "Scope Creep": 0}
    if util is not None and util > 1.10:
        scores["Resource Constraints"] += 2
    if expiring or late:
        scores["Resource Constraints"] += 1
    if over_hours and not over_budget:
        scores["Resource Constraints"] += 1
    if not completed and late:
        scores["Tech Debt"] += 2
    if over_hours and not completed:
        scores["Tech Debt"] += 1
    if has_vendor and not completed and (expiring or late):
        scores["Vendor Delay"] += 1
    if spend_ratio is not None and spend_ratio < 0.7 and (expiring or late):
        scores["Vendor Delay"] += 2
    if "vendor" in role:
        scores["Vendor Delay"] += 1
    if over_budget and over_hours:
        scores["Scope Creep"] += 3
    if over_budget and late and not completed:
        scores["Scope Creep"] += 1
    # max() keeps the first of equal scores, so dict order is the tie-break
    risk = max(scores, key=lambda k: scores[k])

    if (
        util is not None
        and util > 1.3
        and completed
        and actual_cost is not None
        and planned
        and actual_cost > planned * 1.25
    ):
        issues = "Requirement Gap"
    elif not completed and late and spend_ratio is not None and spend_ratio >= 0.85:
        issues = "Escalation Pending"
    elif spend_ratio is not None and spend_ratio < 0.7 and (
        expiring or late or (ceiling is not None and target and ceiling > target * 1.2)
    ):
        issues = "Budget Cut"
    else:
        issues = "Overtime"

    base = actual_cost if actual_cost is not None else (planned or 0.0)
    if util is not None and util > 1.10:
        base *= 1.075
    if completed and util is not None and util > 1.2:
        base *= 1.02
    forecast = round(base, 2)
    deviation = round(forecast - (planned or 0.0), 2)

    overrun = max(0.0, (util - 1.0) * 100) if util is not None else 0.0
    if overrun < 10:
        burnout = overrun * 3
    elif overrun <= 20:
        burnout = 30 + (overrun - 10) * 3
    else:
        burnout = min(90.0, 60 + (overrun - 20) * 1.5)
    if completed and overrun > 0:
        burnout += 5
    if any(r in role for r in _PRESSURE_ROLES):
        burnout += 5

    return {
        "Risk": risk,
        "Issues": issues,
        "Forecasted_Cost": forecast,
        "Forecasted_Deviation": deviation,
        "Burnout_Risk": round(min(100.0, burnout), 1),
    }


class HeuristicChatBackend(ChatBackend):
    """Answers with predict_from_rules() for the row in the user message. For local runs and demos."""

    name = "heuristic"

    async def complete(self, system: str, user: str) -> str:
        row = json.loads(user)
        return json.dumps(predict_from_rules(row if isinstance(row, dict) else {}))
