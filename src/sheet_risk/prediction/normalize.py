"""
Repair and validate raw model replies into PredictionResult.

Replies are JSON-mode but still vary: alias keys ("Burnout", "Forecasted Final Cost(USD)"),
currency or percent strings ("$12,345", "±$1,200", "70%"), label spelling
("Vendor delay ", "Overtime reported") and occasional prose around the object.
"""

import json
import re
from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from sheet_risk.errors import NormalizationError
from sheet_risk.models.prediction import PredictionResult
from sheet_risk.models.row import coerce_number

# Output field -> canonical reply key first, then accepted aliases (compared via _canon).
_FIELD_KEYS: dict[str, tuple[str, ...]] = {
    "risk": ("Risk", "Risks", "Predicted Risk"),
    "issues": ("Issues", "Issue"),
    "forecasted_cost": (
        "Forecasted_Cost",
        "Forecasted Final Cost(USD)",
        "Forecasted Final Cost",
        "Forecast Cost",
    ),
    "forecasted_deviation": (
        "Forecasted_Deviation",
        "Forecasted Cost Deviation(USD)",
        "Forecasted Cost Deviation",
        "Cost Deviation",
    ),
    "burnout_risk": ("Burnout_Risk", "Burnout", "Burnout Risk Percentage"),
}

_NUMERIC = ("forecasted_cost", "forecasted_deviation", "burnout_risk")

_RISK_LABELS: dict[str, str] = {
    "resourceconstraints": "ResourceConstraints",
    "resourceconstraint": "ResourceConstraints",
    "techdebt": "TechDebt",
    "technicaldebt": "TechDebt",
    "vendordelay": "VendorDelay",
    "vendordelays": "VendorDelay",
    "scopecreep": "ScopeCreep",
}

_ISSUE_LABELS: dict[str, str] = {
    "overtime": "Overtime",
    "overtimereported": "Overtime",
    "budgetcut": "BudgetCut",
    "budgetcuts": "BudgetCut",
    "escalationpending": "EscalationPending",
    "requirementgap": "RequirementGap",
    "requirementsgap": "RequirementGap",
    "requirementgaps": "RequirementGap",
}

_OBJECT_BLOCK = re.compile(r"\{.*\}", re.DOTALL)


def _canon(text: str) -> str:
    return re.sub(r"[^a-z]", "", text.lower())


def parse_reply(text: str) -> dict[str, Any]:
    """Parse reply text as a JSON object, falling back to the outermost {...} block."""
    if not text or not text.strip():
        raise NormalizationError("empty reply")
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        match = _OBJECT_BLOCK.search(text)
        if not match:
            raise NormalizationError("reply contains no JSON object") from None
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise NormalizationError(f"reply is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise NormalizationError(f"reply is a JSON {type(data).__name__}, expected an object")
    return data


def rename_aliases(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Map reply keys onto output field names. The canonical key wins over an alias
    when both are present; unknown keys are dropped. Nested objects one level deep
    are searched too (some replies group cost fields under a sub-object).
    """
    flat: dict[str, Any] = dict(data)
    for value in data.values():
        if isinstance(value, Mapping):
            for k, v in value.items():
                flat.setdefault(k, v)
    by_canon: dict[str, Any] = {}
    for key, value in flat.items():
        if isinstance(key, str) and not isinstance(value, Mapping):
            by_canon.setdefault(_canon(key), value)
    out: dict[str, Any] = {}
    for field, names in _FIELD_KEYS.items():
        for name in names:
            canon = _canon(name)
            if canon in by_canon:
                out[field] = by_canon[canon]
                break
    return out


def _label(value: Any, labels: dict[str, str]) -> Any:
    if not isinstance(value, str):
        return value
    return labels.get(_canon(value), value.strip())


def normalize_prediction(raw: str | Mapping[str, Any]) -> PredictionResult:
    """
    Turn a raw reply (text or decoded object) into a validated PredictionResult.
    Raises NormalizationError when the reply cannot be repaired.
    """
    data = parse_reply(raw) if isinstance(raw, str) else dict(raw)
    fields = rename_aliases(data)
    missing = [f for f in _FIELD_KEYS if f not in fields]
    if missing:
        raise NormalizationError(f"reply is missing {', '.join(missing)}")
    for name in _NUMERIC:
        number = coerce_number(fields[name])
        if number is None:
            raise NormalizationError(f"{name} is not a number: {fields[name]!r}")
        fields[name] = number
    fields["risk"] = _label(fields["risk"], _RISK_LABELS)
    fields["issues"] = _label(fields["issues"], _ISSUE_LABELS)
    try:
        return PredictionResult.model_validate(fields)
    except PydanticValidationError as e:
        first = e.errors(include_url=False)[0]
        loc = ".".join(str(p) for p in first["loc"])
        raise NormalizationError(f"{loc}: {first['msg']}") from e
