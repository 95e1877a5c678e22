"""Tests for the rule-based offline predictor."""

import asyncio
import json

import pytest

from sheet_risk.prediction import HeuristicChatBackend, PredictionClient, predict_from_rules
from sheet_risk.prediction.prompt import build_user_message


def _row(**kwargs) -> dict:
    row = {
        "Project": "Portal",
        "Vendor": "",
        "Role": "Analyst",
        "Allocated Hours": "1,000",
        "Actual Hours": "1,000",
        "Planned Cost": "$100,000",
        "Actual Cost": "$100,000",
        "Milestone Status": "In Progress",
        "Contract End Date": "2025-06-30",
        "Update Date": "2025-03-01",
    }
    row.update(kwargs)
    return row


def test_overutilized_under_budget_is_resource_constraints() -> None:
    out = predict_from_rules(_row(**{"Actual Hours": "1,250", "Actual Cost": "$95,000", "Expiring Soon": "Yes"}))
    assert out["Risk"] == "Resource Constraints"
    assert out["Issues"] == "Overtime"


def test_over_cost_and_hours_is_scope_creep() -> None:
    out = predict_from_rules(_row(**{"Actual Hours": "1,150", "Actual Cost": "$130,000"}))
    assert out["Risk"] == "Scope Creep"


def test_late_incomplete_is_tech_debt() -> None:
    out = predict_from_rules(_row(**{"Update Date": "2025-08-01", "Actual Hours": "1,050"}))
    assert out["Risk"] == "Tech Debt"


def test_low_vendor_spend_near_end_is_vendor_delay_and_budget_cut() -> None:
    out = predict_from_rules(
        _row(
            **{
                "Vendor": "Northwind",
                "Role": "Vendor Developer",
                "Expiring Soon": "yes",
                "Contract Target Price": "$400,000",
                "Actual Contract Spend": "$150,000",
            }
        )
    )
    assert out["Risk"] == "Vendor Delay"
    assert out["Issues"] == "Budget Cut"


def test_high_spend_late_incomplete_is_escalation_pending() -> None:
    out = predict_from_rules(
        _row(
            **{
                "Update Date": "2025-09-01",
                "Contract Target Price": "$200,000",
                "Actual Contract Spend": "$190,000",
            }
        )
    )
    assert out["Issues"] == "Escalation Pending"


def test_completed_with_big_overrun_is_requirement_gap() -> None:
    out = predict_from_rules(
        _row(
            **{
                "Milestone Status": "Completed",
                "Actual Hours": "1,400",
                "Actual Cost": "$130,000",
            }
        )
    )
    assert out["Issues"] == "Requirement Gap"


def test_forecast_adds_buffer_and_deviation_is_over_positive() -> None:
    out = predict_from_rules(_row(**{"Actual Hours": "1,200", "Actual Cost": "$100,000"}))
    assert out["Forecasted_Cost"] == pytest.approx(107500.0)
    assert out["Forecasted_Deviation"] == pytest.approx(7500.0)


def test_under_budget_deviation_is_negative() -> None:
    out = predict_from_rules(_row(**{"Actual Cost": "$80,000"}))
    assert out["Forecasted_Deviation"] == pytest.approx(-20000.0)


@pytest.mark.parametrize(
    ("actual_hours", "low", "high"),
    [("1,000", 0, 0), ("1,050", 0, 30), ("1,150", 30, 60), ("1,400", 60, 90)],
)
def test_burnout_bands(actual_hours: str, low: float, high: float) -> None:
    out = predict_from_rules(_row(**{"Actual Hours": actual_hours}))
    assert low <= out["Burnout_Risk"] <= high


def test_missing_numbers_still_predicts() -> None:
    out = predict_from_rules({"Project": "Bare"})
    assert out["Forecasted_Cost"] == 0.0
    assert out["Burnout_Risk"] == 0.0


def test_backend_reply_normalizes() -> None:
    backend = HeuristicChatBackend()
    reply = asyncio.run(backend.complete("ignored", build_user_message(_row(**{"Actual Hours": "1,300"}))))
    assert json.loads(reply)["Risk"] == "Resource Constraints"
    result = asyncio.run(PredictionClient(backend).predict(_row(**{"Actual Hours": "1,300"})))
    assert result.risk == "ResourceConstraints"
