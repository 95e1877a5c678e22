"""Data models for queue messages, predictions and stored records."""

from sheet_risk.models.message import InboundMessage
from sheet_risk.models.prediction import (
    ISSUE_CATEGORIES,
    RISK_CATEGORIES,
    IssueCategory,
    PredictionResult,
    RiskCategory,
)
from sheet_risk.models.record import RecordKey, StoredRecord

__all__ = [
    "ISSUE_CATEGORIES",
    "InboundMessage",
    "IssueCategory",
    "PredictionResult",
    "RISK_CATEGORIES",
    "RecordKey",
    "RiskCategory",
    "StoredRecord",
]
