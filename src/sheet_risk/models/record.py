"""Persisted record model and its natural key."""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, Field

from sheet_risk.models.prediction import PredictionResult

if TYPE_CHECKING:
    from sheet_risk.models.message import InboundMessage


class RecordKey(BaseModel):
    """Composite identity: (spreadsheet_id, row_index[, owner_id])."""

    spreadsheet_id: str
    row_index: int
    owner_id: Optional[str] = None

    def as_filter(self) -> dict[str, Any]:
        """Upsert filter; owner_id is only part of the key when set."""
        return self.model_dump(exclude_none=True)


class StoredRecord(BaseModel):
    """Enriched row as written to the document store."""

    owner_id: Optional[str] = None
    spreadsheet_id: str
    row_index: int
    project_identifier: str
    sync_timestamp: datetime
    source_data: dict[str, Any] = Field(default_factory=dict)
    ai_prediction: PredictionResult
    last_processed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_message(
        cls,
        message: "InboundMessage",
        prediction: PredictionResult,
        processed_at: Optional[datetime] = None,
    ) -> "StoredRecord":
        """Merge the original row with its prediction."""
        return cls(
            owner_id=message.owner_id,
            spreadsheet_id=message.spreadsheet_id,
            row_index=message.row_index,
            project_identifier=message.project_identifier,
            sync_timestamp=message.sync_timestamp,
            source_data=dict(message.input_data),
            ai_prediction=prediction,
            last_processed_at=processed_at or datetime.now(timezone.utc),
        )

    def key(self) -> RecordKey:
        return RecordKey(
            spreadsheet_id=self.spreadsheet_id,
            row_index=self.row_index,
            owner_id=self.owner_id,
        )

    def to_document(self) -> dict[str, Any]:
        """JSON-ready document; owner_id omitted when absent."""
        data = self.model_dump(mode="json")
        if data.get("owner_id") is None:
            data.pop("owner_id", None)
        return data
