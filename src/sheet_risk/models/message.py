"""Inbound queue message model."""

from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from sheet_risk.models.record import RecordKey


class InboundMessage(BaseModel):
    """
    One spreadsheet row queued for enrichment.
    Accepts snake_case keys (as produced by the sheet reader) or camelCase.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    spreadsheet_id: str = Field(..., min_length=1, strict=True)
    sheet_range: str = Field(..., min_length=1, strict=True)
    row_index: int = Field(..., gt=0, strict=True)
    project_identifier: str = Field(..., strict=True)
    sync_timestamp: datetime = Field(..., strict=True)
    input_data: dict[str, Any] = Field(..., strict=True)
    owner_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "owner_id", "ownerId", "userId", "user_id", "connectionId", "connection_id"
        ),
        strict=True,
    )

    def record_key(self) -> RecordKey:
        """Natural key of the stored record this message produces."""
        return RecordKey(
            spreadsheet_id=self.spreadsheet_id,
            row_index=self.row_index,
            owner_id=self.owner_id,
        )
