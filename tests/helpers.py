"""Fakes and payload builders shared by the test modules."""

import json
from typing import Any, Optional

from sheet_risk.models.record import RecordKey
from sheet_risk.prediction.backends import ChatBackend
from sheet_risk.store.base import RecordStore, UpsertResult

VALID_REPLY = json.dumps(
    {
        "Risk": "Resource Constraints",
        "Issues": "Overtime reported",
        "Forecasted_Cost": "$12,345",
        "Forecasted_Deviation": "±$1,200",
        "Burnout": "70%",
    }
)


class FakeBackend(ChatBackend):
    """Replays scripted replies; an Exception entry is raised instead of returned."""

    name = "fake"

    def __init__(self, replies: list[Any]):
        self.replies = list(replies)
        self.calls: list[tuple[str, str]] = []
        self.closed = False

    async def complete(self, system: str, user: str) -> str:
        self.calls.append((system, user))
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        return reply

    async def close(self) -> None:
        self.closed = True


class FakeStore(RecordStore):
    """In-memory store with $set semantics and injectable failures."""

    name = "fake"

    def __init__(self, *, ping_error: Optional[Exception] = None, upsert_errors: Optional[list] = None):
        self.documents: dict[tuple, dict[str, Any]] = {}
        self.ping_error = ping_error
        self.upsert_errors = list(upsert_errors or [])
        self.ping_calls = 0
        self.upsert_calls = 0

    @staticmethod
    def _key(key_filter: dict[str, Any]) -> tuple:
        return (key_filter["spreadsheet_id"], key_filter["row_index"], key_filter.get("owner_id"))

    async def ping(self) -> None:
        self.ping_calls += 1
        if self.ping_error is not None:
            raise self.ping_error

    async def upsert(self, key_filter: dict[str, Any], fields: dict[str, Any]) -> UpsertResult:
        self.upsert_calls += 1
        if self.upsert_errors:
            raise self.upsert_errors.pop(0)
        key = self._key(key_filter)
        inserted = key not in self.documents
        self.documents.setdefault(key, dict(key_filter)).update(fields)
        return UpsertResult(inserted=inserted)

    async def get(self, key: RecordKey) -> Optional[dict[str, Any]]:
        return self.documents.get(self._key(key.as_filter()))

    async def find(self, spreadsheet_id=None, owner_id=None) -> list[dict[str, Any]]:
        return [
            d
            for d in self.documents.values()
            if (spreadsheet_id is None or d["spreadsheet_id"] == spreadsheet_id)
            and (owner_id is None or d.get("owner_id") == owner_id)
        ]


def make_payload(**overrides: Any) -> dict[str, Any]:
    """Valid inbound message payload (snake_case, as the sheet reader sends it)."""
    payload: dict[str, Any] = {
        "userId": "owner-1",
        "spreadsheet_id": "sheet-1",
        "sheet_range": "Sheet1!A1:T50",
        "row_index": 2,
        "project_identifier": "Benefits Portal",
        "sync_timestamp": "2025-01-20T10:15:00Z",
        "input_data": {
            "Project": "Benefits Portal",
            "Allocated Hours": "1,200",
            "Actual Hours": "1,460",
            "Planned Cost": "$96,000",
            "Actual Cost": "$92,300",
        },
    }
    payload.update(overrides)
    return payload


def make_body(**overrides: Any) -> str:
    return json.dumps(make_payload(**overrides))
