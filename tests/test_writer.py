"""Tests for RecordWriter."""

import asyncio
from datetime import datetime, timezone

import pytest

from sheet_risk.errors import PersistenceError, StoreError
from sheet_risk.models import PredictionResult, RecordKey, StoredRecord
from sheet_risk.retry import RetryPolicy
from sheet_risk.store import RecordWriter
from tests.helpers import FakeStore


def _record(owner: str | None = "owner-1") -> StoredRecord:
    return StoredRecord(
        owner_id=owner,
        spreadsheet_id="sheet-1",
        row_index=4,
        project_identifier="Benefits Portal",
        sync_timestamp=datetime(2025, 1, 20, 10, 15, tzinfo=timezone.utc),
        source_data={"Project": "Benefits Portal"},
        ai_prediction=PredictionResult(
            risk="TechDebt",
            issues="Overtime",
            forecasted_cost=1000.0,
            forecasted_deviation=50.0,
            burnout_risk=20.0,
        ),
        last_processed_at=datetime(2025, 1, 20, 10, 16, tzinfo=timezone.utc),
    )


def test_store_writes_document(no_sleep_policy: RetryPolicy) -> None:
    store = FakeStore()
    record = _record()
    assert asyncio.run(RecordWriter(store, no_sleep_policy).store(record, record.key())) is True
    doc = store.documents[("sheet-1", 4, "owner-1")]
    assert doc["project_identifier"] == "Benefits Portal"
    assert doc["ai_prediction"]["risk"] == "TechDebt"
    assert doc["last_processed_at"] == "2025-01-20T10:16:00Z"


def test_same_record_twice_leaves_one_document(no_sleep_policy: RetryPolicy) -> None:
    store = FakeStore()
    writer = RecordWriter(store, no_sleep_policy)
    record = _record()
    asyncio.run(writer.store(record, record.key()))
    first = dict(store.documents[("sheet-1", 4, "owner-1")])
    asyncio.run(writer.store(record, record.key()))
    assert len(store.documents) == 1
    assert store.documents[("sheet-1", 4, "owner-1")] == first


def test_key_fields_override_document(no_sleep_policy: RetryPolicy) -> None:
    store = FakeStore()
    key = RecordKey(spreadsheet_id="sheet-9", row_index=7)
    asyncio.run(RecordWriter(store, no_sleep_policy).store({"spreadsheet_id": "wrong", "x": 1}, key))
    assert store.documents[("sheet-9", 7, None)] == {"spreadsheet_id": "sheet-9", "row_index": 7, "x": 1}


def test_transient_store_error_is_retried(no_sleep_policy: RetryPolicy, sleeps: list[float]) -> None:
    store = FakeStore(upsert_errors=[StoreError("primary stepped down")])
    record = _record()
    asyncio.run(RecordWriter(store, no_sleep_policy).store(record, record.key()))
    assert store.upsert_calls == 2
    assert sleeps == [1.0]
    assert len(store.documents) == 1


def test_exhausted_retries_raise_persistence_error(no_sleep_policy: RetryPolicy) -> None:
    store = FakeStore(upsert_errors=[StoreError("down")] * 5)
    record = _record()
    with pytest.raises(PersistenceError) as exc:
        asyncio.run(RecordWriter(store, no_sleep_policy).store(record, record.key()))
    assert store.upsert_calls == 3
    assert isinstance(exc.value.last_error, StoreError)
    assert store.documents == {}


def test_non_store_error_is_not_retried(no_sleep_policy: RetryPolicy) -> None:
    store = FakeStore(upsert_errors=[KeyError("bug")])
    record = _record()
    with pytest.raises(KeyError):
        asyncio.run(RecordWriter(store, no_sleep_policy).store(record, record.key()))
    assert store.upsert_calls == 1
