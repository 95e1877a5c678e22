"""
Batch orchestration: validate -> predict -> persist for every queue record.

Records in a batch run concurrently and fail independently. Failed message ids
are reported back so the queue redelivers only those. A dead document store
fails the whole batch before any model call is made.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional, Protocol

from sheet_risk.errors import DependencyUnavailableError, SheetRiskError
from sheet_risk.models.prediction import PredictionResult
from sheet_risk.models.record import StoredRecord
from sheet_risk.store.base import RecordStore
from sheet_risk.store.writer import RecordWriter
from sheet_risk.validation import parse_message

logger = logging.getLogger(__name__)

RECEIVED = "received"
VALIDATED = "validated"
PREDICTED = "predicted"
PERSISTED = "persisted"
DONE = "done"
FAILED = "failed"


class Predictor(Protocol):
    async def predict(self, input_data: dict[str, Any]) -> PredictionResult: ...


@dataclass(frozen=True)
class QueueRecord:
    """One delivered queue message."""

    message_id: str
    body: str

    @classmethod
    def from_event_record(cls, record: Mapping[str, Any]) -> "QueueRecord":
        """Build from an SQS event record ({"messageId": ..., "body": ...})."""
        return cls(
            message_id=str(record.get("messageId") or record.get("message_id") or ""),
            body=record.get("body") or "",
        )


@dataclass
class ItemOutcome:
    """Terminal state of one message: done, or failed at failed_at with error."""

    message_id: str
    stage: str = RECEIVED
    failed_at: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.stage == DONE

    def fail(self, exc: BaseException) -> None:
        self.failed_at = self.stage
        self.stage = FAILED
        self.error = str(exc)
        self.error_type = type(exc).__name__


@dataclass
class BatchResult:
    """Per-item outcomes of one batch."""

    outcomes: list[ItemOutcome] = field(default_factory=list)

    @property
    def failed_ids(self) -> list[str]:
        seen: dict[str, None] = {}
        for o in self.outcomes:
            if not o.succeeded:
                seen.setdefault(o.message_id, None)
        return list(seen)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.succeeded)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.succeeded

    def to_response(self) -> dict[str, list[dict[str, str]]]:
        """Partial batch response for the queue runtime."""
        return {"batchItemFailures": [{"itemIdentifier": i} for i in self.failed_ids]}


class BatchOrchestrator:
    """Drives queue records through validation, prediction and persistence."""

    def __init__(
        self,
        store: RecordStore,
        predictor: Predictor,
        writer: RecordWriter,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.predictor = predictor
        self.writer = writer
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def process_batch(
        self, records: Iterable[QueueRecord | Mapping[str, Any]]
    ) -> BatchResult:
        """Process one delivery batch. Never raises for per-item failures."""
        items = [
            r if isinstance(r, QueueRecord) else QueueRecord.from_event_record(r) for r in records
        ]
        logger.info("Processing batch of %d records", len(items))
        if not items:
            return BatchResult()

        try:
            await self.store.ping()
        except Exception as e:
            error = DependencyUnavailableError(f"{self.store.name} store unreachable", e)
            logger.error("%s; failing all %d records", error, len(items))
            outcomes = [ItemOutcome(message_id=item.message_id) for item in items]
            for outcome in outcomes:
                outcome.fail(error)
            return BatchResult(outcomes)

        outcomes = await asyncio.gather(*(self._process_one(item) for item in items))
        result = BatchResult(list(outcomes))
        logger.info("Batch complete. Success: %d, Failed: %d", result.succeeded, result.failed)
        return result

    async def _process_one(self, item: QueueRecord) -> ItemOutcome:
        outcome = ItemOutcome(message_id=item.message_id)
        try:
            message = parse_message(item.body)
            outcome.stage = VALIDATED
            logger.info(
                "Processing %s: %s (row %d)",
                item.message_id,
                message.project_identifier,
                message.row_index,
            )
            prediction = await self.predictor.predict(message.input_data)
            outcome.stage = PREDICTED
            record = StoredRecord.from_message(message, prediction, processed_at=self._clock())
            await self.writer.store(record, message.record_key())
            outcome.stage = PERSISTED
            logger.info("Record %s persisted", item.message_id)
            outcome.stage = DONE
        except SheetRiskError as e:
            outcome.fail(e)
            logger.error("Record %s failed at %s: %s", item.message_id, outcome.failed_at, e)
        except Exception as e:
            outcome.fail(e)
            logger.exception("Record %s failed unexpectedly at %s", item.message_id, outcome.failed_at)
        return outcome
