"""Process-level wiring: build shared clients once, close them on shutdown."""

import logging
from typing import Any, Mapping, Optional

from sheet_risk.config import Settings
from sheet_risk.errors import StoreError
from sheet_risk.orchestrator import BatchOrchestrator, BatchResult
from sheet_risk.prediction import PredictionClient, build_backend
from sheet_risk.retry import RetryPolicy
from sheet_risk.store import RecordStore, RecordWriter, build_store

logger = logging.getLogger(__name__)


class Worker:
    """Owns the store and model clients shared by every batch in the process."""

    def __init__(self, store: RecordStore, predictor: PredictionClient, writer: RecordWriter):
        self.store = store
        self.predictor = predictor
        self.writer = writer
        self.orchestrator = BatchOrchestrator(store, predictor, writer)

    @classmethod
    def from_settings(cls, settings: Settings, *, retry_policy: Optional[RetryPolicy] = None) -> "Worker":
        policy = retry_policy or RetryPolicy(
            max_attempts=settings.max_retries,
            base_delay=settings.retry_base_delay,
        )
        store = build_store(settings)
        predictor = PredictionClient(build_backend(settings), policy)
        writer = RecordWriter(store, policy)
        logger.info(
            "Worker ready: store=%s, llm=%s (%s), max_retries=%d",
            store.name,
            predictor.backend.name,
            settings.llm_model,
            settings.max_retries,
        )
        return cls(store, predictor, writer)

    async def start(self) -> None:
        """Prepare the store. A dead store is reported per batch, not here."""
        try:
            await self.store.ensure_indexes()
        except StoreError as e:
            logger.warning("Index setup skipped: %s", e)

    async def process(self, records: list[Mapping[str, Any]]) -> BatchResult:
        return await self.orchestrator.process_batch(records)

    async def handle(self, event: Mapping[str, Any]) -> dict[str, Any]:
        """Queue event ({"Records": [...]}) -> partial batch response."""
        result = await self.process(list(event.get("Records") or []))
        return result.to_response()

    async def close(self) -> None:
        await self.predictor.close()
        await self.store.close()

    async def __aenter__(self) -> "Worker":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
