"""Persistence writer: idempotent, retrying upsert of one enriched record."""

import logging
from typing import Any

from sheet_risk.errors import PersistenceError, RetryExhaustedError, StoreError
from sheet_risk.models.record import RecordKey, StoredRecord
from sheet_risk.retry import RetryPolicy
from sheet_risk.store.base import RecordStore

logger = logging.getLogger(__name__)


class RecordWriter:
    """
    Upserts records by natural key. Writing the same document for the same key
    again leaves one document with the same field values.
    """

    def __init__(self, store: RecordStore, retry_policy: RetryPolicy | None = None):
        self.record_store = store
        self.retry_policy = (retry_policy or RetryPolicy()).with_retry_on(StoreError)

    async def store(self, document: StoredRecord | dict[str, Any], key: RecordKey) -> bool:
        """Insert or update. Returns True once acknowledged; raises PersistenceError after retries."""
        fields = document.to_document() if isinstance(document, StoredRecord) else dict(document)
        key_filter = key.as_filter()
        fields.update(key_filter)
        logger.debug("Upsert key %s, document %s", key_filter, fields)
        try:
            result = await self.retry_policy.run(
                lambda: self.record_store.upsert(key_filter, fields),
                description=f"{self.record_store.name} upsert",
            )
        except RetryExhaustedError as e:
            raise PersistenceError("all store attempts failed", e.last_error) from e.last_error
        logger.info(
            "Record %s row %d %s",
            key.spreadsheet_id,
            key.row_index,
            "inserted" if result.inserted else "updated",
        )
        return True
