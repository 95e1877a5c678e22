"""MongoDB-backed record store (pymongo async API)."""

import logging
from typing import Any, Optional

from pymongo import ASCENDING, AsyncMongoClient
from pymongo.errors import PyMongoError

from sheet_risk.errors import StoreError
from sheet_risk.models.record import RecordKey
from sheet_risk.store.base import RecordStore, UpsertResult

logger = logging.getLogger(__name__)


class MongoRecordStore(RecordStore):
    """
    Records live in one collection; (spreadsheet_id, row_index, owner_id) is unique.
    One client is shared by every message handled in the process.
    """

    name = "mongodb"

    def __init__(
        self,
        uri: str,
        db_name: str,
        collection: str = "GoogleSheet",
        *,
        timeout_ms: int = 5000,
        client: Optional[AsyncMongoClient] = None,
    ):
        self._client = client or AsyncMongoClient(
            uri,
            serverSelectionTimeoutMS=timeout_ms,
            connectTimeoutMS=timeout_ms,
            socketTimeoutMS=timeout_ms,
            retryWrites=True,
            w="majority",
        )
        self._collection = self._client[db_name][collection]

    @staticmethod
    def _key_query(key_filter: dict[str, Any]) -> dict[str, Any]:
        """Owner-less keys match only documents whose owner_id is null or missing."""
        return {**key_filter, "owner_id": key_filter.get("owner_id")}

    async def ping(self) -> None:
        try:
            await self._client.admin.command("ping")
        except PyMongoError as e:
            raise StoreError(f"MongoDB ping failed: {e}") from e

    async def ensure_indexes(self) -> None:
        """Create the unique key index. Safe to call repeatedly."""
        try:
            await self._collection.create_index(
                [("spreadsheet_id", ASCENDING), ("row_index", ASCENDING), ("owner_id", ASCENDING)],
                unique=True,
                name="record_key",
            )
        except PyMongoError as e:
            raise StoreError(f"MongoDB index creation failed: {e}") from e

    async def upsert(self, key_filter: dict[str, Any], fields: dict[str, Any]) -> UpsertResult:
        try:
            result = await self._collection.update_one(
                self._key_query(key_filter), {"$set": fields}, upsert=True
            )
        except PyMongoError as e:
            raise StoreError(f"MongoDB upsert failed: {e}") from e
        if not result.acknowledged:
            raise StoreError("MongoDB upsert not acknowledged")
        return UpsertResult(inserted=result.upserted_id is not None)

    async def get(self, key: RecordKey) -> Optional[dict[str, Any]]:
        try:
            return await self._collection.find_one(self._key_query(key.as_filter()), {"_id": 0})
        except PyMongoError as e:
            raise StoreError(f"MongoDB read failed: {e}") from e

    async def find(
        self,
        spreadsheet_id: Optional[str] = None,
        owner_id: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        query: dict[str, Any] = {}
        if spreadsheet_id is not None:
            query["spreadsheet_id"] = spreadsheet_id
        if owner_id is not None:
            query["owner_id"] = owner_id
        try:
            cursor = self._collection.find(query, {"_id": 0}).sort("row_index", ASCENDING)
            return await cursor.to_list(length=None)
        except PyMongoError as e:
            raise StoreError(f"MongoDB query failed: {e}") from e

    async def close(self) -> None:
        await self._client.close()
