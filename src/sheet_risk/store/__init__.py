"""Document store for enriched records."""

from typing import TYPE_CHECKING

from sheet_risk.store.base import RecordStore, UpsertResult
from sheet_risk.store.mongo_store import MongoRecordStore
from sheet_risk.store.sqlite_store import SQLiteRecordStore
from sheet_risk.store.writer import RecordWriter

if TYPE_CHECKING:
    from sheet_risk.config import Settings

SQLITE_PREFIX = "sqlite:///"


def build_store(settings: "Settings") -> RecordStore:
    """MongoDB for mongodb:// URIs, SQLite for sqlite:///path."""
    if settings.mongo_uri.startswith(SQLITE_PREFIX):
        return SQLiteRecordStore(settings.mongo_uri[len(SQLITE_PREFIX):])
    return MongoRecordStore(
        settings.mongo_uri,
        settings.db_name or "",
        settings.collection_name,
        timeout_ms=settings.store_timeout_ms,
    )


__all__ = [
    "MongoRecordStore",
    "RecordStore",
    "RecordWriter",
    "SQLiteRecordStore",
    "UpsertResult",
    "build_store",
]
