"""SQLite-backed record store for local runs and tests."""

import asyncio
import json
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from sheet_risk.errors import StoreError
from sheet_risk.models.record import RecordKey
from sheet_risk.store.base import RecordStore, UpsertResult


class SQLiteRecordStore(RecordStore):
    """
    Stores each record as a JSON document keyed by (spreadsheet_id, row_index, owner_id).
    Upserts merge fields into the existing document like a $set.
    Blocking sqlite calls run in a worker thread.
    """

    name = "sqlite"

    def __init__(self, db_path: str | Path = "sheet_risk.db"):
        self._db_path = Path(db_path)
        self._ensure_schema()

    def _connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, timeout=5.0)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        schema_path = Path(__file__).parent / "schema.sql"
        try:
            with closing(self._connection()) as conn:
                conn.executescript(schema_path.read_text())
        except sqlite3.Error as e:
            raise StoreError(f"SQLite schema setup failed: {e}") from e

    @staticmethod
    def _key_params(key_filter: dict[str, Any]) -> tuple[str, int, str]:
        return (
            key_filter["spreadsheet_id"],
            key_filter["row_index"],
            key_filter.get("owner_id") or "",
        )

    def _ping_sync(self) -> None:
        with closing(self._connection()) as conn:
            conn.execute("SELECT 1").fetchone()

    def _upsert_sync(self, key_filter: dict[str, Any], fields: dict[str, Any]) -> UpsertResult:
        now = datetime.now(timezone.utc).isoformat()
        params = self._key_params(key_filter)
        with closing(self._connection()) as conn, conn:
            row = conn.execute(
                "SELECT document FROM records WHERE spreadsheet_id = ? AND row_index = ? AND owner_id = ?",
                params,
            ).fetchone()
            document = json.loads(row["document"]) if row else dict(key_filter)
            document.update(fields)
            data_str = json.dumps(document, default=str)
            conn.execute(
                """
                INSERT INTO records (spreadsheet_id, row_index, owner_id, document, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT (spreadsheet_id, row_index, owner_id)
                DO UPDATE SET document = excluded.document, updated_at = excluded.updated_at
                """,
                (*params, data_str, now, now),
            )
        return UpsertResult(inserted=row is None)

    def _get_sync(self, key: RecordKey) -> Optional[dict[str, Any]]:
        with closing(self._connection()) as conn:
            row = conn.execute(
                "SELECT document FROM records WHERE spreadsheet_id = ? AND row_index = ? AND owner_id = ?",
                self._key_params(key.as_filter()),
            ).fetchone()
        return json.loads(row["document"]) if row else None

    def _find_sync(self, spreadsheet_id: Optional[str], owner_id: Optional[str]) -> list[dict[str, Any]]:
        clauses: list[str] = []
        params: list[Any] = []
        if spreadsheet_id is not None:
            clauses.append("spreadsheet_id = ?")
            params.append(spreadsheet_id)
        if owner_id is not None:
            clauses.append("owner_id = ?")
            params.append(owner_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with closing(self._connection()) as conn:
            rows = conn.execute(
                f"SELECT document FROM records {where} ORDER BY spreadsheet_id, row_index",
                params,
            ).fetchall()
        return [json.loads(r["document"]) for r in rows]

    async def _run(self, action: str, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except sqlite3.Error as e:
            raise StoreError(f"SQLite {action} failed: {e}") from e

    async def ping(self) -> None:
        await self._run("ping", self._ping_sync)

    async def upsert(self, key_filter: dict[str, Any], fields: dict[str, Any]) -> UpsertResult:
        return await self._run("upsert", self._upsert_sync, key_filter, fields)

    async def get(self, key: RecordKey) -> Optional[dict[str, Any]]:
        return await self._run("read", self._get_sync, key)

    async def find(
        self,
        spreadsheet_id: Optional[str] = None,
        owner_id: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        return await self._run("query", self._find_sync, spreadsheet_id, owner_id)
