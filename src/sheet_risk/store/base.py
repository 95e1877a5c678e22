"""Abstract document store for enriched records."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from sheet_risk.models.record import RecordKey


@dataclass
class UpsertResult:
    """Outcome of one acknowledged upsert."""

    inserted: bool  # False when an existing document was updated


class RecordStore(ABC):
    """
    Standard interface for record backends.
    Implementations raise StoreError for any backend failure.
    """

    name: str = ""

    @abstractmethod
    async def ping(self) -> None:
        """Lightweight liveness check. Raises StoreError when unreachable."""

    @abstractmethod
    async def upsert(self, key_filter: dict[str, Any], fields: dict[str, Any]) -> UpsertResult:
        """Set fields on the document matching key_filter, inserting it if absent."""

    @abstractmethod
    async def get(self, key: RecordKey) -> Optional[dict[str, Any]]:
        """Document for key, or None."""

    @abstractmethod
    async def find(
        self,
        spreadsheet_id: Optional[str] = None,
        owner_id: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """Documents filtered by spreadsheet and/or owner, ordered by row_index."""

    async def ensure_indexes(self) -> None:
        """Create backend indexes. Default: nothing to create."""

    async def close(self) -> None:
        """Release connections. Default: nothing to release."""
