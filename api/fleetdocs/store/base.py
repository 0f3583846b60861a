"""
Contract: record store

The review engine never talks to a database directly. It reads and writes
three tables (``documents``, ``partners``, ``drivers``) through this port,
addressed by table name and record id. Records cross the boundary as plain
dicts; the services validate them into schemas.

Two adapters ship with the service:
  SqlStore     - PostgreSQL through an AsyncSession
  MemoryStore  - process-local dicts, for tests and local tooling
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from fleetdocs.errors import ValidationFailure
from fleetdocs.schemas.document import OwnerPatch

DOCUMENTS = "documents"
PARTNERS = "partners"
DRIVERS = "drivers"

TABLES = (DOCUMENTS, PARTNERS, DRIVERS)

# Filter values may be a scalar (equality) or a list/tuple/set (membership).
Filters = Mapping[str, Any]


class Store(ABC):
    """Port: record store."""

    @abstractmethod
    async def get(self, table: str, record_id: str) -> dict | None:
        """Return the record, or None when no row has this id."""
        ...

    @abstractmethod
    async def list(
        self,
        table: str,
        filters: Filters | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict]:
        """Return every record matching ``filters``, optionally ordered."""
        ...

    @abstractmethod
    async def insert(self, table: str, record: Mapping[str, Any]) -> dict:
        ...

    @abstractmethod
    async def update(self, table: str, record_id: str, changes: Mapping[str, Any]) -> dict:
        """
        Overwrite the given top-level columns and return the new record.

        Raises:
            NotFound: no row has this id.
            StoreWriteFailure: the write was rejected by the backend.
        """
        ...

    @abstractmethod
    async def patch_nested(self, table: str, record_id: str, patch: OwnerPatch) -> dict:
        """
        Merge ``patch.fields`` into ``documents[patch.type_key]`` and stamp
        ``updated_at``. Other keys of the entry and other entries of the map
        are preserved.

        Raises:
            NotFound: no row has this id.
            StoreWriteFailure: the write was rejected by the backend.
        """
        ...

    @abstractmethod
    async def delete(self, table: str, record_id: str) -> bool:
        """Delete the record. Returns False when it did not exist."""
        ...


def matches(record: Mapping[str, Any], filters: Filters | None) -> bool:
    """Evaluate a filter mapping against a single record."""
    if not filters:
        return True
    for key, expected in filters.items():
        value = record.get(key)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if value not in expected:
                return False
        elif value != expected:
            return False
    return True


def check_table(table: str, allowed: Sequence[str] = TABLES) -> None:
    if table not in allowed:
        raise ValidationFailure(f"Unknown table '{table}'")
