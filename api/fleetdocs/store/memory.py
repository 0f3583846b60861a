import copy
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from fleetdocs.errors import NotFound, StoreWriteFailure
from fleetdocs.schemas.document import OwnerPatch
from fleetdocs.store.base import TABLES, Filters, Store, check_table, matches


class MemoryStore(Store):
    """Dict-backed store. Records are deep-copied on the way in and out."""

    def __init__(self, seed: Mapping[str, Iterable[Mapping[str, Any]]] | None = None):
        self._tables: dict[str, dict[str, dict]] = {name: {} for name in TABLES}
        # Record ids whose writes should fail, per table
        self._fail_writes: dict[str, set[str]] = {name: set() for name in TABLES}
        for table, records in (seed or {}).items():
            check_table(table)
            for record in records:
                self._tables[table][str(record["id"])] = copy.deepcopy(dict(record))

    def fail_writes_for(self, table: str, *record_ids: str) -> None:
        """Make every later write to these ids raise StoreWriteFailure."""
        self._fail_writes[table].update(record_ids)

    def _row(self, table: str, record_id: str) -> dict:
        check_table(table)
        row = self._tables[table].get(record_id)
        if row is None:
            raise NotFound(table, record_id)
        if record_id in self._fail_writes[table]:
            raise StoreWriteFailure(table, f"write to {record_id} rejected")
        return row

    async def get(self, table: str, record_id: str) -> dict | None:
        check_table(table)
        row = self._tables[table].get(record_id)
        return copy.deepcopy(row) if row is not None else None

    async def list(
        self,
        table: str,
        filters: Filters | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict]:
        check_table(table)
        rows = [copy.deepcopy(r) for r in self._tables[table].values() if matches(r, filters)]
        if order_by:
            # None sorts first ascending / last descending
            rows.sort(
                key=lambda r: (r.get(order_by) is not None, r.get(order_by)),
                reverse=descending,
            )
        return rows

    async def insert(self, table: str, record: Mapping[str, Any]) -> dict:
        check_table(table)
        row = copy.deepcopy(dict(record))
        now = datetime.now(timezone.utc)
        row.setdefault("created_at", now)
        row.setdefault("updated_at", now)
        self._tables[table][str(row["id"])] = row
        return copy.deepcopy(row)

    async def update(self, table: str, record_id: str, changes: Mapping[str, Any]) -> dict:
        row = self._row(table, record_id)
        row.update(copy.deepcopy(dict(changes)))
        return copy.deepcopy(row)

    async def patch_nested(self, table: str, record_id: str, patch: OwnerPatch) -> dict:
        row = self._row(table, record_id)
        documents = row.get("documents") or {}
        entry = documents.get(patch.type_key)
        if not isinstance(entry, dict):
            entry = {}
        entry.update(patch.mirror_fields())
        documents[patch.type_key] = entry
        row["documents"] = documents
        row["updated_at"] = patch.updated_at
        return copy.deepcopy(row)

    async def delete(self, table: str, record_id: str) -> bool:
        check_table(table)
        if record_id in self._fail_writes[table]:
            raise StoreWriteFailure(table, f"delete of {record_id} rejected")
        return self._tables[table].pop(record_id, None) is not None
