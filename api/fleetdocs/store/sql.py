import logging
from collections.abc import Mapping
from typing import Any

import sqlalchemy as sa
from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdocs.errors import NotFound, StoreWriteFailure
from fleetdocs.models.document import ComplianceDocument
from fleetdocs.models.owner import Driver, Partner
from fleetdocs.schemas.document import OwnerPatch
from fleetdocs.store.base import DOCUMENTS, DRIVERS, PARTNERS, Filters, Store, check_table

logger = logging.getLogger(__name__)

_MODELS: dict[str, type] = {
    DOCUMENTS: ComplianceDocument,
    PARTNERS: Partner,
    DRIVERS: Driver,
}


def _to_dict(obj: Any) -> dict:
    return {attr.key: getattr(obj, attr.key) for attr in sa.inspect(obj).mapper.column_attrs}


class SqlStore(Store):
    """
    PostgreSQL adapter over an AsyncSession.

    Every write runs inside its own SAVEPOINT so a failed write leaves
    earlier writes of the same request intact. Committing is left to the
    session owner (``get_db`` commits once the request succeeds).
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _model(self, table: str) -> type:
        check_table(table)
        return _MODELS[table]

    async def get(self, table: str, record_id: str) -> dict | None:
        model = self._model(table)
        obj = await self.session.get(model, record_id, populate_existing=True)
        return _to_dict(obj) if obj is not None else None

    async def list(
        self,
        table: str,
        filters: Filters | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict]:
        model = self._model(table)
        stmt = select(model)
        for key, expected in (filters or {}).items():
            column = getattr(model, key)
            if isinstance(expected, (list, tuple, set, frozenset)):
                stmt = stmt.where(column.in_(list(expected)))
            elif expected is None:
                stmt = stmt.where(column.is_(None))
            else:
                stmt = stmt.where(column == expected)
        if order_by:
            column = getattr(model, order_by)
            # NULLs first ascending, last descending, as in MemoryStore
            stmt = stmt.order_by(
                column.desc().nulls_last() if descending else column.asc().nulls_first()
            )
        result = await self.session.execute(stmt)
        return [_to_dict(obj) for obj in result.scalars().all()]

    async def insert(self, table: str, record: Mapping[str, Any]) -> dict:
        model = self._model(table)
        obj = model(**dict(record))
        try:
            async with self.session.begin_nested():
                self.session.add(obj)
            await self.session.refresh(obj)
        except SQLAlchemyError as exc:
            raise StoreWriteFailure(table, str(exc)) from exc
        return _to_dict(obj)

    async def update(self, table: str, record_id: str, changes: Mapping[str, Any]) -> dict:
        model = self._model(table)
        obj = await self.session.get(model, record_id)
        if obj is None:
            raise NotFound(table, record_id)
        try:
            async with self.session.begin_nested():
                for key, value in changes.items():
                    setattr(obj, key, value)
            await self.session.refresh(obj)
        except SQLAlchemyError as exc:
            raise StoreWriteFailure(table, str(exc)) from exc
        return _to_dict(obj)

    async def patch_nested(self, table: str, record_id: str, patch: OwnerPatch) -> dict:
        model = self._model(table)
        empty = sa.literal({}, JSONB)
        current = model.documents[patch.type_key]
        # jsonb || on a non-object (a JSON null entry) builds an array, so merge onto {} instead
        base = sa.case((func.jsonb_typeof(current) == "object", current), else_=empty)
        entry = base.op("||", return_type=JSONB)(sa.literal(patch.mirror_fields(), JSONB))
        stmt = (
            update(model)
            .where(model.id == record_id)
            .values(
                documents=func.jsonb_set(
                    func.coalesce(model.documents, empty),
                    sa.literal([patch.type_key], ARRAY(sa.Text)),
                    entry,
                    sa.true(),
                    type_=JSONB,
                ),
                updated_at=patch.updated_at,
            )
            .returning(model.id)
            .execution_options(synchronize_session=False)
        )
        try:
            async with self.session.begin_nested():
                result = await self.session.execute(stmt)
                updated_id = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StoreWriteFailure(table, str(exc)) from exc
        if updated_id is None:
            raise NotFound(table, record_id)
        return await self.get(table, record_id)

    async def delete(self, table: str, record_id: str) -> bool:
        model = self._model(table)
        obj = await self.session.get(model, record_id)
        if obj is None:
            return False
        try:
            async with self.session.begin_nested():
                await self.session.delete(obj)
        except SQLAlchemyError as exc:
            raise StoreWriteFailure(table, str(exc)) from exc
        logger.debug("Deleted %s %s", table, record_id)
        return True
