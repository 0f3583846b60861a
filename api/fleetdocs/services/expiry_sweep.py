"""
Expiry sweep: moves approved documents past their expiry date to expired.

Runs daily from celery beat (see worker.py). Each expired document is
mirrored onto its owner like any other status change; the owner's own
status is left alone.
"""

import asyncio
import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from fleetdocs.core.config import settings
from fleetdocs.schemas.document import Actor, Document, DocumentStatus
from fleetdocs.services.cascade import synchronize
from fleetdocs.store.base import DOCUMENTS, Store
from fleetdocs.store.sql import SqlStore
from fleetdocs.worker import celery_app

logger = logging.getLogger(__name__)

SWEEP_ACTOR = Actor(id="system", name="Expiry sweep")


def _utc(moment: datetime) -> datetime:
    return moment.replace(tzinfo=timezone.utc) if moment.tzinfo is None else moment


async def expire_overdue(store: Store, now: datetime | None = None) -> list[str]:
    """Expire every approved document whose expiry date has passed. Returns their ids."""
    now = now or datetime.now(timezone.utc)
    records = await store.list(DOCUMENTS, {"status": DocumentStatus.APPROVED.value})
    expired: list[str] = []

    for record in records:
        document = Document.model_validate(record)
        if document.expiry_date is None or _utc(document.expiry_date) > now:
            continue
        try:
            updated = await store.update(
                DOCUMENTS,
                document.id,
                {"status": DocumentStatus.EXPIRED.value, "updated_at": now},
            )
        except Exception as exc:
            logger.error("Failed to expire document %s: %s", document.id, exc)
            continue
        expired.append(document.id)
        await synchronize(store, Document.model_validate(updated), SWEEP_ACTOR, now=now)

    logger.info("Expiry sweep: %d documents expired", len(expired))
    return expired


async def _sweep() -> int:
    engine = create_async_engine(settings.database_url, poolclass=NullPool)
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            expired = await expire_overdue(SqlStore(session))
            await session.commit()
    finally:
        await engine.dispose()
    return len(expired)


@celery_app.task(name="fleetdocs.services.expiry_sweep.expire_overdue_documents")
def expire_overdue_documents() -> int:
    """Celery task: daily expiry sweep over the documents table."""
    return asyncio.run(_sweep())
