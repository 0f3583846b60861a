from datetime import datetime, timezone

from fleetdocs.schemas.document import Document, DocumentStatus
from fleetdocs.services.metrics import is_expiring_soon
from fleetdocs.store.base import DOCUMENTS, Store


async def load_documents(store: Store) -> list[Document]:
    """The whole collection, newest first."""
    records = await store.list(DOCUMENTS, order_by="created_at", descending=True)
    return [Document.model_validate(r) for r in records]


def filter_documents(
    documents: list[Document],
    status: str | None = None,
    document_type: str | None = None,
    search: str | None = None,
) -> list[Document]:
    """Apply the review-queue filters. ``pending`` also matches ``pending_review``."""
    filtered = documents
    if search:
        needle = search.lower()
        filtered = [
            d for d in filtered
            if needle in (d.name or "").lower()
            or needle in (d.owner_name or "").lower()
            or needle in d.type.lower()
        ]
    if status and status != "all":
        if status == DocumentStatus.PENDING.value:
            filtered = [d for d in filtered if d.is_pending]
        else:
            filtered = [d for d in filtered if d.status == status]
    if document_type and document_type != "all":
        filtered = [d for d in filtered if d.type == document_type]
    return filtered


async def list_documents(
    store: Store,
    status: str | None = None,
    document_type: str | None = None,
    search: str | None = None,
) -> list[Document]:
    return filter_documents(await load_documents(store), status, document_type, search)


async def list_expiring(
    store: Store, days: int | None = None, now: datetime | None = None
) -> list[Document]:
    """Approved documents expiring within ``days``, soonest first."""
    now = now or datetime.now(timezone.utc)
    records = await store.list(DOCUMENTS, {"status": DocumentStatus.APPROVED.value})
    docs = [Document.model_validate(r) for r in records]
    expiring = [d for d in docs if is_expiring_soon(d, now, days)]
    return sorted(expiring, key=lambda d: d.expiry_date)
