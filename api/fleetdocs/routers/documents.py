from fastapi import APIRouter, Depends, Query, Response

from fleetdocs.core.config import settings
from fleetdocs.core.deps import get_current_actor, get_store
from fleetdocs.schemas.bulk import BulkResult
from fleetdocs.schemas.document import (
    Actor,
    ApproveRequest,
    BulkApproveRequest,
    BulkDeleteRequest,
    BulkRejectRequest,
    Document,
    DocumentResponse,
    RejectRequest,
    ReviewAction,
)
from fleetdocs.schemas.metrics import Metrics
from fleetdocs.services.bulk import bulk_apply, bulk_delete
from fleetdocs.services.expiry import document_category
from fleetdocs.services.listing import list_documents, list_expiring, load_documents
from fleetdocs.services.metrics import summarize
from fleetdocs.services.review import (
    approve_document,
    delete_document,
    load_document,
    reject_document,
)
from fleetdocs.store.base import Store

router = APIRouter(prefix="/documents", tags=["documents"])


def _response(document: Document) -> DocumentResponse:
    return DocumentResponse(**document.model_dump(), category=document_category(document.type))


# ── List ──────────────────────────────────────────────────────────────────────

@router.get("", response_model=list[DocumentResponse])
async def get_documents(
    status: str | None = Query(default=None),   # "pending" also matches pending_review
    type: str | None = Query(default=None),
    search: str | None = Query(default=None, max_length=200),
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store),
):
    docs = await list_documents(store, status=status, document_type=type, search=search)
    return [_response(d) for d in docs]


# ── Metrics / expiring (BEFORE /{doc_id} to avoid path collision) ─────────────

@router.get("/metrics", response_model=Metrics)
async def get_metrics(
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store),
):
    return summarize(await load_documents(store))


@router.get("/expiring", response_model=list[DocumentResponse])
async def get_expiring(
    days: int = Query(default=settings.expiring_soon_days, ge=1, le=365),
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store),
):
    return [_response(d) for d in await list_expiring(store, days=days)]


# ── Bulk ──────────────────────────────────────────────────────────────────────

@router.post("/bulk/approve", response_model=BulkResult)
async def bulk_approve_documents(
    payload: BulkApproveRequest,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store),
):
    return await bulk_apply(
        store, payload.document_ids, ReviewAction.APPROVE, actor, expiry_date=payload.expiry_date
    )


@router.post("/bulk/reject", response_model=BulkResult)
async def bulk_reject_documents(
    payload: BulkRejectRequest,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store),
):
    return await bulk_apply(
        store, payload.document_ids, ReviewAction.REJECT, actor, reason=payload.reason
    )


@router.post("/bulk/delete", response_model=BulkResult)
async def bulk_delete_documents(
    payload: BulkDeleteRequest,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store),
):
    return await bulk_delete(store, payload.document_ids)


# ── Single document ───────────────────────────────────────────────────────────

@router.get("/{doc_id}", response_model=DocumentResponse)
async def get_document(
    doc_id: str,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store),
):
    return _response(await load_document(store, doc_id))


@router.post("/{doc_id}/approve", response_model=DocumentResponse)
async def approve(
    doc_id: str,
    payload: ApproveRequest | None = None,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store),
):
    payload = payload or ApproveRequest()
    return _response(await approve_document(store, doc_id, actor, expiry_date=payload.expiry_date))


@router.post("/{doc_id}/reject", response_model=DocumentResponse)
async def reject(
    doc_id: str,
    payload: RejectRequest | None = None,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store),
):
    payload = payload or RejectRequest()
    return _response(await reject_document(store, doc_id, actor, reason=payload.reason))


@router.delete("/{doc_id}", status_code=204)
async def delete_one(
    doc_id: str,
    actor: Actor = Depends(get_current_actor),
    store: Store = Depends(get_store),
):
    await delete_document(store, doc_id)
    return Response(status_code=204)
