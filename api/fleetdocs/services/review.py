"""
Document review: the approve / reject state machine.

transition() is the only code path that moves a document into approved
or rejected. It does not look at the current status: approving an
approved document (or rejecting a rejected one) overwrites the previous
review stamp. approve_document() / reject_document() add the owner
cascade on top; the cascade is best-effort and never undoes the review.
"""

import logging
from datetime import datetime, timezone

from fleetdocs.core.config import settings
from fleetdocs.errors import DocumentNotFound, NotFound, ValidationFailure
from fleetdocs.schemas.document import Actor, Document, DocumentStatus, ReviewAction
from fleetdocs.services.cascade import synchronize
from fleetdocs.services.expiry import default_expiry_date
from fleetdocs.store.base import DOCUMENTS, Store

logger = logging.getLogger(__name__)

# Fields owned by each terminal review outcome. Moving to one outcome
# clears the other's fields so a document never carries both.
_APPROVAL_FIELDS = ("approved_at", "approved_by")
_REJECTION_FIELDS = ("rejected_at", "rejected_by", "rejection_reason")


def parse_action(action: str | ReviewAction) -> ReviewAction:
    try:
        return ReviewAction(action)
    except ValueError:
        raise ValidationFailure(
            f"Unknown review action '{action}'. Allowed: {', '.join(a.value for a in ReviewAction)}"
        ) from None


def _as_utc(moment: datetime) -> datetime:
    return moment.replace(tzinfo=timezone.utc) if moment.tzinfo is None else moment


async def load_document(store: Store, document_id: str) -> Document:
    record = await store.get(DOCUMENTS, document_id)
    if record is None:
        raise DocumentNotFound(document_id)
    return Document.model_validate(record)


def _changes_for(
    document: Document,
    action: ReviewAction,
    actor: Actor,
    now: datetime,
    expiry_date: datetime | None,
    reason: str | None,
) -> dict:
    if action is ReviewAction.APPROVE:
        changes = {
            "status": DocumentStatus.APPROVED.value,
            "approved_at": now,
            "approved_by": actor.id,
            "expiry_date": _as_utc(expiry_date) if expiry_date else default_expiry_date(document.type, now),
        }
        changes.update(dict.fromkeys(_REJECTION_FIELDS))
    else:
        changes = {
            "status": DocumentStatus.REJECTED.value,
            "rejected_at": now,
            "rejected_by": actor.id,
            "rejection_reason": reason or settings.default_rejection_reason,
        }
        changes.update(dict.fromkeys(_APPROVAL_FIELDS))
    changes["updated_at"] = now
    return changes


async def transition(
    store: Store,
    document_id: str,
    action: str | ReviewAction,
    actor: Actor,
    *,
    expiry_date: datetime | None = None,
    reason: str | None = None,
    now: datetime | None = None,
) -> Document:
    """
    Apply one review action to one document and return the stored result.

    Args:
        store: Record store.
        document_id: Document to review.
        action: ``approve`` or ``reject``.
        actor: Reviewer; their id is stamped on the document.
        expiry_date: Approval only. Defaults to the per-type validity period.
        reason: Rejection only. Defaults to ``settings.default_rejection_reason``.
        now: Review time, mainly for tests.

    Raises:
        ValidationFailure: unknown action.
        DocumentNotFound: no document has this id.
        StoreWriteFailure: the document write failed; no cascade has run.
    """
    action = parse_action(action)
    now = now or datetime.now(timezone.utc)
    document = await load_document(store, document_id)

    changes = _changes_for(document, action, actor, now, expiry_date, reason)
    try:
        record = await store.update(DOCUMENTS, document_id, changes)
    except NotFound:
        # Deleted between the read and the write
        raise DocumentNotFound(document_id) from None

    logger.info(
        "Document %s (%s) %s by %s", document_id, document.type, changes["status"], actor.id
    )
    return Document.model_validate(record)


async def review_document(
    store: Store,
    document_id: str,
    action: str | ReviewAction,
    actor: Actor,
    *,
    expiry_date: datetime | None = None,
    reason: str | None = None,
    now: datetime | None = None,
) -> Document:
    """Review one document, then mirror the outcome onto its owner."""
    document = await transition(
        store, document_id, action, actor, expiry_date=expiry_date, reason=reason, now=now
    )
    await synchronize(store, document, actor, now=now)
    return document


async def approve_document(
    store: Store,
    document_id: str,
    actor: Actor,
    expiry_date: datetime | None = None,
    now: datetime | None = None,
) -> Document:
    return await review_document(
        store, document_id, ReviewAction.APPROVE, actor, expiry_date=expiry_date, now=now
    )


async def reject_document(
    store: Store,
    document_id: str,
    actor: Actor,
    reason: str | None = None,
    now: datetime | None = None,
) -> Document:
    return await review_document(
        store, document_id, ReviewAction.REJECT, actor, reason=reason, now=now
    )


async def delete_document(store: Store, document_id: str) -> None:
    """Delete a document. The owner's mirrored entry is left as it was."""
    if not await store.delete(DOCUMENTS, document_id):
        raise DocumentNotFound(document_id)
    logger.info("Document %s deleted", document_id)
