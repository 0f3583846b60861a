"""
Bulk review: applies one action to a batch of documents.

Documents are processed one after another. A failure on one document is
logged and recorded on its BulkItemResult; the batch carries on. Once
every document (and its mirror write) is done, each owner touched by the
batch gets one more activation check. The sweep catches owners whose
per-document cascade failed; activated_owners reports owners activated
by either path.
"""

import logging
from datetime import datetime, timezone

from fleetdocs.schemas.bulk import BulkItemResult, BulkResult
from fleetdocs.schemas.document import Actor, OwnerKind, ReviewAction
from fleetdocs.services.cascade import sweep_owners, synchronize
from fleetdocs.services.review import delete_document, parse_action, transition
from fleetdocs.store.base import Store

logger = logging.getLogger(__name__)


async def bulk_apply(
    store: Store,
    document_ids: list[str],
    action: str | ReviewAction,
    actor: Actor,
    *,
    expiry_date: datetime | None = None,
    reason: str | None = None,
    now: datetime | None = None,
) -> BulkResult:
    """
    Approve or reject every document in ``document_ids``.

    With no ``expiry_date`` each approved document gets its own per-type
    default; an explicit date is applied to all of them.

    Raises:
        ValidationFailure: unknown action (nothing is processed).
    """
    action = parse_action(action)
    now = now or datetime.now(timezone.utc)
    result = BulkResult(action=action.value)
    touched: dict[OwnerKind, set[str]] = {OwnerKind.PARTNER: set(), OwnerKind.DRIVER: set()}
    activated: dict[str, None] = {}

    for document_id in dict.fromkeys(document_ids):
        result.attempted += 1
        try:
            document = await transition(
                store, document_id, action, actor,
                expiry_date=expiry_date, reason=reason, now=now,
            )
        except Exception as exc:
            logger.warning("Bulk %s: document %s failed: %s", action.value, document_id, exc)
            result.items.append(BulkItemResult(id=document_id, ok=False, error=str(exc)))
            continue

        result.succeeded += 1
        result.items.append(BulkItemResult(id=document_id, ok=True))
        touched[OwnerKind(document.owner_kind)].add(document.owner_id)
        sync = await synchronize(store, document, actor, now=now)
        if sync.activated:
            activated[document.owner_id] = None

    for owner_id in await sweep_owners(store, touched, actor, now=now):
        activated[owner_id] = None
    result.activated_owners = list(activated)
    logger.info(
        "Bulk %s by %s: %d/%d documents, %d owners activated",
        action.value, actor.id, result.succeeded, result.attempted, len(result.activated_owners),
    )
    return result


async def bulk_delete(store: Store, document_ids: list[str]) -> BulkResult:
    """Delete documents one by one. Owner maps are not touched."""
    result = BulkResult(action="delete")
    for document_id in dict.fromkeys(document_ids):
        result.attempted += 1
        try:
            await delete_document(store, document_id)
        except Exception as exc:
            logger.warning("Bulk delete: document %s failed: %s", document_id, exc)
            result.items.append(BulkItemResult(id=document_id, ok=False, error=str(exc)))
            continue
        result.succeeded += 1
        result.items.append(BulkItemResult(id=document_id, ok=True))
    logger.info("Bulk delete: %d/%d documents", result.succeeded, result.attempted)
    return result
