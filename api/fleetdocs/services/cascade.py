"""
Owner cascade: keeps the compliance entries embedded in partner and
driver records in step with the documents table.

After a document changes status:
  1. resolve the owner (partner or driver)
  2. write documents[<type>] on the owner (only that entry's given keys)
  3. read the map back and, when every entry is approved, activate the owner

Activation only ever promotes. Nothing here moves an active owner back
to another status. The cascade is best-effort: any failure is logged and
reported in the returned SyncResult, never raised, because the document
row has already been written and stays authoritative.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from fleetdocs.errors import CascadeFailure
from fleetdocs.schemas.document import Actor, Document, DocumentStatus, OwnerKind, OwnerPatch
from fleetdocs.services.owners import ACTIVE, OwnerHandle, all_approved, resolve
from fleetdocs.store.base import Store

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    owner_id: str
    mirrored: bool = False
    activated: bool = False
    error: CascadeFailure | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def mirror_patch(document: Document, actor: Actor, now: datetime) -> OwnerPatch:
    """Build the owner-map entry update for a document's current status."""
    fields: dict = {"status": document.status}
    if document.status == DocumentStatus.APPROVED.value:
        fields["approved_at"] = document.approved_at or now
        fields["approved_by"] = actor.name
    elif document.status == DocumentStatus.REJECTED.value:
        fields["rejected_at"] = document.rejected_at or now
        fields["rejected_by"] = actor.name
        fields["rejection_reason"] = document.rejection_reason
    return OwnerPatch(type_key=document.type, fields=fields, updated_at=now)


async def check_activation(handle: OwnerHandle, actor: Actor, now: datetime) -> bool:
    """Activate the owner if every mirrored entry is approved. Returns True if it did."""
    if handle.owner.is_active:
        return False
    if not all_approved(handle.get_documents_map()):
        return False
    await handle.set_status(ACTIVE, actor, now)
    logger.info("%s %s activated: all documents approved", handle.kind.value.capitalize(), handle.id)
    return True


async def synchronize(
    store: Store,
    document: Document,
    actor: Actor,
    now: datetime | None = None,
) -> SyncResult:
    """Mirror ``document`` onto its owner and run the activation check."""
    now = now or datetime.now(timezone.utc)
    result = SyncResult(owner_id=document.owner_id)
    try:
        handle = await resolve(store, document.owner_id, document.owner_kind)
        await handle.apply(mirror_patch(document, actor, now))
        result.mirrored = True
        result.activated = await check_activation(handle, actor, now)
    except Exception as exc:
        result.error = CascadeFailure(document.id, exc)
        logger.warning(
            "Cascade for document %s to %s %s failed: %s",
            document.id, document.owner_kind, document.owner_id, exc,
        )
    return result


async def sweep_owners(
    store: Store,
    owner_ids: dict[OwnerKind, set[str]],
    actor: Actor,
    now: datetime | None = None,
) -> list[str]:
    """
    Re-read each owner and run the activation check once per owner.

    Must only run after every mirror write it depends on has finished.
    Returns the ids of owners activated by this sweep.
    """
    now = now or datetime.now(timezone.utc)
    activated: list[str] = []
    for kind in (OwnerKind.PARTNER, OwnerKind.DRIVER):
        for owner_id in sorted(owner_ids.get(kind, ())):
            try:
                handle = await resolve(store, owner_id, kind)
                if await check_activation(handle, actor, now):
                    activated.append(owner_id)
            except Exception as exc:
                logger.warning("Activation check for %s %s failed: %s", kind.value, owner_id, exc)
    return activated
