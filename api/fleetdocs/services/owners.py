import logging
from datetime import datetime

from fleetdocs.errors import NotFound, OwnerNotFound, ValidationFailure
from fleetdocs.schemas.document import Actor, DocumentStatus, MirrorRecord, Owner, OwnerKind, OwnerPatch
from fleetdocs.store.base import DRIVERS, PARTNERS, Store

logger = logging.getLogger(__name__)

ACTIVE = "active"

_OWNER_TABLES: dict[OwnerKind, str] = {
    OwnerKind.PARTNER: PARTNERS,
    OwnerKind.DRIVER: DRIVERS,
}


def owner_table(owner_kind: str | OwnerKind) -> str:
    try:
        return _OWNER_TABLES[OwnerKind(owner_kind)]
    except ValueError:
        raise ValidationFailure(f"Unknown owner kind '{owner_kind}'") from None


def all_approved(documents: dict[str, MirrorRecord | None]) -> bool:
    """True when every mirrored entry is approved. An empty map counts as approved."""
    return all(
        entry is not None and entry.status == DocumentStatus.APPROVED.value
        for entry in documents.values()
    )


class OwnerHandle:
    """A partner or driver record plus the writes the cascade needs on it."""

    def __init__(self, store: Store, kind: OwnerKind, owner: Owner):
        self.store = store
        self.kind = kind
        self.owner = owner

    @property
    def id(self) -> str:
        return self.owner.id

    @property
    def table(self) -> str:
        return _OWNER_TABLES[self.kind]

    def get_documents_map(self) -> dict[str, MirrorRecord | None]:
        return self.owner.documents

    def get_status(self) -> str:
        return self.owner.status

    async def _write(self, coro) -> Owner:
        try:
            record = await coro
        except NotFound:
            raise OwnerNotFound(self.kind.value, self.id) from None
        self.owner = Owner.model_validate(record)
        return self.owner

    async def apply(self, patch: OwnerPatch) -> Owner:
        """Write one mirrored entry; the rest of the map is untouched."""
        return await self._write(self.store.patch_nested(self.table, self.id, patch))

    async def set_status(self, status: str, actor: Actor, timestamp: datetime) -> Owner:
        changes: dict = {"status": status, "updated_at": timestamp}
        if status == ACTIVE:
            changes["approved_at"] = timestamp
            changes["approved_by"] = actor.name
        return await self._write(self.store.update(self.table, self.id, changes))


async def resolve(store: Store, owner_id: str, owner_kind: str | OwnerKind) -> OwnerHandle:
    """
    Look up the account a document belongs to.

    Raises:
        ValidationFailure: owner_kind is neither partner nor driver.
        OwnerNotFound: no such partner / driver.
    """
    table = owner_table(owner_kind)
    kind = OwnerKind(owner_kind)
    record = await store.get(table, owner_id)
    if record is None:
        raise OwnerNotFound(kind.value, owner_id)
    return OwnerHandle(store, kind, Owner.model_validate(record))
