"""
Unit tests for the owner cascade: mirror writes, the activation rule and
the owner sweep used by bulk review.
"""
from datetime import datetime, timezone

import pytest

from conftest import NOW, make_document, make_owner
from fleetdocs.errors import CascadeFailure, OwnerNotFound, ValidationFailure
from fleetdocs.schemas.document import Document, MirrorRecord, OwnerKind
from fleetdocs.services.cascade import check_activation, mirror_patch, sweep_owners, synchronize
from fleetdocs.services.owners import all_approved, resolve
from fleetdocs.services.review import approve_document, transition
from fleetdocs.store.memory import MemoryStore


# ── mirror_patch ──────────────────────────────────────────────────────────────

class TestMirrorPatch:
    def test_approved_fields(self, actor):
        doc = Document(id="d1", type="insurance", owner_id="p1", status="approved", approved_at=NOW)
        patch = mirror_patch(doc, actor, NOW)
        assert patch.type_key == "insurance"
        assert patch.fields == {"status": "approved", "approved_at": NOW, "approved_by": "Jane Reviewer"}

    def test_rejected_fields(self, actor):
        doc = Document(
            id="d1", type="insurance", owner_id="p1", status="rejected",
            rejected_at=NOW, rejection_reason="expired policy",
        )
        patch = mirror_patch(doc, actor, NOW)
        assert patch.fields["status"] == "rejected"
        assert patch.fields["rejected_by"] == "Jane Reviewer"
        assert patch.fields["rejection_reason"] == "expired policy"

    def test_expired_only_carries_status(self, actor):
        doc = Document(id="d1", type="insurance", owner_id="p1", status="expired")
        assert mirror_patch(doc, actor, NOW).fields == {"status": "expired"}

    def test_rejects_malformed_type_key(self, actor):
        doc = Document(id="d1", type="documents.status", owner_id="p1", status="approved")
        with pytest.raises(ValueError):
            mirror_patch(doc, actor, NOW)


# ── all_approved ──────────────────────────────────────────────────────────────

class TestAllApproved:
    def test_every_entry_approved(self):
        assert all_approved({"a": MirrorRecord(status="approved"), "b": MirrorRecord(status="approved")})

    def test_one_pending_entry(self):
        assert not all_approved({"a": MirrorRecord(status="approved"), "b": MirrorRecord(status="pending")})

    def test_null_entry_is_not_approved(self):
        assert not all_approved({"a": MirrorRecord(status="approved"), "b": None})

    def test_empty_map_counts_as_approved(self):
        assert all_approved({})


# ── resolve ───────────────────────────────────────────────────────────────────

class TestResolve:
    async def test_partner(self, store):
        handle = await resolve(store, "p1", "partner")
        assert handle.table == "partners"
        assert set(handle.get_documents_map()) == {"insurance", "tax_certificate"}
        assert handle.get_status() == "pending"

    async def test_driver(self, store):
        handle = await resolve(store, "dr1", OwnerKind.DRIVER)
        assert handle.table == "drivers"

    async def test_wrong_collection(self, store):
        with pytest.raises(OwnerNotFound):
            await resolve(store, "p1", "driver")

    async def test_unknown_kind(self, store):
        with pytest.raises(ValidationFailure):
            await resolve(store, "p1", "fleet")


# ── synchronize ───────────────────────────────────────────────────────────────

class TestSynchronize:
    async def test_sibling_entries_untouched(self, store, actor):
        doc = await transition(store, "d1", "approve", actor, now=NOW)
        before = (await store.get("partners", "p1"))["documents"]["tax_certificate"]
        await synchronize(store, doc, actor, now=NOW)
        after = (await store.get("partners", "p1"))["documents"]["tax_certificate"]
        assert after == before

    async def test_entry_keys_merge(self, actor):
        store = MemoryStore({
            "documents": [make_document("a1", "insurance", "p2")],
            "partners": [make_owner("p2", {"insurance": {"status": "pending", "file_url": "s3://x"}})],
        })
        doc = await transition(store, "a1", "approve", actor, now=NOW)
        await synchronize(store, doc, actor, now=NOW)
        entry = (await store.get("partners", "p2"))["documents"]["insurance"]
        assert entry["file_url"] == "s3://x"
        assert entry["status"] == "approved"

    async def test_resync_is_idempotent(self, store, actor):
        doc = await transition(store, "d2", "approve", actor, now=NOW)
        await synchronize(store, doc, actor, now=NOW)
        first = (await store.get("drivers", "dr1"))["documents"]
        await synchronize(store, doc, actor, now=datetime(2026, 3, 16, tzinfo=timezone.utc))
        second = (await store.get("drivers", "dr1"))["documents"]
        assert first == second

    async def test_activates_when_last_entry_approved(self, store, actor):
        doc = await transition(store, "d1", "approve", actor, now=NOW)
        result = await synchronize(store, doc, actor, now=NOW)
        assert result.ok
        assert result.mirrored
        assert result.activated

    async def test_does_not_activate_with_pending_entry(self, store, actor):
        doc = await transition(store, "d2", "approve", actor, now=NOW)
        result = await synchronize(store, doc, actor, now=NOW)
        assert result.mirrored
        assert not result.activated
        assert (await store.get("drivers", "dr1"))["status"] == "pending"

    async def test_missing_owner_is_reported_not_raised(self, actor):
        store = MemoryStore({"documents": [make_document("a1", "insurance", "ghost")]})
        doc = await transition(store, "a1", "approve", actor, now=NOW)
        result = await synchronize(store, doc, actor, now=NOW)
        assert not result.ok
        assert isinstance(result.error, CascadeFailure)
        assert isinstance(result.error.cause, OwnerNotFound)

    async def test_null_entry_is_replaced_and_owner_activates(self, actor):
        store = MemoryStore({
            "documents": [make_document("a1", "insurance", "p5")],
            "partners": [make_owner("p5", {"insurance": None, "tax_certificate": {"status": "approved"}})],
        })
        await approve_document(store, "a1", actor, now=NOW)
        partner = await store.get("partners", "p5")
        assert partner["documents"]["insurance"]["status"] == "approved"
        assert partner["status"] == "active"

    async def test_mirror_creates_missing_entry(self, actor):
        store = MemoryStore({
            "documents": [make_document("a1", "mot_certificate", "dr5", "driver")],
            "drivers": [make_owner("dr5", {"driving_license": {"status": "approved"}})],
        })
        await approve_document(store, "a1", actor, now=NOW)
        driver = await store.get("drivers", "dr5")
        assert driver["documents"]["mot_certificate"]["status"] == "approved"
        assert driver["status"] == "active"


# ── activation rule ───────────────────────────────────────────────────────────

class TestActivation:
    async def test_monotonic(self, actor):
        store = MemoryStore({
            "documents": [
                make_document("dA", "driving_license", "dr2", "driver", status="approved"),
                make_document("dB", "pco_license", "dr2", "driver"),
            ],
            "drivers": [make_owner("dr2", {
                "driving_license": {"status": "approved"},
                "pco_license": {"status": "pending"},
            })],
        })
        await approve_document(store, "dB", actor, now=NOW)
        driver = await store.get("drivers", "dr2")
        assert driver["status"] == "active"
        activated_at = driver["approved_at"]

        later = datetime(2026, 5, 1, tzinfo=timezone.utc)
        await approve_document(store, "dA", actor, now=later)
        driver = await store.get("drivers", "dr2")
        assert driver["status"] == "active"
        assert driver["approved_at"] == activated_at

    async def test_empty_map_activates(self, actor):
        store = MemoryStore({"partners": [make_owner("p9", {})]})
        handle = await resolve(store, "p9", "partner")
        assert await check_activation(handle, actor, NOW)
        assert (await store.get("partners", "p9"))["status"] == "active"

    async def test_already_active_is_left_alone(self, actor):
        store = MemoryStore({"partners": [make_owner("p9", {}, status="active")]})
        handle = await resolve(store, "p9", "partner")
        assert not await check_activation(handle, actor, NOW)
        assert (await store.get("partners", "p9")).get("approved_at") is None


# ── sweep_owners ──────────────────────────────────────────────────────────────

class TestSweepOwners:
    async def test_activates_only_fully_approved_owners(self, actor):
        store = MemoryStore({
            "partners": [
                make_owner("p1", {"insurance": {"status": "approved"}}),
                make_owner("p2", {"insurance": {"status": "rejected"}}),
            ],
            "drivers": [make_owner("dr1", {"pco_license": {"status": "approved"}})],
        })
        activated = await sweep_owners(
            store, {OwnerKind.PARTNER: {"p1", "p2"}, OwnerKind.DRIVER: {"dr1"}}, actor, now=NOW
        )
        assert activated == ["p1", "dr1"]
        assert (await store.get("partners", "p2"))["status"] == "pending"

    async def test_missing_owner_is_skipped(self, actor):
        store = MemoryStore({"partners": [make_owner("p1", {})]})
        activated = await sweep_owners(store, {OwnerKind.PARTNER: {"ghost", "p1"}}, actor, now=NOW)
        assert activated == ["p1"]
