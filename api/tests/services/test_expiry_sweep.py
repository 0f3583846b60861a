"""
Unit tests for the expiry sweep coroutine (the celery wrapper is not run).
"""
from datetime import timedelta

from conftest import NOW, make_document, make_owner
from fleetdocs.services.expiry_sweep import expire_overdue
from fleetdocs.store.memory import MemoryStore


def _store() -> MemoryStore:
    return MemoryStore({
        "documents": [
            make_document("overdue", "insurance", "p1", status="approved", expiry_date=NOW - timedelta(days=1)),
            make_document("valid", "tax_certificate", "p1", status="approved", expiry_date=NOW + timedelta(days=1)),
            make_document("open", "mot_certificate", "dr1", "driver", status="pending", expiry_date=NOW - timedelta(days=9)),
            make_document("no-date", "pco_license", "dr1", "driver", status="approved"),
        ],
        "partners": [make_owner("p1", {
            "insurance": {"status": "approved", "approved_by": "Jane Reviewer"},
            "tax_certificate": {"status": "approved"},
        }, status="active")],
        "drivers": [make_owner("dr1", {})],
    })


class TestExpireOverdue:
    async def test_only_approved_past_expiry(self):
        store = _store()
        assert await expire_overdue(store, now=NOW) == ["overdue"]
        assert (await store.get("documents", "overdue"))["status"] == "expired"
        assert (await store.get("documents", "valid"))["status"] == "approved"
        assert (await store.get("documents", "open"))["status"] == "pending"
        assert (await store.get("documents", "no-date"))["status"] == "approved"

    async def test_mirrors_without_demoting(self):
        store = _store()
        await expire_overdue(store, now=NOW)
        partner = await store.get("partners", "p1")
        assert partner["documents"]["insurance"] == {"status": "expired", "approved_by": "Jane Reviewer"}
        assert partner["status"] == "active"

    async def test_write_failure_skips_document(self):
        store = _store()
        store.fail_writes_for("documents", "overdue")
        assert await expire_overdue(store, now=NOW) == []
