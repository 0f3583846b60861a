from datetime import datetime, timedelta, timezone

from conftest import NOW, make_document
from fleetdocs.schemas.document import Document
from fleetdocs.services.listing import filter_documents, list_documents, list_expiring
from fleetdocs.store.memory import MemoryStore


def _docs() -> list[Document]:
    return [
        Document.model_validate(make_document("a", "insurance", "p1", status="pending", owner_name="ABC Transport")),
        Document.model_validate(make_document("b", "pco_license", "dr1", "driver", status="pending_review", owner_name="Sarah Johnson")),
        Document.model_validate(make_document("c", "insurance", "p2", status="approved", owner_name="XYZ Fleet")),
    ]


class TestFilterDocuments:
    def test_pending_includes_pending_review(self):
        assert [d.id for d in filter_documents(_docs(), status="pending")] == ["a", "b"]

    def test_exact_status(self):
        assert [d.id for d in filter_documents(_docs(), status="pending_review")] == ["b"]

    def test_all_is_no_filter(self):
        assert len(filter_documents(_docs(), status="all", document_type="all")) == 3

    def test_type(self):
        assert [d.id for d in filter_documents(_docs(), document_type="insurance")] == ["a", "c"]

    def test_search_matches_owner_name_case_insensitive(self):
        assert [d.id for d in filter_documents(_docs(), search="sarah")] == ["b"]

    def test_search_matches_type(self):
        assert [d.id for d in filter_documents(_docs(), search="PCO")] == ["b"]


class TestListDocuments:
    async def test_newest_first(self):
        store = MemoryStore({"documents": [
            make_document("old", "insurance", "p1", created_at=datetime(2026, 1, 1, tzinfo=timezone.utc)),
            make_document("new", "insurance", "p1", created_at=datetime(2026, 3, 1, tzinfo=timezone.utc)),
        ]})
        assert [d.id for d in await list_documents(store)] == ["new", "old"]


class TestListExpiring:
    async def test_soonest_first_within_window(self):
        store = MemoryStore({"documents": [
            make_document("late", "insurance", "p1", status="approved", expiry_date=NOW + timedelta(days=20)),
            make_document("soon", "insurance", "p1", status="approved", expiry_date=NOW + timedelta(days=3)),
            make_document("far", "insurance", "p1", status="approved", expiry_date=NOW + timedelta(days=90)),
            make_document("rejected", "insurance", "p1", status="rejected", expiry_date=NOW + timedelta(days=3)),
        ]})
        assert [d.id for d in await list_expiring(store, now=NOW)] == ["soon", "late"]
        assert len(await list_expiring(store, days=120, now=NOW)) == 3
