"""
Shared fixtures. Service and HTTP tests run against MemoryStore; only
tests/store/test_sql.py needs PostgreSQL. No test needs Redis.

Run with:
    pytest -v
"""
import os

# Settings are read at import time; set them before fleetdocs is imported.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("API_SECRET_KEY", "test-secret-key-that-is-long-enough-0123")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402

from fleetdocs.schemas.document import Actor  # noqa: E402
from fleetdocs.store.memory import MemoryStore  # noqa: E402

NOW = datetime(2026, 3, 15, 10, 0, tzinfo=timezone.utc)


def make_document(doc_id: str, doc_type: str, owner_id: str, owner_kind: str = "partner", **fields) -> dict:
    record = {
        "id": doc_id,
        "name": f"{doc_type} - {owner_id}",
        "type": doc_type,
        "status": "pending",
        "owner_id": owner_id,
        "owner_kind": owner_kind,
        "upload_date": datetime(2026, 3, 1, tzinfo=timezone.utc),
        "created_at": datetime(2026, 3, 1, tzinfo=timezone.utc),
        "updated_at": datetime(2026, 3, 1, tzinfo=timezone.utc),
    }
    record.update(fields)
    return record


def make_owner(owner_id: str, documents: dict | None = None, status: str = "pending") -> dict:
    return {"id": owner_id, "name": owner_id.upper(), "status": status, "documents": documents or {}}


def scenario_records() -> dict[str, list[dict]]:
    """Partner p1 from the onboarding scenario plus a driver with two pending documents."""
    return {
        "documents": [
            make_document("d1", "insurance", "p1"),
            make_document("d2", "driving_license", "dr1", "driver"),
            make_document("d3", "pco_license", "dr1", "driver"),
        ],
        "partners": [
            make_owner("p1", {
                "insurance": {"status": "pending"},
                "tax_certificate": {"status": "approved"},
            }),
        ],
        "drivers": [
            make_owner("dr1", {
                "driving_license": {"status": "pending"},
                "pco_license": {"status": "pending"},
            }),
        ],
    }


@pytest.fixture
def actor() -> Actor:
    return Actor(id="admin-1", name="Jane Reviewer")


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore(scenario_records())
