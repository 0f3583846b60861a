"""
Compliance metrics: summary statistics for the review dashboards.

summarize() is pure: it reads the given documents and nothing else, so
callers recompute it over the whole collection whenever it changes.
"""

import math
from collections import Counter
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from fleetdocs.core.config import settings
from fleetdocs.schemas.document import Document, DocumentStatus, OwnerKind
from fleetdocs.schemas.metrics import Metrics
from fleetdocs.services.expiry import document_category

_SECONDS_PER_DAY = 24 * 60 * 60


def _round(value: float) -> int:
    """Round half up, the way the dashboards always have."""
    return math.floor(value + 0.5)


def _percent(part: int, total: int) -> int:
    return _round(part / total * 100) if total else 0


def _utc(moment: datetime) -> datetime:
    return moment.replace(tzinfo=timezone.utc) if moment.tzinfo is None else moment


def is_expiring_soon(document: Document, now: datetime, days: int | None = None) -> bool:
    """Approved, and the expiry date falls in (now, now + days]."""
    if document.status != DocumentStatus.APPROVED.value or document.expiry_date is None:
        return False
    horizon = now + timedelta(days=settings.expiring_soon_days if days is None else days)
    return now < _utc(document.expiry_date) <= horizon


def _processing_days(documents: list[Document]) -> int:
    durations: list[float] = []
    for doc in documents:
        reviewed_at = doc.approved_at or doc.rejected_at
        uploaded_at = doc.upload_date or doc.created_at
        if reviewed_at is None or uploaded_at is None:
            continue
        durations.append((_utc(reviewed_at) - _utc(uploaded_at)).total_seconds())
    if not durations:
        return 0
    return _round(sum(durations) / len(durations) / _SECONDS_PER_DAY)


def summarize(documents: Iterable[Document], now: datetime | None = None) -> Metrics:
    """
    Build the dashboard metrics for a document collection.

    Args:
        documents: Documents in display order (newest first); the first
            one provides ``last_upload_date``.
        now: Reference time for the expiring-soon window.

    Returns:
        Metrics; every rate is 0 for an empty collection.
    """
    docs = list(documents)
    now = now or datetime.now(timezone.utc)
    total = len(docs)

    by_status: Counter[str] = Counter(
        DocumentStatus.PENDING.value if d.is_pending else str(d.status)
        for d in docs
    )
    by_risk: Counter[str] = Counter(d.risk_level for d in docs if d.risk_level)
    by_category: Counter[str] = Counter(document_category(d.type) for d in docs)
    by_type: Counter[str] = Counter(d.type for d in docs)

    partners = {d.owner_id for d in docs if d.owner_kind == OwnerKind.PARTNER.value}
    drivers = {d.owner_id for d in docs if d.owner_kind == OwnerKind.DRIVER.value}

    approved = by_status[DocumentStatus.APPROVED.value]
    verified = sum(1 for d in docs if d.verification_score and d.verification_score > 0)
    total_file_size = sum(d.file_size or 0 for d in docs)

    approvals = [d.approved_at for d in docs if d.approved_at]
    last_approval = max(approvals, key=_utc) if approvals else None
    last_upload = docs[0].upload_date if docs else None

    return Metrics(
        total_documents=total,
        pending_documents=by_status[DocumentStatus.PENDING.value],
        approved_documents=approved,
        rejected_documents=by_status[DocumentStatus.REJECTED.value],
        expired_documents=by_status[DocumentStatus.EXPIRED.value],
        expiring_soon=sum(1 for d in docs if is_expiring_soon(d, now)),
        total_partners=len(partners),
        total_drivers=len(drivers),
        average_processing_time=_processing_days(docs),
        compliance_rate=_percent(approved, total),
        verification_rate=_percent(verified, total),
        critical_documents=by_risk["critical"],
        high_risk_documents=by_risk["high"],
        medium_risk_documents=by_risk["medium"],
        low_risk_documents=by_risk["low"],
        documents_by_status=dict(by_status),
        documents_by_category=dict(by_category),
        documents_by_type=dict(by_type),
        total_file_size=total_file_size,
        average_file_size=_round(total_file_size / total) if total else 0,
        last_upload_date=last_upload.isoformat() if last_upload else "",
        last_approval_date=last_approval.isoformat() if last_approval else "",
    )
