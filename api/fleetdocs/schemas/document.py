from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DocumentStatus(str, Enum):
    PENDING = "pending"
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"


# pending_review is shown and filtered as pending
PENDING_STATUSES = (DocumentStatus.PENDING.value, DocumentStatus.PENDING_REVIEW.value)


class OwnerKind(str, Enum):
    PARTNER = "partner"
    DRIVER = "driver"


class ReviewAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class Actor(BaseModel):
    """The authenticated user performing a review."""

    id: str
    name: str


class Document(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True, validate_default=True)

    id: str
    name: str | None = None
    type: str
    status: DocumentStatus = DocumentStatus.PENDING
    owner_id: str
    owner_kind: OwnerKind = OwnerKind.DRIVER
    owner_name: str | None = None
    file_url: str | None = None
    file_size: int | None = None
    file_type: str | None = None
    upload_date: datetime | None = None
    expiry_date: datetime | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejected_by: str | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    verification_score: int | None = None
    risk_level: str | None = None  # low | medium | high | critical
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status in PENDING_STATUSES


class MirrorRecord(BaseModel):
    """Per-type compliance entry embedded in a partner or driver record."""

    model_config = ConfigDict(extra="allow")

    # Mirrors DocumentStatus, but onboarding may write its own placeholders
    status: str | None = None
    approved_at: datetime | None = None
    approved_by: str | None = None
    rejected_at: datetime | None = None
    rejected_by: str | None = None
    rejection_reason: str | None = None


class Owner(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str | None = None
    status: str = "pending"
    documents: dict[str, MirrorRecord | None] = Field(default_factory=dict)
    approved_at: datetime | None = None
    approved_by: str | None = None
    updated_at: datetime | None = None

    @field_validator("documents", mode="before")
    @classmethod
    def _empty_map(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def is_active(self) -> bool:
        return self.status == "active"


class OwnerPatch(BaseModel):
    """Partial update of one entry of an owner's embedded ``documents`` map.

    Only the keys present in ``fields`` are written under
    ``documents[type_key]``; sibling keys of that entry and every other
    entry are left untouched.
    """

    type_key: str = Field(pattern=r"^[A-Za-z][A-Za-z0-9_]*$", max_length=64)
    fields: dict[str, Any]
    updated_at: datetime

    def mirror_fields(self) -> dict[str, Any]:
        """JSON-ready form of ``fields``, as stored inside the map."""
        record = MirrorRecord(**self.fields)
        return record.model_dump(mode="json", include=set(self.fields))


# ── Request bodies ────────────────────────────────────────────────────────────

class ApproveRequest(BaseModel):
    expiry_date: datetime | None = None


class RejectRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=2000)


class BulkApproveRequest(BaseModel):
    document_ids: list[str] = Field(min_length=1)
    expiry_date: datetime | None = None


class BulkRejectRequest(BaseModel):
    document_ids: list[str] = Field(min_length=1)
    reason: str | None = Field(default=None, max_length=2000)


class BulkDeleteRequest(BaseModel):
    document_ids: list[str] = Field(min_length=1)


class DocumentResponse(Document):
    category: str
