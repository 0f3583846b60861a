import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from fleetdocs.core.database import Base


class OwnerMixin:
    """Columns shared by partner and driver accounts.

    ``documents`` maps a document type key to its mirrored compliance entry
    ({status, approved_at, approved_by, rejected_at, rejected_by,
    rejection_reason}). The rows in ``documents`` stay the source of truth.
    """

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str | None] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending | active | ...
    documents: Mapped[dict] = mapped_column(
        JSONB, default=dict, server_default=text("'{}'::jsonb")
    )
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    approved_by: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("now()"),
        onupdate=lambda: datetime.now(timezone.utc),
    )


class Partner(OwnerMixin, Base):
    __tablename__ = "partners"

    company_name: Mapped[str | None] = mapped_column(String(255))


class Driver(OwnerMixin, Base):
    __tablename__ = "drivers"
