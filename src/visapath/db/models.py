"""SQLAlchemy ORM models for persistent tables."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Index, Integer, String, text
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from visapath.db.base import Base

ACTIVE_STATUS_SQL = "status IN ('started', 'in_progress', 'under_review')"


def _jsonb() -> type:
    """Return JSONB for Postgres, plain JSON for SQLite."""
    return JSON().with_variant(PG_JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JourneyRow(Base):
    __tablename__ = "journeys"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128))
    email: Mapped[str] = mapped_column(String(256))
    origin_country: Mapped[str] = mapped_column(String(2))
    destination_country: Mapped[str] = mapped_column(String(2))
    user_type: Mapped[str] = mapped_column(String(32), default="student")
    visa_type: Mapped[str] = mapped_column(String(100), default="student")
    status: Mapped[str] = mapped_column(String(32), default="started")
    phase: Mapped[str] = mapped_column(String(32), default="selection")
    personalization_data: Mapped[dict] = mapped_column(_jsonb(), default=dict)
    step_completion: Mapped[dict] = mapped_column(_jsonb(), default=dict)
    checklist: Mapped[dict] = mapped_column(_jsonb(), default=dict)
    progress_metrics: Mapped[dict] = mapped_column(_jsonb(), default=dict)
    timestamps: Mapped[dict] = mapped_column(_jsonb(), default=dict)
    notes: Mapped[list] = mapped_column(_jsonb(), default=list)
    is_shared: Mapped[bool] = mapped_column(Boolean, default=False)
    shared_with: Mapped[list] = mapped_column(_jsonb(), default=list)
    documents: Mapped[list] = mapped_column(_jsonb(), default=list)
    version: Mapped[int] = mapped_column(Integer, default=1)
    last_activity: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        Index("ix_journeys_user_status", "user_id", "status"),
        Index("ix_journeys_email", "email"),
        Index("ix_journeys_route", "origin_country", "destination_country"),
        Index("ix_journeys_last_activity", "last_activity"),
        # At most one active journey per owner and route.
        Index(
            "uq_journeys_active_route",
            "user_id", "origin_country", "destination_country",
            unique=True,
            postgresql_where=text(ACTIVE_STATUS_SQL),
            sqlite_where=text(ACTIVE_STATUS_SQL),
        ),
    )
