"""Journey data models: one user's progress along one visa route."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import Field

from visapath.core.types import (
    ACTIVE_STATUSES,
    CamelModel,
    JourneyPhase,
    JourneyStatus,
    SharePermission,
    UserType,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProgressMetrics(CamelModel):
    """Derived completion counters. Never set directly by a client."""

    total_steps: int = 0
    completed_steps: int = 0
    total_checklist_items: int = 0
    completed_checklist_items: int = 0
    completion_percentage: int = 0


class JourneyTimestamps(CamelModel):
    """When the journey started, last changed, and when key events last happened."""

    journey_started: datetime = Field(default_factory=_utcnow)
    last_activity: datetime = Field(default_factory=_utcnow)
    step_completed: datetime | None = None
    cas_auto_completed: datetime | None = None
    checklist_updated: datetime | None = None
    personalization_updated: datetime | None = None
    status_changed: datetime | None = None
    document_attached: datetime | None = None


class Note(CamelModel):
    content: str
    author: str
    created_at: datetime = Field(default_factory=_utcnow)


class ShareGrant(CamelModel):
    """Non-owner access right; never transfers ownership."""

    email: str
    permission: SharePermission = SharePermission.VIEW
    shared_at: datetime = Field(default_factory=_utcnow)


class JourneyDocument(CamelModel):
    """An uploaded file attached to a journey. Storage of the bytes is external."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    type: str = ""
    url: str = ""
    size: int | None = None
    checksum: str | None = None
    uploaded_at: datetime = Field(default_factory=_utcnow)


class Journey(CamelModel):
    """Persisted record of one user's progress through one visa application."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    email: str
    origin_country: str
    destination_country: str
    user_type: UserType = UserType.STUDENT
    visa_type: str = "student"
    status: JourneyStatus = JourneyStatus.STARTED
    phase: JourneyPhase = JourneyPhase.SELECTION
    personalization_data: dict[str, Any] = Field(default_factory=dict)
    step_completion: dict[str, bool] = Field(default_factory=dict)
    checklist: dict[str, bool] = Field(default_factory=dict)
    progress_metrics: ProgressMetrics = Field(default_factory=ProgressMetrics)
    timestamps: JourneyTimestamps = Field(default_factory=JourneyTimestamps)
    notes: list[Note] = Field(default_factory=list)
    is_shared: bool = False
    shared_with: list[ShareGrant] = Field(default_factory=list)
    documents: list[JourneyDocument] = Field(default_factory=list)
    version: int = 0

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def route_key(self) -> str:
        return f"{self.origin_country}-{self.destination_country}"

    def grant_for(self, email: str) -> ShareGrant | None:
        wanted = email.strip().lower()
        for grant in self.shared_with:
            if grant.email == wanted:
                return grant
        return None

    def progress_payload(self) -> dict[str, Any]:
        """The progress shape the frontend saves and loads."""
        return {
            "email": self.email,
            "originCountry": self.origin_country,
            "destinationCountry": self.destination_country,
            "userType": self.user_type.value,
            "visaType": self.visa_type,
            "personalizationData": dict(self.personalization_data),
            "checklist": dict(self.checklist),
            "stepCompletion": dict(self.step_completion),
            "timestamps": self.timestamps.model_dump(mode="json", by_alias=True),
        }
