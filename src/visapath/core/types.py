"""Core type definitions shared across all VisaPath modules."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model whose JSON form uses camelCase keys.

    Python code uses snake_case attributes; ``model_dump(by_alias=True)`` yields
    the shape the frontend consumes (``stepCompletion``, ``progressMetrics``).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JourneyStatus(StrEnum):
    """Lifecycle status of a journey."""

    STARTED = "started"
    IN_PROGRESS = "in_progress"
    UNDER_REVIEW = "under_review"
    COMPLETED = "completed"
    ABANDONED = "abandoned"
    CANCELLED = "cancelled"


ACTIVE_STATUSES: frozenset[JourneyStatus] = frozenset({
    JourneyStatus.STARTED,
    JourneyStatus.IN_PROGRESS,
    JourneyStatus.UNDER_REVIEW,
})


class JourneyPhase(StrEnum):
    """Display-only phase of the application process."""

    SELECTION = "selection"
    PERSONALIZATION = "personalization"
    PREPARATION = "preparation"
    APPLICATION = "application"
    PROCESSING = "processing"
    DECISION = "decision"


class UserType(StrEnum):
    STUDENT = "student"
    VISITOR = "visitor"
    WORKER = "worker"
    FAMILY = "family"
    BUSINESS = "business"
    OTHER = "other"


class SharePermission(StrEnum):
    """Scope of a shared-with grant, from weakest to strongest."""

    VIEW = "view"
    COMMENT = "comment"
    EDIT = "edit"


class VisaCategory(StrEnum):
    STUDENT = "student"
    VISITOR = "visitor"
    WORKER = "worker"
    BUSINESS = "business"
    FAMILY = "family"
    TRANSIT = "transit"


class HealthStatus(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str = "0.1.0"
