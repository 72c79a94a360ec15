"""Journey state machine: every mutation of a journey goes through here.

Each write is a read-modify-write against the repository guarded by the
journey's optimistic ``version``. A stale write is retried on a fresh copy,
so concurrent updates to different steps never lose each other.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, Field

from visapath.auth.models import Identity
from visapath.catalog.models import VisaType
from visapath.catalog.store import VisaCatalog
from visapath.core.config import JourneyConfig
from visapath.core.errors import (
    ConflictError,
    NotFoundError,
    StaleWriteError,
    ValidationError,
)
from visapath.core.types import (
    ACTIVE_STATUSES,
    CamelModel,
    JourneyPhase,
    JourneyStatus,
    SharePermission,
    UserType,
)
from visapath.journeys.access import AccessLevel, check_access
from visapath.journeys.models import Journey, JourneyDocument, Note, ShareGrant
from visapath.journeys.progress import recompute
from visapath.journeys.rules import DEFAULT_RULES, AutoCompletionRule, matching_rules
from visapath.journeys.validation import (
    normalize_country_code,
    normalize_email,
    parse_personalization,
)
from visapath.repositories import resolve
from visapath.repositories.protocols import JourneyRepository

logger = logging.getLogger(__name__)

_MAX_KEY_LENGTH = 100

# Used only when JourneyConfig.enforce_status_transitions is on.
STATUS_TRANSITIONS: dict[JourneyStatus, frozenset[JourneyStatus]] = {
    JourneyStatus.STARTED: frozenset({
        JourneyStatus.IN_PROGRESS, JourneyStatus.ABANDONED, JourneyStatus.CANCELLED,
    }),
    JourneyStatus.IN_PROGRESS: frozenset({
        JourneyStatus.UNDER_REVIEW, JourneyStatus.ABANDONED, JourneyStatus.CANCELLED,
    }),
    JourneyStatus.UNDER_REVIEW: frozenset({
        JourneyStatus.COMPLETED, JourneyStatus.ABANDONED, JourneyStatus.CANCELLED,
    }),
    JourneyStatus.COMPLETED: frozenset(),
    JourneyStatus.ABANDONED: frozenset(),
    JourneyStatus.CANCELLED: frozenset(),
}


class JourneyPage(BaseModel):
    journeys: list[Journey]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total


class RouteStats(CamelModel):
    origin: str
    destination: str
    count: int
    average_completion: float


class JourneyStats(CamelModel):
    total_journeys: int = 0
    active_journeys: int = 0
    completed_journeys: int = 0
    average_completion: float = 0.0
    popular_routes: list[RouteStats] = Field(default_factory=list)


def _parse_enum(enum_cls: type, value: Any, label: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        valid = [m.value for m in enum_cls]
        raise ValidationError(f"Invalid {label}: {value!r}. Valid values: {valid}") from None


def _check_key(key: Any, label: str) -> str:
    if not isinstance(key, str) or not key.strip() or len(key) > _MAX_KEY_LENGTH:
        raise ValidationError(f"{label} must be a non-empty string of at most {_MAX_KEY_LENGTH} characters")
    return key


def _check_flags(updates: Mapping[str, Any], label: str) -> dict[str, bool]:
    checked: dict[str, bool] = {}
    for key, value in updates.items():
        _check_key(key, f"{label} id")
        if not isinstance(value, bool):
            raise ValidationError(f"{label} {key!r} must be true or false")
        checked[key] = value
    return checked


class JourneyEngine:
    """Owns the journey lifecycle and keeps its invariants.

    - at most one active journey per owner and route;
    - ``progress_metrics`` always matches ``step_completion`` and ``checklist``;
    - ``timestamps.last_activity`` strictly advances on every write.
    """

    def __init__(
        self,
        store: JourneyRepository,
        catalog: VisaCatalog | None = None,
        config: JourneyConfig | None = None,
        rules: tuple[AutoCompletionRule, ...] = DEFAULT_RULES,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._config = config or JourneyConfig()
        self._rules = rules

    @property
    def store(self) -> JourneyRepository:
        return self._store

    # -- Creation --

    async def create_or_resume(
        self,
        identity: Identity,
        origin: str,
        destination: str,
        user_type: str | None = None,
        visa_type: str | None = None,
        personalization_data: Mapping[str, Any] | None = None,
        checklist: Mapping[str, Any] | None = None,
        step_completion: Mapping[str, Any] | None = None,
    ) -> tuple[Journey, bool]:
        """Resume the caller's active journey for the route, or start one.

        Returns:
            The saved journey and whether it was newly created.

        Raises:
            ValidationError: If a country code, user type or answer is malformed.
        """
        origin = normalize_country_code(origin, "Origin country")
        destination = normalize_country_code(destination, "Destination country")
        if self._catalog is not None and not (
            self._catalog.has_country(origin) and self._catalog.has_country(destination)
        ):
            raise ValidationError("Invalid country codes provided")

        parsed_user_type = _parse_enum(UserType, user_type, "user type") if user_type else None
        if visa_type is not None:
            _check_key(visa_type, "Visa type")
        checklist_updates = _check_flags(checklist or {}, "Checklist item")
        step_updates = _check_flags(step_completion or {}, "Step")

        for attempt in range(1, self._config.max_write_retries + 1):
            existing = await resolve(
                self._store.find_active_by_owner_and_route(identity.user_id, origin, destination)
            )
            now = self._now(existing)

            if existing is not None:
                journey, created = existing, False
                # A resumed snapshot may only add completions, never undo them.
                for step_id, done in step_updates.items():
                    if done:
                        self._set_step(journey, step_id, True, now)
                if parsed_user_type is not None:
                    journey.user_type = parsed_user_type
                if visa_type:
                    journey.visa_type = visa_type
            else:
                journey, created = Journey(
                    user_id=identity.user_id,
                    email=identity.email,
                    origin_country=origin,
                    destination_country=destination,
                    user_type=parsed_user_type or UserType.STUDENT,
                    visa_type=visa_type or "student",
                ), True
                journey.timestamps.journey_started = now
                for step_id, done in step_updates.items():
                    self._set_step(journey, step_id, done, now)

            # Answers are checked against the visa type the journey ends up with.
            answers = parse_personalization(personalization_data or {}, self.visa_type_for(journey))

            if checklist_updates:
                journey.checklist.update(checklist_updates)
                journey.timestamps.checklist_updated = now
            if answers:
                self._merge_personalization(journey, answers, now)

            journey.progress_metrics = recompute(journey.step_completion, journey.checklist)
            journey.timestamps.last_activity = now

            try:
                saved = await resolve(self._store.save(journey))
            except ConflictError:
                # Stale copy or a concurrent creation for the same route: re-read and resume.
                logger.warning(
                    "Conflict saving journey for %s %s-%s (attempt %d)",
                    identity.user_id, origin, destination, attempt,
                )
                continue

            logger.info(
                "Journey %s for user %s on %s (progress %d%%)",
                "created" if created else "resumed",
                identity.user_id, saved.route_key,
                saved.progress_metrics.completion_percentage,
            )
            return saved, created

        raise ConflictError("Journey is being modified concurrently, please retry")

    # -- Reads --

    async def get_journey(self, journey_id: str, identity: Identity) -> Journey:
        journey = await self._load(journey_id)
        check_access(journey, identity, AccessLevel.READ)
        return journey

    async def list_journeys(
        self,
        identity: Identity,
        status: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> JourneyPage:
        """The caller's own journeys, most recently active first.

        Without a status filter only active journeys are listed.
        """
        if status:
            statuses = {_parse_enum(JourneyStatus, status, "status")}
        else:
            statuses = set(ACTIVE_STATUSES)
        limit = limit or self._config.default_page_size
        if limit < 1 or offset < 0:
            raise ValidationError("limit must be positive and offset non-negative")

        journeys = await resolve(self._store.find_all_by_owner(identity.user_id, statuses))
        return JourneyPage(
            journeys=journeys[offset:offset + limit],
            total=len(journeys),
            limit=limit,
            offset=offset,
        )

    async def load_progress(
        self,
        identity: Identity,
        origin: str | None = None,
        destination: str | None = None,
    ) -> Journey | None:
        """The caller's most recently active journey, optionally for one route."""
        if origin and destination:
            return await resolve(self._store.find_active_by_owner_and_route(
                identity.user_id,
                normalize_country_code(origin, "Origin country"),
                normalize_country_code(destination, "Destination country"),
            ))
        journeys = await resolve(self._store.find_all_by_owner(identity.user_id, ACTIVE_STATUSES))
        return journeys[0] if journeys else None

    async def journey_stats(self) -> JourneyStats:
        journeys = await resolve(self._store.list_all())
        if not journeys:
            return JourneyStats()

        by_route: dict[tuple[str, str], list[int]] = defaultdict(list)
        for j in journeys:
            by_route[(j.origin_country, j.destination_country)].append(
                j.progress_metrics.completion_percentage
            )
        routes = sorted(
            (
                RouteStats(
                    origin=origin,
                    destination=destination,
                    count=len(pcts),
                    average_completion=round(sum(pcts) / len(pcts), 1),
                )
                for (origin, destination), pcts in by_route.items()
            ),
            key=lambda r: (-r.count, r.origin, r.destination),
        )

        completions = [j.progress_metrics.completion_percentage for j in journeys]
        return JourneyStats(
            total_journeys=len(journeys),
            active_journeys=sum(1 for j in journeys if j.is_active),
            completed_journeys=sum(1 for j in journeys if j.status == JourneyStatus.COMPLETED),
            average_completion=round(sum(completions) / len(completions), 1),
            popular_routes=routes[:10],
        )

    def visa_type_for(self, journey: Journey) -> VisaType | None:
        return self._visa_type(journey.origin_country, journey.destination_country, journey.visa_type)

    # -- Mutations --

    async def mark_step_completed(self, journey_id: str, identity: Identity, step_id: str) -> Journey:
        return await self.set_step_completion(journey_id, identity, step_id, True)

    async def set_step_completion(
        self, journey_id: str, identity: Identity, step_id: str, completed: bool
    ) -> Journey:
        _check_key(step_id, "Step id")
        if not isinstance(completed, bool):
            raise ValidationError("Completed status must be a boolean")

        def mutation(journey: Journey, now: datetime) -> None:
            self._set_step(journey, step_id, completed, now)

        return await self._mutate(journey_id, identity, AccessLevel.EDIT, mutation)

    async def update_checklist(
        self, journey_id: str, identity: Identity, updates: Mapping[str, Any]
    ) -> Journey:
        """Merge ``updates`` into the checklist; untouched items keep their state."""
        checked = _check_flags(updates, "Checklist item")

        def mutation(journey: Journey, now: datetime) -> None:
            journey.checklist.update(checked)
            journey.timestamps.checklist_updated = now

        return await self._mutate(journey_id, identity, AccessLevel.EDIT, mutation)

    async def update_personalization(
        self, journey_id: str, identity: Identity, partial: Mapping[str, Any]
    ) -> Journey:
        """Shallow-merge answers, then apply the auto-completion rules."""

        def mutation(journey: Journey, now: datetime) -> None:
            answers = parse_personalization(partial, self.visa_type_for(journey))
            self._merge_personalization(journey, answers, now)

        return await self._mutate(journey_id, identity, AccessLevel.EDIT, mutation)

    async def update_status(
        self,
        journey_id: str,
        identity: Identity,
        status: str | None = None,
        phase: str | None = None,
    ) -> Journey:
        """Client-driven status/phase change.

        Raises:
            ValidationError: Unknown value, or a disallowed transition in strict mode.
            ConflictError: Re-activating a journey while another is active on the route.
        """
        if status is None and phase is None:
            raise ValidationError("Provide a status or a phase")
        new_status = _parse_enum(JourneyStatus, status, "status") if status else None
        new_phase = _parse_enum(JourneyPhase, phase, "phase") if phase else None

        def mutation(journey: Journey, now: datetime) -> None:
            if new_status is not None and new_status != journey.status:
                if (
                    self._config.enforce_status_transitions
                    and new_status not in STATUS_TRANSITIONS[journey.status]
                ):
                    raise ValidationError(
                        f"Cannot move journey from {journey.status.value!r} to {new_status.value!r}"
                    )
                journey.status = new_status
                journey.timestamps.status_changed = now
            if new_phase is not None:
                journey.phase = new_phase

        return await self._mutate(journey_id, identity, AccessLevel.EDIT, mutation)

    async def add_note(self, journey_id: str, identity: Identity, content: str) -> Journey:
        if content is None or not content.strip():
            raise ValidationError("Note content is required")
        if len(content) > self._config.max_note_length:
            raise ValidationError(
                f"Note content cannot exceed {self._config.max_note_length} characters"
            )

        def mutation(journey: Journey, now: datetime) -> None:
            journey.notes.append(Note(content=content, author=identity.email, created_at=now))

        return await self._mutate(journey_id, identity, AccessLevel.COMMENT, mutation)

    async def share(
        self,
        journey_id: str,
        identity: Identity,
        email: str,
        permission: str = SharePermission.VIEW,
    ) -> Journey:
        """Grant (or re-scope) access for ``email``. Owner only."""
        email = normalize_email(email)
        grant_permission = _parse_enum(SharePermission, permission, "permission")

        def mutation(journey: Journey, now: datetime) -> None:
            if email == journey.email.lower():
                raise ValidationError("Cannot share a journey with its owner")
            existing = journey.grant_for(email)
            if existing is not None:
                existing.permission = grant_permission
            else:
                journey.shared_with.append(
                    ShareGrant(email=email, permission=grant_permission, shared_at=now)
                )
            journey.is_shared = True

        return await self._mutate(journey_id, identity, AccessLevel.OWNER, mutation)

    async def attach_document(
        self,
        journey_id: str,
        identity: Identity,
        name: str,
        doc_type: str = "",
        url: str = "",
        size: int | None = None,
        checksum: str | None = None,
    ) -> Journey:
        if not name or not name.strip():
            raise ValidationError("Document name is required")
        if size is not None and size < 0:
            raise ValidationError("Document size cannot be negative")

        def mutation(journey: Journey, now: datetime) -> None:
            journey.documents.append(JourneyDocument(
                name=name.strip(),
                type=doc_type,
                url=url,
                size=size,
                checksum=checksum,
                uploaded_at=now,
            ))
            journey.timestamps.document_attached = now

        return await self._mutate(journey_id, identity, AccessLevel.EDIT, mutation)

    async def delete(self, journey_id: str, identity: Identity) -> None:
        """Hard-delete a journey. Owner only."""
        journey = await self._load(journey_id)
        check_access(journey, identity, AccessLevel.OWNER)
        await resolve(self._store.delete(journey_id))
        logger.info("Journey %s deleted by %s", journey_id, identity.user_id)

    # -- Internals --

    async def _load(self, journey_id: str) -> Journey:
        journey = await resolve(self._store.find_by_id(journey_id))
        if journey is None:
            raise NotFoundError(f"Journey {journey_id!r} not found")
        return journey

    async def _mutate(
        self,
        journey_id: str,
        identity: Identity,
        required: AccessLevel,
        mutation: Callable[[Journey, datetime], None],
    ) -> Journey:
        """Load, authorize, apply ``mutation``, recompute metrics and save.

        On a stale write the whole cycle reruns against a fresh copy.
        """
        for attempt in range(1, self._config.max_write_retries + 1):
            journey = await self._load(journey_id)
            check_access(journey, identity, required)

            now = self._now(journey)
            mutation(journey, now)
            journey.progress_metrics = recompute(journey.step_completion, journey.checklist)
            journey.timestamps.last_activity = now

            try:
                return await resolve(self._store.save(journey))
            except StaleWriteError:
                logger.warning("Stale write on journey %s (attempt %d)", journey_id, attempt)

        raise ConflictError("Journey is being modified concurrently, please retry")

    def _merge_personalization(
        self, journey: Journey, answers: Mapping[str, Any], now: datetime
    ) -> None:
        journey.personalization_data = {**journey.personalization_data, **answers}
        journey.timestamps.personalization_updated = now

        for rule in matching_rules(self._rules, journey.personalization_data):
            for step_id in rule.complete_steps:
                journey.step_completion[step_id] = True
            if rule.timestamp:
                setattr(journey.timestamps, rule.timestamp, now)
            logger.info("Rule %r auto-completed %s on journey %s", rule.name, rule.complete_steps, journey.id)

    @staticmethod
    def _set_step(journey: Journey, step_id: str, completed: bool, now: datetime) -> None:
        journey.step_completion[step_id] = completed
        if completed:
            journey.timestamps.step_completed = now

    @staticmethod
    def _now(journey: Journey | None) -> datetime:
        """Current time, nudged past the journey's last activity if the clock lags."""
        now = datetime.now(timezone.utc)
        if journey is not None and now <= journey.timestamps.last_activity:
            now = journey.timestamps.last_activity + timedelta(microseconds=1)
        return now

    def _visa_type(self, origin: str, destination: str, code: str | None) -> VisaType | None:
        if self._catalog is None or not code:
            return None
        return self._catalog.find_visa_type(origin, destination, code)
