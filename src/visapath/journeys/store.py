"""In-memory journey store."""

from __future__ import annotations

from collections.abc import Collection

from visapath.core.errors import DuplicateJourneyError, StaleWriteError
from visapath.core.types import JourneyStatus
from visapath.journeys.models import Journey


class JourneyStore:
    """In-memory dict store for journeys.

    Suitable for single-instance deployment and tests. Journeys are copied on
    the way in and out so a caller's in-flight edits never leak into stored
    state before ``save``.
    """

    def __init__(self) -> None:
        self._journeys: dict[str, Journey] = {}

    def find_active_by_owner_and_route(
        self, user_id: str, origin: str, destination: str
    ) -> Journey | None:
        matches = [
            j for j in self._journeys.values()
            if j.user_id == user_id
            and j.origin_country == origin
            and j.destination_country == destination
            and j.is_active
        ]
        if not matches:
            return None
        latest = max(matches, key=lambda j: j.timestamps.last_activity)
        return latest.model_copy(deep=True)

    def find_by_id(self, journey_id: str) -> Journey | None:
        journey = self._journeys.get(journey_id)
        return journey.model_copy(deep=True) if journey else None

    def save(self, journey: Journey) -> Journey:
        current = self._journeys.get(journey.id)
        stored_version = current.version if current else 0
        if journey.version != stored_version:
            raise StaleWriteError(
                f"Journey {journey.id!r} was modified concurrently "
                f"(expected version {journey.version}, found {stored_version})"
            )

        if journey.is_active:
            duplicate = self.find_active_by_owner_and_route(
                journey.user_id, journey.origin_country, journey.destination_country
            )
            if duplicate is not None and duplicate.id != journey.id:
                raise DuplicateJourneyError(
                    f"An active journey already exists for {journey.route_key}"
                )

        stored = journey.model_copy(update={"version": stored_version + 1}, deep=True)
        self._journeys[stored.id] = stored
        return stored.model_copy(deep=True)

    def delete(self, journey_id: str) -> bool:
        return self._journeys.pop(journey_id, None) is not None

    def find_all_by_owner(
        self, user_id: str, statuses: Collection[JourneyStatus] | None = None
    ) -> list[Journey]:
        results = [
            j.model_copy(deep=True) for j in self._journeys.values()
            if j.user_id == user_id and (statuses is None or j.status in statuses)
        ]
        return sorted(results, key=lambda j: j.timestamps.last_activity, reverse=True)

    def list_all(self) -> list[Journey]:
        return [j.model_copy(deep=True) for j in self._journeys.values()]

    @property
    def count(self) -> int:
        return len(self._journeys)
