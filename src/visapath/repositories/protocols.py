"""Protocol for journey persistence.

The in-memory store returns plain values and the Postgres repository returns
coroutines; both satisfy this interface and are awaited through ``resolve()``.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Protocol, runtime_checkable

from visapath.core.types import JourneyStatus
from visapath.journeys.models import Journey


@runtime_checkable
class JourneyRepository(Protocol):
    """Storage contract for journeys.

    ``save`` must reject a stale ``version`` and a second active journey for
    the same owner and route with ConflictError, and return the stored copy
    with its version incremented.
    """

    def find_active_by_owner_and_route(
        self, user_id: str, origin: str, destination: str
    ) -> Journey | None: ...

    def find_by_id(self, journey_id: str) -> Journey | None: ...

    def save(self, journey: Journey) -> Journey: ...

    def delete(self, journey_id: str) -> bool: ...

    def find_all_by_owner(
        self, user_id: str, statuses: Collection[JourneyStatus] | None = None
    ) -> list[Journey]: ...

    def list_all(self) -> list[Journey]: ...
