"""PostgreSQL journey repository."""

from __future__ import annotations

import logging
from collections.abc import Collection
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from visapath.core.errors import DuplicateJourneyError, StaleWriteError
from visapath.core.types import ACTIVE_STATUSES, JourneyStatus
from visapath.db.engine import DatabaseManager
from visapath.db.models import JourneyRow
from visapath.journeys.models import Journey

logger = logging.getLogger(__name__)

_JSON_FIELDS = (
    "personalization_data",
    "step_completion",
    "checklist",
    "progress_metrics",
    "timestamps",
    "notes",
    "shared_with",
    "documents",
)


def _to_values(journey: Journey) -> dict[str, Any]:
    data = journey.model_dump(mode="json")
    values = {
        "user_id": journey.user_id,
        "email": journey.email,
        "origin_country": journey.origin_country,
        "destination_country": journey.destination_country,
        "user_type": journey.user_type.value,
        "visa_type": journey.visa_type,
        "status": journey.status.value,
        "phase": journey.phase.value,
        "is_shared": journey.is_shared,
        "last_activity": journey.timestamps.last_activity,
    }
    for field in _JSON_FIELDS:
        values[field] = data[field]
    return values


def _from_row(row: JourneyRow) -> Journey:
    return Journey.model_validate({
        "id": row.id,
        "user_id": row.user_id,
        "email": row.email,
        "origin_country": row.origin_country,
        "destination_country": row.destination_country,
        "user_type": row.user_type,
        "visa_type": row.visa_type,
        "status": row.status,
        "phase": row.phase,
        "is_shared": row.is_shared,
        "version": row.version,
        **{field: getattr(row, field) for field in _JSON_FIELDS},
    })


class PostgresJourneyRepository:
    """Postgres-backed journey storage.

    Writes are conditional on the stored ``version`` so two concurrent
    read-modify-write cycles cannot silently overwrite each other. The
    partial unique index on active (owner, route) rows rejects a second
    active journey for the same route.
    """

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def find_active_by_owner_and_route(
        self, user_id: str, origin: str, destination: str
    ) -> Journey | None:
        async with self._db.session() as db:
            result = await db.execute(
                select(JourneyRow)
                .where(
                    JourneyRow.user_id == user_id,
                    JourneyRow.origin_country == origin,
                    JourneyRow.destination_country == destination,
                    JourneyRow.status.in_([s.value for s in ACTIVE_STATUSES]),
                )
                .order_by(JourneyRow.last_activity.desc())
                .limit(1)
            )
            row = result.scalar_one_or_none()
        return _from_row(row) if row else None

    async def find_by_id(self, journey_id: str) -> Journey | None:
        async with self._db.session() as db:
            row = await db.get(JourneyRow, journey_id)
        return _from_row(row) if row else None

    async def save(self, journey: Journey) -> Journey:
        values = _to_values(journey)
        try:
            async with self._db.transaction() as db:
                if journey.version == 0:
                    db.add(JourneyRow(id=journey.id, version=1, **values))
                else:
                    result = await db.execute(
                        update(JourneyRow)
                        .where(
                            JourneyRow.id == journey.id,
                            JourneyRow.version == journey.version,
                        )
                        .values(version=journey.version + 1, **values)
                    )
                    if result.rowcount == 0:
                        raise StaleWriteError(
                            f"Journey {journey.id!r} was modified concurrently "
                            f"(expected version {journey.version})"
                        )
        except IntegrityError as exc:
            if journey.version == 0 and await self.find_by_id(journey.id) is not None:
                raise StaleWriteError(f"Journey {journey.id!r} already exists") from exc
            logger.info("Rejected duplicate active journey for %s", journey.route_key)
            raise DuplicateJourneyError(
                f"An active journey already exists for {journey.route_key}"
            ) from exc

        return journey.model_copy(update={"version": journey.version + 1}, deep=True)

    async def delete(self, journey_id: str) -> bool:
        async with self._db.transaction() as db:
            result = await db.execute(delete(JourneyRow).where(JourneyRow.id == journey_id))
        return result.rowcount > 0

    async def find_all_by_owner(
        self, user_id: str, statuses: Collection[JourneyStatus] | None = None
    ) -> list[Journey]:
        stmt = select(JourneyRow).where(JourneyRow.user_id == user_id)
        if statuses is not None:
            stmt = stmt.where(JourneyRow.status.in_([JourneyStatus(s).value for s in statuses]))
        async with self._db.session() as db:
            result = await db.execute(stmt.order_by(JourneyRow.last_activity.desc()))
            rows = result.scalars().all()
        return [_from_row(row) for row in rows]

    async def list_all(self) -> list[Journey]:
        async with self._db.session() as db:
            result = await db.execute(select(JourneyRow))
            rows = result.scalars().all()
        return [_from_row(row) for row in rows]
