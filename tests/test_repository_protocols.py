"""Repository protocol conformance and the resolve() helper."""

from __future__ import annotations

from visapath.db.engine import DatabaseManager
from visapath.journeys.store import JourneyStore
from visapath.repositories import resolve
from visapath.repositories.postgres.journeys import PostgresJourneyRepository
from visapath.repositories.protocols import JourneyRepository


def test_journey_store_satisfies_protocol():
    assert isinstance(JourneyStore(), JourneyRepository)


def test_postgres_repository_satisfies_protocol():
    db = DatabaseManager("sqlite+aiosqlite:///:memory:")
    assert isinstance(PostgresJourneyRepository(db), JourneyRepository)


async def test_resolve_plain_value():
    assert await resolve(42) == 42


async def test_resolve_coroutine():
    async def value():
        return "ok"

    assert await resolve(value()) == "ok"
