"""Tests for PostgresJourneyRepository with SQLite async."""

from __future__ import annotations

import pytest

from tests.conftest import OWNER
from visapath.core.errors import DuplicateJourneyError, StaleWriteError
from visapath.core.types import JourneyStatus, SharePermission
from visapath.db.base import Base
from visapath.db.engine import DatabaseManager
from visapath.journeys.engine import JourneyEngine
from visapath.journeys.models import Journey, Note, ShareGrant
from visapath.repositories.postgres.journeys import PostgresJourneyRepository

import visapath.db.models  # noqa: F401


@pytest.fixture
async def repo():
    db = DatabaseManager("sqlite+aiosqlite:///:memory:")
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield PostgresJourneyRepository(db)
    await db.close()


def _journey(**overrides) -> Journey:
    fields = dict(
        user_id="user-1",
        email="one@example.com",
        origin_country="IN",
        destination_country="GB",
    )
    fields.update(overrides)
    return Journey(**fields)


async def test_save_and_find(repo):
    journey = _journey(
        personalization_data={"hasCAS": True, "casDate": "15/01/2026"},
        step_completion={"cas": True},
        notes=[Note(content="hi", author="one@example.com")],
        shared_with=[ShareGrant(email="two@example.com", permission=SharePermission.EDIT)],
    )
    saved = await repo.save(journey)
    assert saved.version == 1

    found = await repo.find_by_id(journey.id)
    assert found is not None
    assert found.version == 1
    assert found.personalization_data == {"hasCAS": True, "casDate": "15/01/2026"}
    assert found.step_completion == {"cas": True}
    assert found.notes[0].content == "hi"
    assert found.shared_with[0].permission == SharePermission.EDIT
    assert found.timestamps.journey_started == journey.timestamps.journey_started


async def test_find_by_id_missing(repo):
    assert await repo.find_by_id("nonexistent") is None


async def test_update_bumps_version(repo):
    saved = await repo.save(_journey())
    saved.checklist["passport"] = True
    updated = await repo.save(saved)
    assert updated.version == 2
    assert (await repo.find_by_id(saved.id)).checklist == {"passport": True}


async def test_stale_write_rejected(repo):
    saved = await repo.save(_journey())
    first = await repo.find_by_id(saved.id)
    second = await repo.find_by_id(saved.id)
    await repo.save(first)
    with pytest.raises(StaleWriteError):
        await repo.save(second)


async def test_duplicate_active_rejected(repo):
    await repo.save(_journey())
    with pytest.raises(DuplicateJourneyError):
        await repo.save(_journey())


async def test_terminal_journey_does_not_block(repo):
    await repo.save(_journey(status=JourneyStatus.ABANDONED))
    await repo.save(_journey())
    assert len(await repo.list_all()) == 2


async def test_find_active_by_owner_and_route(repo):
    await repo.save(_journey(status=JourneyStatus.COMPLETED))
    active = await repo.save(_journey())
    found = await repo.find_active_by_owner_and_route("user-1", "IN", "GB")
    assert found.id == active.id
    assert await repo.find_active_by_owner_and_route("user-1", "IN", "US") is None


async def test_find_all_by_owner(repo):
    await repo.save(_journey())
    await repo.save(_journey(destination_country="US", status=JourneyStatus.COMPLETED))
    await repo.save(_journey(user_id="user-2"))

    assert len(await repo.find_all_by_owner("user-1")) == 2
    completed = await repo.find_all_by_owner("user-1", {JourneyStatus.COMPLETED})
    assert [j.destination_country for j in completed] == ["US"]


async def test_delete(repo):
    saved = await repo.save(_journey())
    assert await repo.delete(saved.id) is True
    assert await repo.delete(saved.id) is False
    assert await repo.find_by_id(saved.id) is None


async def test_engine_over_sql_repository(repo):
    engine = JourneyEngine(repo)
    journey, created = await engine.create_or_resume(OWNER, "IN", "GB")
    assert created is True
    updated = await engine.update_personalization(journey.id, OWNER, {"hasCAS": True})
    assert updated.step_completion == {"unconditional-offer": True, "cas": True}

    resumed, created = await engine.create_or_resume(OWNER, "IN", "GB")
    assert created is False
    assert resumed.id == journey.id
    assert resumed.version == 3
