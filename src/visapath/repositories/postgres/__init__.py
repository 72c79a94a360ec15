"""PostgreSQL-backed repository implementations."""

from __future__ import annotations

from visapath.repositories.postgres.journeys import PostgresJourneyRepository

__all__ = ["PostgresJourneyRepository"]
