"""Shared test fixtures and helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from visapath.auth.models import Identity
from visapath.catalog.store import VisaCatalog
from visapath.journeys.engine import JourneyEngine
from visapath.journeys.store import JourneyStore

CONFIG_DIR = Path(__file__).resolve().parents[1] / "src" / "visapath" / "config"

OWNER = Identity(user_id="user-priya", email="priya@example.com", display_name="Priya")
ADVISOR = Identity(user_id="user-advisor", email="advisor@example.com", display_name="Advisor")
STRANGER = Identity(user_id="user-other", email="other@example.com", display_name="Other")
ADMIN = Identity(user_id="user-admin", email="admin@example.com", roles=["admin"])


def install_token(app, identity: Identity, token: str | None = None) -> str:
    """Register a bearer token for ``identity`` on the app's auth provider.

    Returns the token string for use in Authorization headers.
    """
    token = token or f"test-token-{identity.user_id}"
    provider = app.state.auth_provider
    provider._tokens[token] = {
        "identity": identity,
        "expires_at": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    return token


def auth_headers(app, identity: Identity) -> dict[str, str]:
    return {"Authorization": f"Bearer {install_token(app, identity)}"}


@pytest.fixture
def catalog() -> VisaCatalog:
    return VisaCatalog(
        visa_types_dir=CONFIG_DIR / "visa_types",
        countries_path=CONFIG_DIR / "countries.yml",
    )


@pytest.fixture
def store() -> JourneyStore:
    return JourneyStore()


@pytest.fixture
def engine(store, catalog) -> JourneyEngine:
    return JourneyEngine(store=store, catalog=catalog)
