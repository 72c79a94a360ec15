"""Tests for auth provider and middleware."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from visapath.auth.middleware import AuthMiddleware, require_identity, require_role
from visapath.auth.models import AuthCredentials, Identity
from visapath.auth.provider import AuthProvider, MockAuthProvider

FIXTURES = """
users:
  - email: Jane@Example.com
    code: "123456"
    user_id: user-jane
    display_name: Jane Smith
    roles: [applicant]
  - email: open@example.com
    user_id: user-open
"""


@pytest.fixture
def provider(tmp_path) -> MockAuthProvider:
    path = tmp_path / "users.yml"
    path.write_text(FIXTURES)
    return MockAuthProvider(fixtures_path=path)


class TestMockAuthProvider:
    def test_satisfies_protocol(self, provider) -> None:
        assert isinstance(provider, AuthProvider)

    def test_fixtures_loaded(self, provider) -> None:
        assert "jane@example.com" in provider.users
        assert "open@example.com" in provider.users

    def test_bundled_fixtures_loaded(self) -> None:
        provider = MockAuthProvider()
        assert "admin@example.com" in provider.users

    def test_authenticate_success(self, provider) -> None:
        result = provider.authenticate(AuthCredentials(email="jane@example.com", code="123456"))
        assert result.success
        assert result.token is not None
        assert result.identity.user_id == "user-jane"
        assert result.identity.email == "jane@example.com"
        assert result.identity.display_name == "Jane Smith"
        assert result.expires_at > datetime.now(timezone.utc)

    def test_authenticate_wrong_code(self, provider) -> None:
        result = provider.authenticate(AuthCredentials(email="jane@example.com", code="wrong"))
        assert not result.success
        assert "Invalid" in result.error

    def test_authenticate_empty_code(self, provider) -> None:
        result = provider.authenticate(AuthCredentials(email="jane@example.com", code=" "))
        assert not result.success

    def test_user_without_code_accepts_any(self, provider) -> None:
        result = provider.authenticate(AuthCredentials(email="open@example.com", code="1"))
        assert result.success

    def test_authenticate_unknown_user(self, provider) -> None:
        result = provider.authenticate(AuthCredentials(email="nobody@example.com", code="123"))
        assert not result.success
        assert "not found" in result.error

    def test_validate_token(self, provider) -> None:
        auth = provider.authenticate(AuthCredentials(email="jane@example.com", code="123456"))
        validation = provider.validate_token(auth.token)
        assert validation.valid
        assert validation.identity.user_id == "user-jane"

    def test_validate_invalid_token(self, provider) -> None:
        assert not provider.validate_token("bad-token").valid

    def test_expired_token(self, provider) -> None:
        token = provider.issue_token(Identity(user_id="u", email="u@example.com"))
        provider._tokens[token]["expires_at"] = datetime.now(timezone.utc) - timedelta(seconds=1)
        assert not provider.validate_token(token).valid
        assert token not in provider._tokens

    def test_revoke_token(self, provider) -> None:
        auth = provider.authenticate(AuthCredentials(email="jane@example.com", code="123456"))
        assert provider.revoke_token(auth.token)
        assert not provider.validate_token(auth.token).valid
        assert not provider.revoke_token(auth.token)


def _app(provider: MockAuthProvider) -> FastAPI:
    app = FastAPI()
    app.state.auth_provider = provider
    app.add_middleware(AuthMiddleware)

    @app.get("/whoami")
    async def whoami(identity: Identity = require_identity()) -> dict:
        return {"userId": identity.user_id}

    @app.get("/admin")
    async def admin(identity: Identity = require_role("admin")) -> dict:
        return {"ok": True}

    @app.get("/optional")
    async def optional(request: Request) -> dict:
        identity = request.state.identity
        return {"userId": identity.user_id if identity else None}

    return app


class TestMiddleware:
    def test_no_token_is_anonymous(self, provider) -> None:
        client = TestClient(_app(provider))
        assert client.get("/optional").json() == {"userId": None}
        assert client.get("/whoami").status_code == 401

    def test_bearer_token_resolves_identity(self, provider) -> None:
        token = provider.issue_token(Identity(user_id="u1", email="u1@example.com"))
        client = TestClient(_app(provider))
        resp = client.get("/whoami", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.json() == {"userId": "u1"}

    def test_invalid_token_is_anonymous(self, provider) -> None:
        client = TestClient(_app(provider))
        resp = client.get("/whoami", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401

    def test_role_required(self, provider) -> None:
        user = provider.issue_token(Identity(user_id="u1", email="u1@example.com"))
        admin = provider.issue_token(
            Identity(user_id="a1", email="a1@example.com", roles=["admin"])
        )
        client = TestClient(_app(provider))
        assert client.get("/admin", headers={"Authorization": f"Bearer {user}"}).status_code == 403
        assert client.get("/admin", headers={"Authorization": f"Bearer {admin}"}).status_code == 200
