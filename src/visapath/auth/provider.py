"""Authentication provider Protocol and mock implementation."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml

from visapath.auth.models import AuthCredentials, AuthResult, Identity, TokenValidation

logger = logging.getLogger(__name__)

_DEFAULT_FIXTURES_PATH = Path(__file__).resolve().parents[1] / "config" / "auth_fixtures.yml"


@runtime_checkable
class AuthProvider(Protocol):
    """Protocol for authentication providers."""

    def authenticate(self, credentials: AuthCredentials) -> AuthResult: ...

    def validate_token(self, token: str) -> TokenValidation: ...

    def revoke_token(self, token: str) -> bool: ...


class MockAuthProvider:
    """Mock auth provider with fixture users from YAML.

    Users log in with their email and a one-time code. A fixture user without
    a ``code`` accepts any non-empty code.
    """

    def __init__(
        self,
        fixtures_path: str | Path | None = None,
        token_expiry_minutes: int = 60,
    ) -> None:
        self._users: dict[str, dict[str, Any]] = {}
        self._tokens: dict[str, dict[str, Any]] = {}
        self._token_expiry = timedelta(minutes=token_expiry_minutes)
        self._load_fixtures(Path(fixtures_path) if fixtures_path else _DEFAULT_FIXTURES_PATH)

    def _load_fixtures(self, path: Path) -> None:
        if not path.exists():
            return
        with open(path) as fh:
            data = yaml.safe_load(fh) or {}
        for user in data.get("users", []):
            self._users[user["email"].lower()] = user

    @property
    def users(self) -> dict[str, dict[str, Any]]:
        return dict(self._users)

    def issue_token(self, identity: Identity) -> str:
        """Mint a token for ``identity`` without a credential check."""
        token = str(uuid.uuid4())
        self._tokens[token] = {
            "identity": identity,
            "expires_at": datetime.now(timezone.utc) + self._token_expiry,
        }
        return token

    def authenticate(self, credentials: AuthCredentials) -> AuthResult:
        user = self._users.get(credentials.email.strip().lower())
        if user is None:
            return AuthResult(success=False, error="User not found")

        if not credentials.code or not credentials.code.strip():
            return AuthResult(success=False, error="Verification code is required")

        expected_code = user.get("code", "")
        if expected_code and credentials.code != str(expected_code):
            logger.info("Rejected login for %s: invalid code", credentials.email)
            return AuthResult(success=False, error="Invalid verification code")

        identity = Identity(
            user_id=str(user.get("user_id", user["email"])),
            email=user["email"].lower(),
            display_name=user.get("display_name", user["email"]),
            roles=list(user.get("roles", [])),
        )
        token = self.issue_token(identity)
        return AuthResult(
            success=True,
            token=token,
            identity=identity,
            expires_at=self._tokens[token]["expires_at"],
        )

    def validate_token(self, token: str) -> TokenValidation:
        info = self._tokens.get(token)
        if info is None:
            return TokenValidation(valid=False)

        if datetime.now(timezone.utc) > info["expires_at"]:
            del self._tokens[token]
            return TokenValidation(valid=False)

        return TokenValidation(
            valid=True,
            identity=info["identity"],
            expires_at=info["expires_at"],
        )

    def revoke_token(self, token: str) -> bool:
        if token in self._tokens:
            del self._tokens[token]
            return True
        return False
