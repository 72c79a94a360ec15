"""Authentication data models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class Identity(BaseModel):
    """The authenticated caller behind a request."""

    user_id: str
    email: str
    display_name: str = ""
    roles: list[str] = Field(default_factory=list)

    def has_role(self, role: str) -> bool:
        return role in self.roles


class AuthCredentials(BaseModel):
    email: str
    code: str


class AuthResult(BaseModel):
    success: bool
    token: str | None = None
    identity: Identity | None = None
    expires_at: datetime | None = None
    error: str | None = None


class TokenValidation(BaseModel):
    valid: bool
    identity: Identity | None = None
    expires_at: datetime | None = None
