"""Authentication API router: login with email and code, session introspection."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request

from visapath.auth.models import AuthCredentials, Identity
from visapath.auth.middleware import require_identity

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _get_provider(request: Request):
    provider = getattr(request.app.state, "auth_provider", None)
    if provider is None:
        raise HTTPException(status_code=503, detail="Auth provider not available")
    return provider


@router.post("/login")
async def api_login(body: AuthCredentials, request: Request) -> dict[str, Any]:
    provider = _get_provider(request)
    result = provider.authenticate(body)
    if not result.success:
        raise HTTPException(status_code=401, detail=result.error or "Authentication failed")
    return {
        "token": result.token,
        "expiresAt": result.expires_at.isoformat() if result.expires_at else None,
        "user": _user_payload(result.identity),
    }


@router.get("/me")
async def api_me(identity: Identity = require_identity()) -> dict[str, Any]:
    return _user_payload(identity)


@router.post("/logout")
async def api_logout(request: Request, identity: Identity = require_identity()) -> dict[str, Any]:
    provider = _get_provider(request)
    revoked = provider.revoke_token(request.state.auth_token)
    return {"revoked": revoked}


def _user_payload(identity: Identity) -> dict[str, Any]:
    return {
        "userId": identity.user_id,
        "email": identity.email,
        "displayName": identity.display_name,
        "roles": list(identity.roles),
    }
