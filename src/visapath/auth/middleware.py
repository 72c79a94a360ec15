"""Authentication middleware and dependencies."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from visapath.auth.models import Identity


class AuthMiddleware(BaseHTTPMiddleware):
    """Resolves a Bearer token into ``request.state.identity`` (None if absent)."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request.state.identity = None
        request.state.auth_token = None

        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:]
            provider = getattr(request.app.state, "auth_provider", None)
            if provider is not None:
                validation = provider.validate_token(token)
                if validation.valid:
                    request.state.identity = validation.identity
                    request.state.auth_token = token

        return await call_next(request)


def current_identity(request: Request) -> Identity:
    identity = getattr(request.state, "identity", None)
    if identity is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return identity


def require_identity():
    """FastAPI dependency that requires an authenticated caller."""
    return Depends(current_identity)


def require_role(role: str):
    """FastAPI dependency that requires an authenticated caller holding ``role``."""

    def dependency(request: Request) -> Identity:
        identity = current_identity(request)
        if not identity.has_role(role):
            raise HTTPException(status_code=403, detail=f"Requires {role!r} role")
        return identity

    return Depends(dependency)
