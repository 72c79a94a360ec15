"""Caller identity: mock token provider, middleware and FastAPI dependencies."""

from visapath.auth.models import Identity
from visapath.auth.provider import AuthProvider, MockAuthProvider

__all__ = [
    "AuthProvider",
    "Identity",
    "MockAuthProvider",
]
