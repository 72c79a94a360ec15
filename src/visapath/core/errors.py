"""Error taxonomy shared by the catalog, journey engine and web layer.

Every error here is operational: it carries a stable, caller-safe message and
the HTTP status the web layer should answer with.
"""

from __future__ import annotations


class VisaPathError(Exception):
    """Base class for recoverable, caller-facing errors."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(VisaPathError):
    """Malformed input: bad date format, empty note, invalid email."""

    status_code = 400


class UnauthorizedError(VisaPathError):
    """No valid identity was presented."""

    status_code = 401


class ForbiddenError(VisaPathError):
    """Caller lacks ownership or a sufficient share grant."""

    status_code = 403


class NotFoundError(VisaPathError):
    """A journey, visa type or country id does not resolve."""

    status_code = 404


class ConflictError(VisaPathError):
    """Stale write (version mismatch) or a duplicate active journey."""

    status_code = 409


class StaleWriteError(ConflictError):
    """The stored journey changed since it was read; re-read and retry."""


class DuplicateJourneyError(ConflictError):
    """Another active journey already exists for this owner and route."""
