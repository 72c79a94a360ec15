"""Translation of domain errors into HTTP errors."""

from __future__ import annotations

from fastapi import HTTPException

from visapath.core.errors import VisaPathError


def http_error(exc: VisaPathError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)
