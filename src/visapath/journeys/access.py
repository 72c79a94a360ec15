"""Ownership and share-grant checks for journey operations."""

from __future__ import annotations

from enum import IntEnum

from visapath.auth.models import Identity
from visapath.core.errors import ForbiddenError
from visapath.core.types import SharePermission
from visapath.journeys.models import Journey


class AccessLevel(IntEnum):
    """Access needed by an operation, ordered weakest to strongest."""

    READ = 1
    COMMENT = 2
    EDIT = 3
    OWNER = 4


_GRANT_LEVEL: dict[SharePermission, AccessLevel] = {
    SharePermission.VIEW: AccessLevel.READ,
    SharePermission.COMMENT: AccessLevel.COMMENT,
    SharePermission.EDIT: AccessLevel.EDIT,
}


def access_level(journey: Journey, identity: Identity) -> AccessLevel | None:
    """The caller's effective level on ``journey``, or None for no access."""
    if journey.user_id == identity.user_id:
        return AccessLevel.OWNER
    if not identity.email:
        return None
    grant = journey.grant_for(identity.email)
    if grant is None:
        return None
    return _GRANT_LEVEL[grant.permission]


def check_access(journey: Journey, identity: Identity, required: AccessLevel) -> AccessLevel:
    """Raise ForbiddenError unless the caller holds at least ``required``."""
    level = access_level(journey, identity)
    if level is None or level < required:
        raise ForbiddenError("Access denied to this journey")
    return level
