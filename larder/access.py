"""Tri-state authorization for family-shared resources.

A shared resource (shopping list, meal plan) is owned by one user and may
be overlaid with a family: every member of that family gets the same
access as the owner. Callers need to tell "no such resource" apart from
"exists, but not yours", so the outcome is one of three states rather
than a boolean.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .errors import AuthorizationError, NotFoundError

logger = logging.getLogger(__name__)


class Access(Enum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    AUTHORIZED = "authorized"


@dataclass(frozen=True)
class AccessRow:
    """The facts needed to decide access, read together in one query.

    ``caller_is_member`` is whether the caller belongs to ``family_id``
    at the moment of the read.
    """

    resource_id: str
    owner_id: str
    family_id: str | None
    caller_is_member: bool


def resolve_access(row: AccessRow | None, caller_id: str) -> Access:
    """Decide access from a single consistent read.

    ``row`` is None only when the resource itself does not exist.
    """
    if row is None:
        return Access.NOT_FOUND
    if caller_id == row.owner_id:
        return Access.AUTHORIZED
    if row.family_id is not None and row.caller_is_member:
        return Access.AUTHORIZED
    return Access.FORBIDDEN


def require_access(access: Access, what: str, resource_id: str, caller_id: str) -> None:
    """Raise the error matching a non-authorized outcome."""
    if access is Access.NOT_FOUND:
        raise NotFoundError(f"{what} {resource_id} not found")
    if access is Access.FORBIDDEN:
        logger.warning("%s denied access to %s %s", caller_id, what, resource_id)
        raise AuthorizationError(f"no access to {what} {resource_id}")


def authorize(row: AccessRow | None, caller_id: str, what: str, resource_id: str) -> AccessRow:
    """Resolve access from ``row`` and return it once the caller is authorized."""
    require_access(resolve_access(row, caller_id), what, resource_id, caller_id)
    if row is None:
        raise NotFoundError(f"{what} {resource_id} not found")
    return row
