"""
Ownership checks shared by every service.

Programs, documents and links belong to exactly one user; nothing is shared.
Lookups by id answer in a fixed order: a missing row is NotFound, a row owned
by someone else is Forbidden, and only the owner is allowed through.
"""

import enum
from typing import TypeVar

from gradtracker.errors import ForbiddenError, NotFoundError

T = TypeVar("T")


class Access(enum.Enum):
    ALLOW = "allow"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


def decide(owner_id: int | None, caller_id: int, exists: bool = True) -> Access:
    if not exists or owner_id is None:
        return Access.NOT_FOUND
    if owner_id != caller_id:
        return Access.FORBIDDEN
    return Access.ALLOW


def authorize(resource: T | None, caller_id: int, label: str, resource_id=None, action: str = "access") -> T:
    """Return ``resource`` if ``caller_id`` owns it, else raise NotFound/Forbidden."""
    access = decide(getattr(resource, "user_id", None), caller_id, exists=resource is not None)
    if access is Access.NOT_FOUND:
        raise NotFoundError(label, resource_id)
    if access is Access.FORBIDDEN:
        raise ForbiddenError(f"not authorized to {action} this {label.lower()}")
    return resource


def require_self(target_user_id: int, caller_id: int, action: str) -> None:
    """Per-user collection routes: the path user must be the caller."""
    if decide(target_user_id, caller_id) is not Access.ALLOW:
        raise ForbiddenError(f"not authorized to {action} for this user")
