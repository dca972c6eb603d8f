"""
Authorization rules.

Roles form an ordered priority list rather than a bitmask: a viewer may hold
several role rows and the effective role is the highest-priority one present.
Everything here is pure so it can be reused by routes, services and tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Iterable

from core import errors


class Role(StrEnum):
    ADMIN = "admin"
    AUTHOR = "author"
    READER = "reader"


# Highest priority first.
ROLE_PRIORITY: tuple[Role, ...] = (Role.ADMIN, Role.AUTHOR, Role.READER)

AUTHORING_ROLES = frozenset({Role.ADMIN, Role.AUTHOR})


@dataclass(frozen=True)
class Viewer:
    user_id: str | None
    role: Role | None

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None


ANONYMOUS = Viewer(user_id=None, role=None)


def effective_role(assigned: Iterable[str], *, authenticated: bool = True) -> Role | None:
    """
    Reduce a viewer's role rows to one role.

    Unknown values are ignored. An authenticated user with no rows is a
    reader; an unauthenticated viewer has no role at all.
    """
    if not authenticated:
        return None
    present = {value for value in assigned}
    for role in ROLE_PRIORITY:
        if role.value in present:
            return role
    return Role.READER


def can_edit(viewer: Viewer, post_author_id: str | None) -> bool:
    if not viewer.authenticated:
        return False
    if viewer.role == Role.ADMIN:
        return True
    return viewer.role == Role.AUTHOR and post_author_id is not None and str(post_author_id) == viewer.user_id


def can_access_authoring_area(viewer: Viewer) -> bool:
    return viewer.authenticated and viewer.role in AUTHORING_ROLES


def can_access_settings(viewer: Viewer) -> bool:
    return viewer.authenticated and viewer.role == Role.ADMIN


def require_authoring_area(viewer: Viewer) -> None:
    if not viewer.authenticated:
        raise errors.AuthorizationError("You must be signed in.")
    if not can_access_authoring_area(viewer):
        raise errors.AuthorizationError("Only authors and admins can write posts.")


def require_edit(viewer: Viewer, post_author_id: str | None) -> None:
    if not can_edit(viewer, post_author_id):
        raise errors.AuthorizationError("You do not have permission to edit this post.")


def require_settings(viewer: Viewer) -> None:
    if not can_access_settings(viewer):
        raise errors.AuthorizationError("Only admins can change site settings.")
