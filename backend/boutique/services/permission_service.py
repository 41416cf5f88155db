# Overview: Role-based permission checks for shop operators.

from __future__ import annotations

from boutique.models import User
from boutique.permissions import ALL_PERMISSIONS, ROLE_PERMISSIONS


class PermissionDeniedError(Exception):
    """Raised when the logged-in user lacks a permission."""
    pass


def has_permission(user: User | None, permission: str) -> bool:
    if permission not in ALL_PERMISSIONS:
        raise ValueError(f"Unknown permission: {permission}")
    if user is None:
        return False
    return permission in ROLE_PERMISSIONS.get(user.role, frozenset())


def get_user_permissions(user: User) -> dict[str, bool]:
    granted = ROLE_PERMISSIONS.get(user.role, frozenset())
    return {permission: permission in granted for permission in ALL_PERMISSIONS}


def require_permission(user: User | None, permission: str) -> None:
    """
    Enforce a permission for an interactive session.

    A store with no logged-in user is driven by the system itself (CLI,
    restore, tests) and is not restricted.
    """
    if user is None:
        return
    if not has_permission(user, permission):
        raise PermissionDeniedError(f"{user.name} ({user.role.value}) lacks permission {permission}")
