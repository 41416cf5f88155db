# Overview: PIN login and user management for shop operators.

"""
Authentication Service

Operators log in with their user id and a short numeric PIN. PINs are
hashed with bcrypt; only the hash is kept in the state document. The
logged-in user lives in the session part of the store and is never
persisted.
"""

from __future__ import annotations

import bcrypt

from boutique.models import ShopState, User, UserRole
from boutique.models.statuses import parse_enum
from boutique.services.identifier_service import generate_unique_id
from boutique.store.actions import LoggedIn, LoggedOut, UserAdded, UserDeleted, UserUpdated
from boutique.validation import ValidationError, as_str

# bcrypt cost factor; tests lower it to keep hashing fast.
PIN_HASH_ROUNDS = 12

MIN_PIN_LENGTH = 4
MAX_PIN_LENGTH = 8


class AuthError(ValidationError):
    """Raised for user management errors."""
    pass


def validate_pin(pin: str) -> str:
    pin = as_str(pin)
    if not pin.isdigit() or not MIN_PIN_LENGTH <= len(pin) <= MAX_PIN_LENGTH:
        raise AuthError(f"PIN must be {MIN_PIN_LENGTH} to {MAX_PIN_LENGTH} digits")
    return pin


def hash_pin(pin: str) -> str:
    validate_pin(pin)
    salt = bcrypt.gensalt(rounds=PIN_HASH_ROUNDS)
    return bcrypt.hashpw(pin.encode("utf-8"), salt).decode("utf-8")


def verify_pin(pin: str, pin_hash: str) -> bool:
    if not pin or not pin_hash:
        return False
    try:
        return bcrypt.checkpw(str(pin).encode("utf-8"), pin_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the document
        return False


def login(state: ShopState, user_id: str, pin: str) -> LoggedIn | None:
    """Return the login action when the PIN matches, None otherwise."""
    user = state.user(user_id)
    if user is None or not verify_pin(pin, user.pin_hash):
        return None
    return LoggedIn(user=user)


def logout(state: ShopState) -> LoggedOut:
    return LoggedOut()


def _admin_count(state: ShopState, excluding: str | None = None) -> int:
    return sum(1 for u in state.users if u.role == UserRole.ADMIN and u.id != excluding)


def add_user(state: ShopState, name: str, role, pin: str) -> UserAdded:
    name = as_str(name)
    if not name:
        raise AuthError("User name is required")
    user = User(
        id=generate_unique_id("user"),
        name=name,
        role=parse_enum(UserRole, role, "role"),
        pin_hash=hash_pin(pin),
    )
    return UserAdded(user=user)


def update_user(state: ShopState, user_id: str, name: str | None = None, role=None,
                pin: str | None = None) -> UserUpdated | None:
    """Change name, role and/or PIN. A blank PIN keeps the current one."""
    user = state.user(user_id)
    if user is None:
        return None
    new_name = as_str(name) if name is not None else user.name
    if not new_name:
        raise AuthError("User name is required")
    new_role = parse_enum(UserRole, role, "role") if role is not None else user.role
    if user.role == UserRole.ADMIN and new_role != UserRole.ADMIN and _admin_count(state, excluding=user.id) == 0:
        raise AuthError("The shop needs at least one Admin")
    return UserUpdated(user=User(
        id=user.id,
        name=new_name,
        role=new_role,
        pin_hash=hash_pin(pin) if pin else user.pin_hash,
    ))


def delete_user(state: ShopState, user_id: str) -> UserDeleted | None:
    user = state.user(user_id)
    if user is None:
        return None
    if state.current_user is not None and state.current_user.id == user.id:
        raise AuthError("You cannot delete the user you are logged in as")
    if user.role == UserRole.ADMIN and _admin_count(state, excluding=user.id) == 0:
        raise AuthError("The shop needs at least one Admin")
    return UserDeleted(user_id=user.id)
