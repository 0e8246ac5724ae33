# Overview: Credential store; owns password hashes, token-version counters and block status.

"""
Credential Store

WHY: Revocation state lives here, outside the session token. A single
token_version bump invalidates every outstanding token of a user without a
blacklist.

SECURITY NOTES:
- Passwords and reset codes hashed with bcrypt (cost from BCRYPT_ROUNDS)
- Block and revoke are one UPDATE statement, never two
- Lookups used by token verification bypass the session identity map
"""

from __future__ import annotations

import bcrypt
import sqlalchemy as sa
from flask import current_app

from ..extensions import db
from ..models import User
from ..permissions import is_valid_role, ALL_ROLES
from ..validation import ConflictError, ValidationError


PASSWORD_MIN_LENGTH = 6
# bcrypt refuses secrets longer than this (UTF-8 bytes)
PASSWORD_MAX_BYTES = 72


class PasswordValidationError(ValidationError):
    """Raised when a password doesn't meet length requirements."""


def validate_password(password) -> None:
    """
    Validate password length (at least 6 characters, at most 72 UTF-8 bytes).

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or not password:
        raise PasswordValidationError("Password is required")
    if len(password) < PASSWORD_MIN_LENGTH:
        raise PasswordValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise PasswordValidationError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes long")


def hash_secret(secret: str) -> str:
    """One-way bcrypt hash for passwords and reset codes."""
    salt = bcrypt.gensalt(rounds=current_app.config["BCRYPT_ROUNDS"])
    return bcrypt.hashpw(secret.encode("utf-8"), salt).decode("utf-8")


def verify_secret(secret: str, secret_hash: str) -> bool:
    """Timing-safe bcrypt comparison. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(secret.encode("utf-8"), secret_hash.encode("utf-8"))
    except ValueError:
        return False


def hash_password(password: str) -> str:
    """Validate then hash a password."""
    validate_password(password)
    return hash_secret(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not isinstance(password, str):
        return False
    return verify_secret(password, password_hash)


# -- Lookups --

def find_by_username(username: str) -> User | None:
    return db.session.query(User).filter(User.username == username).first()


def find_by_login_or_email(identifier: str) -> User | None:
    """Login name first, then email."""
    if not identifier:
        return None
    user = find_by_username(identifier)
    if user is None:
        user = db.session.query(User).filter(User.email == identifier).first()
    return user


def get_user(user_id: int, *, fresh: bool = False) -> User | None:
    """
    Load a user by id.

    fresh=True re-reads the row even if the session already holds the
    instance, so token_version and blocked reflect the live values.
    """
    return db.session.get(User, user_id, populate_existing=fresh)


# -- Mutations --

def increment_token_version(user_id: int) -> int:
    """
    Invalidate every outstanding session token of a user.

    Returns the number of rows updated (0 when the user does not exist).
    """
    stmt = (
        sa.update(User)
        .where(User.id == user_id)
        .values(token_version=User.token_version + 1)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    db.session.commit()
    return result.rowcount


def set_blocked(user_id: int, blocked: bool) -> int:
    """
    Block or unblock a user and revoke their sessions in the same UPDATE.

    Returns the number of rows updated (0 when the user does not exist).
    """
    stmt = (
        sa.update(User)
        .where(User.id == user_id)
        .values(blocked=blocked, token_version=User.token_version + 1)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    db.session.commit()
    return result.rowcount


def bump_token_version(user: User) -> None:
    """Schedule an atomic token_version + 1 on the user's next flush."""
    user.token_version = User.token_version + 1


def save(user: User) -> User:
    db.session.add(user)
    db.session.commit()
    return user


def ensure_unique(username: str, email: str, *, exclude_user_id: int | None = None) -> None:
    query = db.session.query(User).filter(
        db.or_(User.username == username, User.email == email)
    )
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    if query.first() is not None:
        raise ConflictError("User with same username or email already exists")


def create_user(
    *,
    username: str,
    email: str,
    name: str,
    surname: str,
    password: str,
    role: str,
) -> User:
    """
    Create a user with a bcrypt password hash.

    Raises:
        ValidationError: unknown role
        PasswordValidationError: password too short or too long
        ConflictError: username or email already taken
    """
    if not is_valid_role(role):
        raise ValidationError(f"role must be one of: {', '.join(ALL_ROLES)}")
    ensure_unique(username, email)

    user = User(
        username=username,
        email=email,
        name=name,
        surname=surname,
        password_hash=hash_password(password),
        role=role,
        token_version=0,
        blocked=False,
    )
    return save(user)
