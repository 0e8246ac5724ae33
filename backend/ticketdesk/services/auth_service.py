# Overview: Service-layer operations for login, registration and logout; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every action must be attributable. Login exchanges credentials for a
signed session token; the token is the only credential used afterwards.

SECURITY NOTES:
- Unknown login, blocked account and wrong password all raise the same
  AuthenticationError("Invalid credentials")
- Unknown logins still pay for one bcrypt comparison to keep timing uniform
- Logout revokes every session of the user (token_version bump)
"""

from __future__ import annotations

from flask import current_app

from ..models import User
from ..time_utils import utcnow
from . import credential_service, token_service


INVALID_CREDENTIALS = "Invalid credentials"

_dummy_hashes: dict[int, str] = {}


class AuthenticationError(Exception):
    """Uniform login failure; the reason is never exposed."""

    def __init__(self, message: str = INVALID_CREDENTIALS):
        super().__init__(message)


def _burn_password_check(password) -> None:
    rounds = current_app.config["BCRYPT_ROUNDS"]
    dummy = _dummy_hashes.get(rounds)
    if dummy is None:
        dummy = credential_service.hash_secret("not-a-real-password")
        _dummy_hashes[rounds] = dummy
    credential_service.verify_secret(password if isinstance(password, str) else "", dummy)


def authenticate(identifier: str, password: str) -> User:
    """
    Resolve credentials to a user (login name or email).

    Updates last_login_at on success.
    """
    user = credential_service.find_by_login_or_email(identifier)

    if user is None:
        _burn_password_check(password)
        raise AuthenticationError()

    if user.blocked:
        current_app.logger.info("Login refused for blocked user id=%s", user.id)
        raise AuthenticationError()

    if not credential_service.verify_password(password, user.password_hash):
        raise AuthenticationError()

    user.last_login_at = utcnow()
    credential_service.save(user)
    return user


def login(identifier: str, password: str) -> str:
    """Authenticate and issue a session token."""
    user = authenticate(identifier, password)
    return token_service.issue_token(user)


def register(*, email: str, name: str, surname: str, password: str) -> tuple[User, str]:
    """
    Self-registration. The login name is the email address; the role comes
    from REGISTRATION_ROLE.

    Raises ConflictError on duplicate email, PasswordValidationError on a
    rejected password.
    """
    user = credential_service.create_user(
        username=email,
        email=email,
        name=name,
        surname=surname,
        password=password,
        role=current_app.config["REGISTRATION_ROLE"],
    )
    current_app.logger.info("Registered user id=%s role=%s", user.id, user.role)
    return user, token_service.issue_token(user)


def logout_everywhere(user: User) -> None:
    """Revoke every session token issued to the user so far."""
    credential_service.increment_token_version(user.id)
    current_app.logger.info("Revoked all sessions for user id=%s", user.id)
