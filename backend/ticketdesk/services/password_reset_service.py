# Overview: Service-layer operations for password reset and password change.

"""
Password Reset Service

WHY: Users who forgot their password receive a one-time compound code
"{token_id}.{code}". The token id is a random UUID, the code a random
fixed-length numeric string; only a bcrypt hash of the code is stored.

SECURITY NOTES:
- request_reset() gives the same outward result whether or not the account
  exists (no user enumeration)
- Reset tokens expire after PASSWORD_RESET_TTL and are deleted when found expired
- A wrong code does not consume the token (retry within the expiry window)
- Redeeming, or changing the password any other way, deletes every
  outstanding reset token of the user and revokes all session tokens
"""

from __future__ import annotations

import secrets
import string
import uuid

from flask import current_app

from ..extensions import db
from ..models import PasswordResetToken, User
from ..time_utils import as_utc_naive, utcnow
from . import credential_service
from .concurrency import lock_for_update, unit_of_work
from .credential_service import PasswordValidationError
from ..validation import ValidationError


COMPOUND_SEPARATOR = "."


class InvalidResetTokenError(ValidationError):
    """Unknown, malformed or mismatching reset token."""

    def __init__(self, message: str = "invalid reset token"):
        super().__init__(message)


class ResetTokenExpiredError(Exception):
    """Reset token exists but its expiry has passed (it is deleted on detection)."""

    def __init__(self, message: str = "reset token expired"):
        super().__init__(message)


class PasswordMismatchError(ValidationError):
    """Old password does not match on password change."""

    def __init__(self, message: str = "old password mismatch"):
        super().__init__(message)


def generate_numeric_code(length: int) -> str:
    return "".join(secrets.choice(string.digits) for _ in range(length))


def deliver_reset_code(user: User, compound_code: str) -> None:
    """
    Out-of-band delivery hook.

    Development delivery writes the code to the application log when
    PASSWORD_RESET_LOG_CODES is enabled; otherwise only the fact is logged.
    """
    if current_app.config.get("PASSWORD_RESET_LOG_CODES"):
        current_app.logger.info("DEV reset token for %s -> %s", user.username, compound_code)
    else:
        current_app.logger.info("Password reset code issued for user id=%s", user.id)


def request_reset(identifier: str) -> str | None:
    """
    Create a reset token for the account named by login or email.

    Returns the compound code for in-process callers, or None when no account
    matches. HTTP callers must not expose either outcome.
    """
    user = credential_service.find_by_login_or_email(identifier)
    if user is None:
        current_app.logger.info("Password reset requested for unknown identifier")
        return None

    token_id = str(uuid.uuid4())
    code = generate_numeric_code(current_app.config["PASSWORD_RESET_CODE_LENGTH"])
    now = utcnow()

    reset_token = PasswordResetToken(
        id=token_id,
        user_id=user.id,
        code_hash=credential_service.hash_secret(code),
        expires_at=now + current_app.config["PASSWORD_RESET_TTL"],
        created_at=now,
    )
    with unit_of_work() as session:
        session.add(reset_token)

    compound_code = f"{token_id}{COMPOUND_SEPARATOR}{code}"
    deliver_reset_code(user, compound_code)
    return compound_code


def parse_compound_code(compound_code) -> tuple[str, str]:
    """
    Split "{token_id}.{code}" into its two parts.

    Exactly one separator is accepted; the token id must be a UUID.
    """
    if not isinstance(compound_code, str):
        raise InvalidResetTokenError("invalid reset token format")
    parts = compound_code.strip().split(COMPOUND_SEPARATOR)
    if len(parts) != 2 or not all(parts):
        raise InvalidResetTokenError("invalid reset token format")

    raw_id, code = parts
    try:
        token_id = str(uuid.UUID(raw_id))
    except ValueError as exc:
        raise InvalidResetTokenError("invalid reset token format") from exc
    return token_id, code


def _apply_new_password(user: User, new_password: str) -> None:
    """Set the password, revoke sessions and drop pending resets (no commit)."""
    user.password_hash = credential_service.hash_password(new_password)
    user.password_changed_at = utcnow()
    credential_service.bump_token_version(user)
    db.session.query(PasswordResetToken).filter(
        PasswordResetToken.user_id == user.id
    ).delete(synchronize_session=False)


def redeem(compound_code: str, new_password: str) -> User:
    """
    Reset a password with a compound code.

    Raises:
        InvalidResetTokenError: malformed code, unknown token, wrong code
        ResetTokenExpiredError: token expired (and has now been deleted)
        PasswordValidationError: new password rejected
    """
    token_id, code = parse_compound_code(compound_code)

    # Row lock serializes concurrent redemptions; the loser finds no row.
    reset_token = lock_for_update(
        db.session.query(PasswordResetToken).filter(PasswordResetToken.id == token_id)
    ).first()
    if reset_token is None:
        db.session.rollback()
        raise InvalidResetTokenError()

    if as_utc_naive(reset_token.expires_at) < utcnow():
        with unit_of_work() as session:
            session.delete(reset_token)
        raise ResetTokenExpiredError()

    if not credential_service.verify_secret(code, reset_token.code_hash):
        db.session.rollback()
        raise InvalidResetTokenError("invalid reset code")

    try:
        credential_service.validate_password(new_password)
    except PasswordValidationError:
        db.session.rollback()
        raise

    user = reset_token.user
    with unit_of_work():
        _apply_new_password(user, new_password)

    current_app.logger.info("Password reset completed for user id=%s", user.id)
    return user


def change_password(user: User, old_password: str, new_password: str) -> User:
    """
    Change the password of an authenticated user.

    Invalidates all outstanding reset tokens and session tokens of the user.

    Raises:
        PasswordMismatchError: old password is wrong
        PasswordValidationError: new password rejected
    """
    if not credential_service.verify_password(old_password, user.password_hash):
        raise PasswordMismatchError()
    credential_service.validate_password(new_password)

    with unit_of_work():
        _apply_new_password(user, new_password)

    current_app.logger.info("Password changed for user id=%s", user.id)
    return user


def cleanup_expired_reset_tokens() -> int:
    """
    Delete reset tokens whose expiry has passed.

    Returns count of tokens deleted.
    """
    with unit_of_work() as session:
        deleted = session.query(PasswordResetToken).filter(
            PasswordResetToken.expires_at < utcnow()
        ).delete(synchronize_session=False)
    return deleted
