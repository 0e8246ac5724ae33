# Overview: Service-layer operations for user administration (CRUD, block, unblock).

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import PasswordResetToken, User
from ..permissions import ALL_ROLES, is_valid_role
from ..time_utils import utcnow
from ..validation import NotFoundError, ValidationError
from . import credential_service
from .concurrency import unit_of_work


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.username).all()


def get_user(user_id: int) -> User:
    user = credential_service.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found.")
    return user


def create_user(*, email: str, name: str, surname: str, password: str, role: str) -> User:
    """Administrative creation; the login name is the email address."""
    user = credential_service.create_user(
        username=email,
        email=email,
        name=name,
        surname=surname,
        password=password,
        role=role,
    )
    current_app.logger.info("Created user id=%s role=%s", user.id, user.role)
    return user


def update_user(
    user_id: int,
    *,
    email: str,
    name: str,
    surname: str,
    role: str | None = None,
    password: str | None = None,
) -> User:
    """
    Update profile fields; username follows email.

    A non-blank password replaces the current one and, like any password
    change, revokes sessions and pending reset tokens.
    """
    user = get_user(user_id)
    if role is not None and not is_valid_role(role):
        raise ValidationError(f"role must be one of: {', '.join(ALL_ROLES)}")
    credential_service.ensure_unique(email, email, exclude_user_id=user.id)

    new_hash = None
    if password is not None and password.strip():
        new_hash = credential_service.hash_password(password)

    with unit_of_work() as session:
        user.email = email
        user.username = email
        user.name = name
        user.surname = surname
        if role is not None:
            user.role = role
        if new_hash is not None:
            user.password_hash = new_hash
            user.password_changed_at = utcnow()
            credential_service.bump_token_version(user)
            session.query(PasswordResetToken).filter(
                PasswordResetToken.user_id == user.id
            ).delete(synchronize_session=False)
    return user


def delete_user(user_id: int) -> None:
    """History rows keep the deleted user's id as plain data."""
    user = get_user(user_id)
    with unit_of_work() as session:
        session.delete(user)
    current_app.logger.info("Deleted user id=%s", user_id)


def block_user(user_id: int) -> None:
    if credential_service.set_blocked(user_id, True) == 0:
        raise NotFoundError("User not found")
    current_app.logger.info("Blocked user id=%s", user_id)


def unblock_user(user_id: int) -> None:
    if credential_service.set_blocked(user_id, False) == 0:
        raise NotFoundError("User not found")
    current_app.logger.info("Unblocked user id=%s", user_id)
