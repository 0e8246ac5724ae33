# Overview: Per-request authentication gateway; turns a bearer token into flask.g principal context.

"""
Authentication Gateway

Runs once per request (before_request). Never rejects a request itself:
anonymous callers must still reach public endpoints, so every failure leaves
the request unauthenticated and authorization decorators decide later.

Sets on flask.g:
- g.current_user: the authenticated User, or None
- g.permissions: permission atoms of the user's role (empty when anonymous)
- g.authorities: atoms plus the role authority name (ROLE_<ROLE>)
"""

from __future__ import annotations

from flask import current_app, g, request

from .models import User
from .services import credential_service, permission_service, token_service
from .services.token_service import TokenError


BEARER_PREFIX = "Bearer "
# WSGI environ marker: principal already bound while handling this request
PRINCIPAL_ENVIRON_KEY = "ticketdesk.principal_id"


def bearer_token_from_request() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        return None
    token = auth_header[len(BEARER_PREFIX):].strip()
    return token or None


def bind_principal(user: User) -> None:
    g.current_user = user
    request.environ[PRINCIPAL_ENVIRON_KEY] = user.id
    g.permissions = permission_service.get_user_permissions(user)
    g.authorities = permission_service.get_user_authorities(user)


def clear_principal() -> None:
    g.current_user = None
    g.permissions = frozenset()
    g.authorities = frozenset()


def authenticate_request() -> None:
    # Re-entrant dispatch: a principal bound earlier for this request wins.
    if g.get("current_user") is not None and request.environ.get(PRINCIPAL_ENVIRON_KEY) == g.current_user.id:
        return
    clear_principal()

    token = bearer_token_from_request()
    if token is None:
        return

    try:
        username = token_service.extract_subject(token)
    except TokenError as exc:
        current_app.logger.warning("Ignoring malformed bearer token on %s: %s", request.path, exc)
        return

    user = credential_service.find_by_username(username)
    if user is None:
        current_app.logger.info("Bearer token subject has no account on %s", request.path)
        return

    try:
        valid = token_service.verify_token(token, user.username)
    except TokenError as exc:
        current_app.logger.warning("Rejected bearer token on %s: %s", request.path, exc)
        return

    if not valid:
        current_app.logger.info("Session no longer valid for user id=%s", user.id)
        return

    bind_principal(user)


def init_app(app) -> None:
    app.before_request(authenticate_request)
