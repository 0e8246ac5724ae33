# Overview: Issues and verifies signed session tokens (RS512 JWT) with live revocation checks.

"""
Session Token Service

WHY: Tokens are stateless and signed with the private key; verification only
needs the public key. Revocation is enforced by comparing the token's
tokenVersion claim with the user's live counter on every verification, so no
token storage or blacklist is needed.

Outcomes of verify_token():
- MalformedTokenError: bad signature, garbage input, missing/mistyped claims
- IdentityNotFoundError: the user in the token no longer exists
- False: expired, issued for another login name, user blocked, or revoked
- True: everything matches
"""

from __future__ import annotations

import base64
import binascii
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

import jwt
from cryptography.hazmat.primitives import serialization
from flask import current_app

from ..models import User
from ..permissions import permissions_for
from . import credential_service


class TokenError(Exception):
    """Base class for token problems that mean 'treat the caller as anonymous'."""


class MalformedTokenError(TokenError):
    """Token is unparsable, mis-signed or lacks required claims."""


class IdentityNotFoundError(TokenError):
    """Token names a user that has been deleted since issuance."""


class TokenConfigurationError(RuntimeError):
    """Signing or verifying key material is missing or unreadable."""


REQUIRED_CLAIMS = ["sub", "iat", "exp"]


def _key_bytes(material: str) -> tuple[bytes, bool]:
    """Return (bytes, is_pem) for PEM text or base64-encoded DER."""
    text = material.strip()
    if text.startswith("-----BEGIN"):
        return text.encode("utf-8"), True
    try:
        return base64.b64decode(text, validate=True), False
    except (binascii.Error, ValueError) as exc:
        raise TokenConfigurationError("Key material is neither PEM nor base64 DER") from exc


@lru_cache(maxsize=4)
def _load_private_key(material: str):
    data, is_pem = _key_bytes(material)
    try:
        if is_pem:
            return serialization.load_pem_private_key(data, password=None)
        return serialization.load_der_private_key(data, password=None)
    except (ValueError, TypeError) as exc:
        raise TokenConfigurationError("Failed to load private key") from exc


@lru_cache(maxsize=4)
def _load_public_key(material: str):
    data, is_pem = _key_bytes(material)
    try:
        if is_pem:
            return serialization.load_pem_public_key(data)
        return serialization.load_der_public_key(data)
    except (ValueError, TypeError) as exc:
        raise TokenConfigurationError("Failed to load public key") from exc


def _signing_key():
    material = current_app.config.get("JWT_PRIVATE_KEY")
    if not material:
        raise TokenConfigurationError("JWT_PRIVATE_KEY is not configured")
    return _load_private_key(material)


def _verifying_key():
    material = current_app.config.get("JWT_PUBLIC_KEY")
    if not material:
        raise TokenConfigurationError("JWT_PUBLIC_KEY is not configured")
    return _load_public_key(material)


def issue_token(user: User) -> str:
    """
    Issue a signed session token for a user.

    Claims: sub (login name), userId, name, surname, role, permissions,
    tokenVersion (snapshot of the live counter), iat, exp.
    """
    now = datetime.now(timezone.utc)
    claims = {
        "sub": user.username,
        "userId": user.id,
        "name": user.name,
        "surname": user.surname,
        "role": user.role,
        "permissions": sorted(permissions_for(user.role)),
        "tokenVersion": user.token_version,
        "iat": now,
        "exp": now + current_app.config["JWT_LIFETIME"],
    }
    return jwt.encode(
        claims,
        _signing_key(),
        algorithm=current_app.config["JWT_ALGORITHM"],
    )


def decode_claims(token: str) -> dict[str, Any]:
    """
    Check the signature and return all claims.

    Expiry is not enforced here; verify_token() reports expired tokens as
    invalid rather than malformed.
    """
    if not isinstance(token, str) or not token:
        raise MalformedTokenError("Token is empty")
    try:
        return jwt.decode(
            token,
            _verifying_key(),
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            options={"verify_exp": False, "require": REQUIRED_CLAIMS},
        )
    except jwt.PyJWTError as exc:
        raise MalformedTokenError(f"Invalid token: {exc}") from exc


def extract_claim(token: str, name: str) -> Any:
    return decode_claims(token).get(name)


def extract_subject(token: str) -> str:
    """Login name the token was issued for."""
    subject = extract_claim(token, "sub")
    if not isinstance(subject, str) or not subject:
        raise MalformedTokenError("Token has no subject")
    return subject


def describe_token(token: str) -> dict[str, Any]:
    """Decoded claims for diagnostics (CLI, debugging)."""
    claims = decode_claims(token)
    return {
        "subject": claims.get("sub"),
        "user_id": claims.get("userId"),
        "issued_at": datetime.fromtimestamp(claims["iat"], tz=timezone.utc).isoformat(),
        "expires_at": datetime.fromtimestamp(claims["exp"], tz=timezone.utc).isoformat(),
        "claims": claims,
    }


def _int_claim(claims: dict, name: str) -> int:
    value = claims.get(name)
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedTokenError(f"Token claim {name} missing or not an integer")
    return value


def verify_token(token: str, expected_username: str) -> bool:
    """
    Fail-closed verification against the live credential store.

    Never cached: the user row is re-read on every call.
    """
    claims = decode_claims(token)

    expires_at = claims.get("exp")
    if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
        raise MalformedTokenError("Token claim exp is not numeric")
    if expires_at <= datetime.now(timezone.utc).timestamp():
        return False

    if claims.get("sub") != expected_username:
        return False

    user_id = _int_claim(claims, "userId")
    token_version = _int_claim(claims, "tokenVersion")

    user = credential_service.get_user(user_id, fresh=True)
    if user is None:
        raise IdentityNotFoundError(f"User {user_id} not found")

    if user.blocked:
        return False

    return user.token_version == token_version
