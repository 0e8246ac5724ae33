# Overview: Request payload validation helpers and the 4xx error classes shared by routes and services.

from __future__ import annotations

from typing import Any, Iterable


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """404-level missing resource."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate email)."""


def require_payload(data: Any) -> dict:
    if not isinstance(data, dict):
        raise ValidationError("JSON object body required")
    return data


def require_string(data: dict, key: str, *, max_length: int | None = None, min_length: int = 1) -> str:
    """Required, stripped, non-blank string field."""
    value = data.get(key)
    if not isinstance(value, str):
        raise ValidationError(f"{key} is required")
    value = value.strip()
    if len(value) < min_length:
        if min_length <= 1:
            raise ValidationError(f"{key} is required")
        raise ValidationError(f"{key} must be at least {min_length} characters")
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{key} must be at most {max_length} characters")
    return value


def optional_string(data: dict, key: str, *, max_length: int | None = None) -> str | None:
    """Optional string field; None and missing both map to None."""
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{key} must be at most {max_length} characters")
    return value


def require_choice(data: dict, key: str, choices: Iterable[str]) -> str:
    value = data.get(key)
    allowed = tuple(choices)
    if value not in allowed:
        raise ValidationError(f"{key} must be one of: {', '.join(allowed)}")
    return value


def optional_int(data: dict, key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{key} must be an integer")
    return value
