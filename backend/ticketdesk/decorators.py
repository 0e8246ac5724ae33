# Overview: Request authorization decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app


def _is_authenticated() -> bool:
    return g.get("current_user") is not None


def _deny(required: str):
    current_app.logger.warning(
        "Permission denied for user id=%s on %s %s (requires %s)",
        g.current_user.id, request.method, request.path, required,
    )


def require_auth(f):
    """
    Require an authenticated principal (bound by the gateway).

    Returns 401 if the request carried no valid session token.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return jsonify({"error": "Authentication required"}), 401
        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require a specific permission atom."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if permission_code not in g.permissions:
                _deny(permission_code)
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_any_permission(*permission_codes):
    """Require any of the specified permission atoms."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not any(code in g.permissions for code in permission_codes):
                _deny(f"ANY_OF:{','.join(permission_codes)}")
                return jsonify({
                    "error": "Permission denied",
                    "required_permissions": list(permission_codes),
                    "message": f"Requires any of: {', '.join(permission_codes)}"
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_authority(*authority_names):
    """
    Require one of the given authorities: a role authority such as
    "ROLE_ADMIN" or a permission atom.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not any(name in g.authorities for name in authority_names):
                _deny(f"ANY_OF:{','.join(authority_names)}")
                return jsonify({
                    "error": "Permission denied",
                    "required_authorities": list(authority_names),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
