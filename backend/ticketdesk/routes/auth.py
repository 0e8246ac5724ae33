# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/ticketdesk/routes/auth.py
"""
Authentication API routes

- Registration and login return a signed session token
- Logout revokes every session of the caller
- Password reset request always answers 204 (no account enumeration)
- Password change answers with a fresh token (the old one is revoked)
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..extensions import db
from ..services import auth_service, password_reset_service, token_service
from ..services.auth_service import AuthenticationError
from ..services.password_reset_service import (
    InvalidResetTokenError,
    PasswordMismatchError,
    ResetTokenExpiredError,
)
from ..validation import ValidationError, ConflictError, require_payload, require_string
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _token_response(token: str, status: int = 200):
    lifetime = current_app.config["JWT_LIFETIME"]
    return jsonify({
        "token": token,
        "token_type": "Bearer",
        "expires_in": int(lifetime.total_seconds()),
    }), status


@auth_bp.post("/register")
def register_route():
    """
    Self-registration. Username is the email address.

    Request body: email, name, surname, password
    """
    try:
        data = require_payload(request.get_json(silent=True))
        user, token = auth_service.register(
            email=require_string(data, "email", max_length=255),
            name=require_string(data, "name", max_length=120),
            surname=require_string(data, "surname", max_length=120),
            password=data.get("password"),
        )
        return _token_response(token, 201)

    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate by login name or email and issue a session token.

    Every failure answers 401 "Invalid credentials".
    """
    try:
        data = request.get_json(silent=True) or {}
        identifier = data.get("login") or data.get("username") or data.get("email")
        password = data.get("password")

        if not isinstance(identifier, str) or not isinstance(password, str) or not identifier or not password:
            return jsonify({"error": "login and password required"}), 400

        token = auth_service.login(identifier, password)
        return _token_response(token)

    except AuthenticationError as e:
        return jsonify({"error": str(e)}), 401
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke every session token of the caller (logout everywhere)."""
    try:
        auth_service.logout_everywhere(g.current_user)
        return "", 204
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user with permissions, for UI filtering."""
    user = g.current_user
    return jsonify({
        "user": user.to_dict(),
        "permissions": sorted(g.permissions),
    })


@auth_bp.post("/password-reset/request")
def request_password_reset_route():
    """Always 204, whether or not the account exists."""
    try:
        data = request.get_json(silent=True) or {}
        identifier = data.get("login") or data.get("email")
        if isinstance(identifier, str) and identifier.strip():
            password_reset_service.request_reset(identifier.strip())
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to issue password reset token")
    return "", 204


@auth_bp.post("/password-reset/confirm")
def confirm_password_reset_route():
    """
    Redeem a compound reset code.

    Request body: code ("{token_id}.{code}"), new_password
    """
    try:
        data = request.get_json(silent=True) or {}
        password_reset_service.redeem(data.get("code"), data.get("new_password"))
        return "", 204

    except ResetTokenExpiredError as e:
        return jsonify({"error": str(e)}), 400
    except InvalidResetTokenError:
        return jsonify({"error": "invalid reset token"}), 400
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to reset password")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/change-password")
@require_auth
def change_password_route():
    """
    Change the caller's password.

    Request body: old_password, new_password. Returns a fresh token.
    """
    try:
        data = request.get_json(silent=True) or {}
        user = password_reset_service.change_password(
            g.current_user,
            data.get("old_password"),
            data.get("new_password"),
        )
        return _token_response(token_service.issue_token(user))

    except PasswordMismatchError as e:
        return jsonify({"error": str(e)}), 400
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to change password")
        return jsonify({"error": "Internal server error"}), 500
