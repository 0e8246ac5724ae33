# Overview: Flask API routes for user administration; parses input and returns JSON responses.

# backend/ticketdesk/routes/users.py
"""
User administration API routes

Endpoints:
- GET    /api/users                    List users (user:read_all)
- POST   /api/users                    Create user (system:admin_actions)
- GET    /api/users/roles              Role/permission matrix (administrators)
- GET    /api/users/<id>               Get user (user:read_all or self)
- PUT    /api/users/<id>               Update user
- DELETE /api/users/<id>               Delete user (user:delete)
- POST   /api/users/<id>/block         Block user and revoke sessions (system:admin_actions)
- POST   /api/users/<id>/unblock       Unblock user and revoke sessions (system:admin_actions)

Updating another user, or changing any role, requires user:update_role.
Updating one's own profile requires user:update_self.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..extensions import db
from ..permissions import ALL_ROLES, role_matrix
from ..services import user_service
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    optional_string,
    require_choice,
    require_payload,
    require_string,
)
from ..decorators import require_auth, require_authority, require_permission


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def _profile_fields(data: dict) -> dict:
    return {
        "email": require_string(data, "email", max_length=255),
        "name": require_string(data, "name", max_length=120),
        "surname": require_string(data, "surname", max_length=120),
    }


@users_bp.get("")
@require_permission("user:read_all")
def list_users_route():
    users = user_service.list_users()
    return jsonify([u.to_dict() for u in users])


@users_bp.post("")
@require_permission("system:admin_actions")
def create_user_route():
    """
    Request body: email, name, surname, password, role
    """
    try:
        data = require_payload(request.get_json(silent=True))
        user = user_service.create_user(
            **_profile_fields(data),
            password=data.get("password"),
            role=require_choice(data, "role", ALL_ROLES),
        )
        return jsonify(user.to_dict()), 201

    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.get("/roles")
@require_authority("ROLE_ADMIN")
def role_matrix_route():
    return jsonify(role_matrix())


@users_bp.get("/<int:user_id>")
@require_auth
def get_user_route(user_id: int):
    if user_id != g.current_user.id and "user:read_all" not in g.permissions:
        return jsonify({"error": "Permission denied", "required_permission": "user:read_all"}), 403
    try:
        user = user_service.get_user(user_id)
        return jsonify(user.to_dict())
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@users_bp.put("/<int:user_id>")
@require_auth
def update_user_route(user_id: int):
    """
    Request body: email, name, surname, optional role, optional password
    """
    try:
        data = require_payload(request.get_json(silent=True))
        role = data.get("role")
        is_self = user_id == g.current_user.id

        if is_self and role in (None, g.current_user.role):
            required = "user:update_self"
        else:
            required = "user:update_role"

        if required not in g.permissions:
            current_app.logger.warning(
                "Permission denied for user id=%s updating user id=%s (requires %s)",
                g.current_user.id, user_id, required,
            )
            return jsonify({"error": "Permission denied", "required_permission": required}), 403

        user = user_service.update_user(
            user_id,
            **_profile_fields(data),
            role=require_choice(data, "role", ALL_ROLES) if role is not None else None,
            password=optional_string(data, "password"),
        )
        return jsonify(user.to_dict())

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update user %s", user_id)
        return jsonify({"error": "Internal server error"}), 500


@users_bp.delete("/<int:user_id>")
@require_permission("user:delete")
def delete_user_route(user_id: int):
    if user_id == g.current_user.id:
        return jsonify({"error": "Cannot delete your own account"}), 400
    try:
        user_service.delete_user(user_id)
        return "", 204
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete user %s", user_id)
        return jsonify({"error": "Internal server error"}), 500


@users_bp.post("/<int:user_id>/block")
@require_permission("system:admin_actions")
def block_user_route(user_id: int):
    try:
        user_service.block_user(user_id)
        return "", 204
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@users_bp.post("/<int:user_id>/unblock")
@require_permission("system:admin_actions")
def unblock_user_route(user_id: int):
    try:
        user_service.unblock_user(user_id)
        return "", 204
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
