# Overview: Flask API routes for project operations; parses input and returns JSON responses.

# backend/ticketdesk/routes/projects.py
"""
Project API routes

Deleting a project deletes its tickets; each ticket's deletion is recorded
in the ticket history before the rows go away.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..extensions import db
from ..models import PROJECT_STATUSES
from ..services import project_service, ticket_service
from ..validation import (
    NotFoundError,
    ValidationError,
    optional_string,
    require_choice,
    require_payload,
    require_string,
)
from ..decorators import require_permission


projects_bp = Blueprint("projects", __name__, url_prefix="/api/projects")


@projects_bp.get("")
@require_permission("project:read_all")
def list_projects_route():
    projects = project_service.list_projects()
    return jsonify([p.to_dict() for p in projects])


@projects_bp.get("/<int:project_id>")
@require_permission("project:read_all")
def get_project_route(project_id: int):
    try:
        project = ticket_service.get_project(project_id)
        return jsonify(project.to_dict())
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@projects_bp.post("")
@require_permission("project:create")
def create_project_route():
    """
    Create a project owned by the caller.

    Request body: name, optional description
    """
    try:
        data = require_payload(request.get_json(silent=True))
        project = project_service.create_project(
            g.current_user,
            name=require_string(data, "name", max_length=160),
            description=optional_string(data, "description", max_length=10000),
        )
        return jsonify(project.to_dict()), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create project")
        return jsonify({"error": "Internal server error"}), 500


@projects_bp.put("/<int:project_id>")
@require_permission("project:update")
def update_project_route(project_id: int):
    """
    Request body: name, optional description, optional status (active|archived)
    """
    try:
        data = require_payload(request.get_json(silent=True))
        status = data.get("status")
        project = project_service.update_project(
            project_id,
            name=require_string(data, "name", max_length=160),
            description=optional_string(data, "description", max_length=10000),
            status=require_choice(data, "status", PROJECT_STATUSES) if status is not None else None,
        )
        return jsonify(project.to_dict())

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update project %s", project_id)
        return jsonify({"error": "Internal server error"}), 500


@projects_bp.delete("/<int:project_id>")
@require_permission("project:delete")
def delete_project_route(project_id: int):
    try:
        deleted = project_service.delete_project(project_id, g.current_user)
        current_app.logger.info(
            "Project id=%s deleted by user id=%s (%s tickets)", project_id, g.current_user.id, deleted,
        )
        return "", 204

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete project %s", project_id)
        return jsonify({"error": "Internal server error"}), 500
