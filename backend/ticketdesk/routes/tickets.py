# Overview: Flask API routes for tickets, comments and ticket history; parses input and returns JSON responses.

# backend/ticketdesk/routes/tickets.py
"""
Ticket API routes

Authorization is two-level:
- endpoint level via decorators (authenticated, coarse permission atoms)
- resource level via permission_service (assigned-only access for workers)

Every ticket mutation writes its history entries in the same transaction.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..extensions import db
from ..models import TICKET_PRIORITIES, TICKET_STATES, TICKET_TYPES
from ..services import history_service, permission_service, ticket_service
from ..services.permission_service import PermissionDeniedError
from ..validation import (
    NotFoundError,
    ValidationError,
    optional_int,
    optional_string,
    require_choice,
    require_payload,
    require_string,
)
from ..decorators import require_any_permission, require_auth, require_permission


tickets_bp = Blueprint("tickets", __name__, url_prefix="/api")

TICKET_NAME_MAX = 160
TICKET_DESCRIPTION_MAX = 10000
COMMENT_TEXT_MAX = 5000

# Any one of these lets a caller see some ticket at all
TICKET_READ_ATOMS = ("ticket:read_all", "ticket:read_assigned", "system:audit_read")


def _forbidden(exc: PermissionDeniedError):
    current_app.logger.warning("Permission denied for user id=%s: %s", g.current_user.id, exc)
    return jsonify({"error": "Permission denied"}), 403


def _ticket_changes(data: dict) -> dict:
    """Only the keys present in the body; unknown keys are rejected by the service."""
    changes = {}
    for key in data:
        if key == "name":
            changes["name"] = require_string(data, "name", max_length=TICKET_NAME_MAX)
        elif key == "description":
            changes["description"] = optional_string(data, "description", max_length=TICKET_DESCRIPTION_MAX)
        elif key == "priority":
            changes["priority"] = require_choice(data, "priority", TICKET_PRIORITIES)
        elif key == "state":
            changes["state"] = require_choice(data, "state", TICKET_STATES)
        elif key == "assignee_id":
            changes["assignee_id"] = optional_int(data, "assignee_id")
        else:
            changes[key] = data[key]
    return changes


# --------- TICKETS ---------

@tickets_bp.get("/projects/<int:project_id>/tickets")
@require_permission("ticket:read_all")
def list_tickets_route(project_id: int):
    try:
        tickets = ticket_service.list_tickets(project_id)
        return jsonify([t.to_dict() for t in tickets])
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@tickets_bp.post("/projects/<int:project_id>/tickets")
@require_permission("ticket:create")
def create_ticket_route(project_id: int):
    """
    Request body: name, type, priority, optional description, optional assignee_id
    """
    try:
        data = require_payload(request.get_json(silent=True))
        ticket = ticket_service.create_ticket(
            project_id,
            g.current_user,
            name=require_string(data, "name", max_length=TICKET_NAME_MAX),
            type=require_choice(data, "type", TICKET_TYPES),
            priority=require_choice(data, "priority", TICKET_PRIORITIES),
            description=optional_string(data, "description", max_length=TICKET_DESCRIPTION_MAX),
            assignee_id=optional_int(data, "assignee_id"),
        )
        return jsonify(ticket.to_dict()), 201

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create ticket in project %s", project_id)
        return jsonify({"error": "Internal server error"}), 500


@tickets_bp.get("/projects/<int:project_id>/tickets/<int:ticket_id>")
@require_auth
def get_ticket_route(project_id: int, ticket_id: int):
    try:
        ticket = ticket_service.get_ticket(project_id, ticket_id)
        permission_service.authorize_ticket(g.current_user, ticket)
        return jsonify(ticket.to_dict())

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PermissionDeniedError as e:
        return _forbidden(e)


@tickets_bp.put("/projects/<int:project_id>/tickets/<int:ticket_id>")
@require_auth
def update_ticket_route(project_id: int, ticket_id: int):
    """
    Partial update. Any of: name, description, priority, state, assignee_id.

    One history entry is written per tracked field whose value really changed.
    """
    try:
        ticket = ticket_service.get_ticket(project_id, ticket_id)
        permission_service.authorize_ticket(g.current_user, ticket, "update")

        data = require_payload(request.get_json(silent=True))
        ticket = ticket_service.update_ticket(project_id, ticket_id, g.current_user, _ticket_changes(data))
        return jsonify(ticket.to_dict())

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PermissionDeniedError as e:
        return _forbidden(e)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update ticket %s", ticket_id)
        return jsonify({"error": "Internal server error"}), 500


@tickets_bp.delete("/projects/<int:project_id>/tickets/<int:ticket_id>")
@require_permission("ticket:delete")
def delete_ticket_route(project_id: int, ticket_id: int):
    try:
        ticket_service.delete_ticket(project_id, ticket_id, g.current_user)
        return "", 204

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete ticket %s", ticket_id)
        return jsonify({"error": "Internal server error"}), 500


@tickets_bp.get("/tickets/assignee/<int:user_id>")
@require_auth
def list_assigned_tickets_route(user_id: int):
    """Workers may only list their own assignments."""
    try:
        if user_id != g.current_user.id:
            permission_service.require_permission(g.current_user, "ticket:read_all")
        tickets = ticket_service.list_by_assignee(user_id)
        return jsonify([t.to_dict() for t in tickets])

    except PermissionDeniedError as e:
        return _forbidden(e)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


# --------- HISTORY ---------

@tickets_bp.get("/projects/<int:project_id>/tickets/<int:ticket_id>/history")
@require_any_permission(*TICKET_READ_ATOMS)
def ticket_history_route(project_id: int, ticket_id: int):
    """
    Audit trail of a ticket, oldest first.

    Still available after deletion to holders of system:audit_read.
    """
    ticket = ticket_service.find_ticket(project_id, ticket_id)
    if not permission_service.can_read_history(g.current_user, ticket):
        if ticket is None:
            return jsonify({"error": "Ticket not found"}), 404
        return _forbidden(PermissionDeniedError(f"Not allowed to read history of ticket {ticket_id}"))

    if ticket is None and not history_service.has_history(ticket_id):
        return jsonify({"error": "Ticket not found"}), 404

    entries = history_service.history(ticket_id)
    return jsonify([e.to_dict() for e in entries])


# --------- COMMENTS ---------

@tickets_bp.get("/projects/<int:project_id>/tickets/<int:ticket_id>/comments")
@require_auth
def list_comments_route(project_id: int, ticket_id: int):
    try:
        ticket = ticket_service.get_ticket(project_id, ticket_id)
        permission_service.authorize_ticket(g.current_user, ticket)
        comments = ticket_service.list_comments(ticket)
        return jsonify([c.to_dict() for c in comments])

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PermissionDeniedError as e:
        return _forbidden(e)


@tickets_bp.post("/projects/<int:project_id>/tickets/<int:ticket_id>/comments")
@require_auth
def add_comment_route(project_id: int, ticket_id: int):
    """
    Request body: text
    """
    try:
        ticket = ticket_service.get_ticket(project_id, ticket_id)
        permission_service.authorize_ticket(g.current_user, ticket)

        data = require_payload(request.get_json(silent=True))
        comment = ticket_service.add_comment(
            ticket, g.current_user, require_string(data, "text", max_length=COMMENT_TEXT_MAX)
        )
        return jsonify(comment.to_dict()), 201

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PermissionDeniedError as e:
        return _forbidden(e)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to add comment to ticket %s", ticket_id)
        return jsonify({"error": "Internal server error"}), 500


@tickets_bp.put("/projects/<int:project_id>/tickets/<int:ticket_id>/comments/<int:comment_id>")
@require_auth
def update_comment_route(project_id: int, ticket_id: int, comment_id: int):
    try:
        ticket = ticket_service.get_ticket(project_id, ticket_id)
        comment = ticket_service.get_comment(ticket, comment_id)
        permission_service.authorize_comment(g.current_user, comment)

        data = require_payload(request.get_json(silent=True))
        comment = ticket_service.update_comment(
            comment, require_string(data, "text", max_length=COMMENT_TEXT_MAX)
        )
        return jsonify(comment.to_dict())

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PermissionDeniedError as e:
        return _forbidden(e)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update comment %s", comment_id)
        return jsonify({"error": "Internal server error"}), 500


@tickets_bp.delete("/projects/<int:project_id>/tickets/<int:ticket_id>/comments/<int:comment_id>")
@require_auth
def delete_comment_route(project_id: int, ticket_id: int, comment_id: int):
    try:
        ticket = ticket_service.get_ticket(project_id, ticket_id)
        comment = ticket_service.get_comment(ticket, comment_id)
        permission_service.authorize_comment(g.current_user, comment)

        ticket_service.delete_comment(comment)
        return "", 204

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PermissionDeniedError as e:
        return _forbidden(e)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete comment %s", comment_id)
        return jsonify({"error": "Internal server error"}), 500
