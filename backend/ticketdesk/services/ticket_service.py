# Overview: Service-layer operations for tickets and comments; every ticket mutation feeds the history trail.

from __future__ import annotations

from dataclasses import replace
from typing import Any

from ..extensions import db
from ..models import Project, Ticket, TicketComment, User
from ..time_utils import utcnow
from ..validation import NotFoundError, ValidationError
from . import history_service
from .concurrency import unit_of_work
from .history_service import TRACKED_TICKET_FIELDS, TicketSnapshot


def get_project(project_id: int) -> Project:
    project = db.session.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project not found")
    return project


def get_ticket(project_id: int, ticket_id: int) -> Ticket:
    ticket = db.session.query(Ticket).filter_by(id=ticket_id, project_id=project_id).first()
    if ticket is None:
        raise NotFoundError("Ticket not found")
    return ticket


def find_ticket(project_id: int, ticket_id: int) -> Ticket | None:
    return db.session.query(Ticket).filter_by(id=ticket_id, project_id=project_id).first()


def _require_user(user_id: int, message: str = "User not found") -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(message)
    return user


def list_tickets(project_id: int) -> list[Ticket]:
    """Newest first."""
    project = get_project(project_id)
    return (
        db.session.query(Ticket)
        .filter(Ticket.project_id == project.id)
        .order_by(Ticket.created_at.desc(), Ticket.id.desc())
        .all()
    )


def list_by_assignee(assignee_id: int) -> list[Ticket]:
    _require_user(assignee_id)
    return (
        db.session.query(Ticket)
        .filter(Ticket.assignee_id == assignee_id)
        .order_by(Ticket.created_at.desc(), Ticket.id.desc())
        .all()
    )


def create_ticket(
    project_id: int,
    actor: User,
    *,
    name: str,
    type: str,
    priority: str,
    description: str | None = None,
    assignee_id: int | None = None,
) -> Ticket:
    """Create a ticket and its CREATED history entry in one transaction."""
    project = get_project(project_id)
    if assignee_id is not None:
        _require_user(assignee_id, "Assignee not found")

    with unit_of_work() as session:
        ticket = Ticket(
            name=name,
            description=description,
            type=type,
            priority=priority,
            state="open",
            project_id=project.id,
            author_id=actor.id,
            assignee_id=assignee_id,
        )
        session.add(ticket)
        session.flush()
        history_service.record_creation(ticket.id, actor.id)
    return ticket


def update_ticket(project_id: int, ticket_id: int, actor: User, changes: dict[str, Any]) -> Ticket:
    """
    Apply changes to a ticket.

    Tracked fields (name, description, priority, state) are diffed against
    the stored values and one UPDATED entry is written per real change.
    "assignee_id" may also be given; it is applied but not tracked.
    State transitions are not restricted.
    """
    unknown = set(changes) - set(TRACKED_TICKET_FIELDS) - {"assignee_id"}
    if unknown:
        raise ValidationError(f"Unsupported fields: {', '.join(sorted(unknown))}")

    ticket = get_ticket(project_id, ticket_id)
    if changes.get("assignee_id") is not None:
        _require_user(changes["assignee_id"], "Assignee not found")

    before = TicketSnapshot.of(ticket)
    after = replace(before, **{k: v for k, v in changes.items() if k in TRACKED_TICKET_FIELDS})

    with unit_of_work():
        entries = history_service.record_update(ticket.id, actor.id, before, after)
        for entry in entries:
            setattr(ticket, entry.field, getattr(after, entry.field))
        if "assignee_id" in changes:
            ticket.assignee_id = changes["assignee_id"]
    return ticket


def delete_with_history(ticket: Ticket, actor: User) -> None:
    """DELETED entry first, then the row. Caller owns the transaction."""
    history_service.record_deletion(ticket.id, actor.id)
    db.session.delete(ticket)


def delete_ticket(project_id: int, ticket_id: int, actor: User) -> None:
    ticket = get_ticket(project_id, ticket_id)
    with unit_of_work():
        delete_with_history(ticket, actor)


# --------- COMMENTS ---------

def list_comments(ticket: Ticket) -> list[TicketComment]:
    """Oldest first."""
    return (
        db.session.query(TicketComment)
        .filter(TicketComment.ticket_id == ticket.id)
        .order_by(TicketComment.created_at.asc(), TicketComment.id.asc())
        .all()
    )


def get_comment(ticket: Ticket, comment_id: int) -> TicketComment:
    comment = db.session.query(TicketComment).filter_by(id=comment_id, ticket_id=ticket.id).first()
    if comment is None:
        raise NotFoundError("Comment not found")
    return comment


def add_comment(ticket: Ticket, actor: User, text: str) -> TicketComment:
    with unit_of_work() as session:
        comment = TicketComment(ticket_id=ticket.id, author_id=actor.id, text=text)
        session.add(comment)
    return comment


def update_comment(comment: TicketComment, text: str) -> TicketComment:
    with unit_of_work():
        comment.text = text
        comment.updated_at = utcnow()
    return comment


def delete_comment(comment: TicketComment) -> None:
    with unit_of_work() as session:
        session.delete(comment)
