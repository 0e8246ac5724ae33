# Overview: Service-layer operations for projects.

from __future__ import annotations

from ..extensions import db
from ..models import Project, User
from .concurrency import unit_of_work
from .ticket_service import delete_with_history, get_project


def list_projects() -> list[Project]:
    return db.session.query(Project).order_by(Project.created_at.desc(), Project.id.desc()).all()


def create_project(owner: User, *, name: str, description: str | None = None) -> Project:
    with unit_of_work() as session:
        project = Project(name=name, description=description, owner_id=owner.id, status="active")
        session.add(project)
    return project


def update_project(project_id: int, *, name: str, description: str | None, status: str | None = None) -> Project:
    project = get_project(project_id)
    with unit_of_work():
        project.name = name
        project.description = description
        if status is not None:
            project.status = status
    return project


def delete_project(project_id: int, actor: User) -> int:
    """
    Delete a project and its tickets.

    Each ticket gets its DELETED history entry before removal, all inside one
    transaction. Returns the number of tickets deleted.
    """
    project = get_project(project_id)
    tickets = list(project.tickets)
    with unit_of_work() as session:
        for ticket in tickets:
            delete_with_history(ticket, actor)
        session.delete(project)
    return len(tickets)
