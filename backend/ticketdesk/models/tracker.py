from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


TICKET_TYPES = ("bug", "feature", "task")
TICKET_PRIORITIES = ("low", "med", "high")
# No transition rules: any state may follow any other.
TICKET_STATES = ("open", "in_progress", "done")

PROJECT_STATUSES = ("active", "archived")


class Project(db.Model):
    __tablename__ = "projects"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(160), nullable=False)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="active", server_default="active")
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    owner = db.relationship("User", foreign_keys=[owner_id])

    def __repr__(self) -> str:
        return f"<Project id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status,
            "owner": self.owner.to_short_dict() if self.owner else None,
            "created_at": to_utc_z(self.created_at),
        }


class Ticket(db.Model):
    __tablename__ = "tickets"
    __table_args__ = (
        db.Index("ix_tickets_project_created", "project_id", "created_at"),
        db.Index("ix_tickets_assignee", "assignee_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(160), nullable=False)
    description = db.Column(db.Text, nullable=True)
    type = db.Column(db.String(8), nullable=False)
    priority = db.Column(db.String(8), nullable=False)
    state = db.Column(db.String(16), nullable=False, default="open", server_default="open")

    project_id = db.Column(db.Integer, db.ForeignKey("projects.id"), nullable=False)
    author_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    assignee_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    project = db.relationship("Project", backref=db.backref("tickets", lazy=True))
    author = db.relationship("User", foreign_keys=[author_id])
    assignee = db.relationship("User", foreign_keys=[assignee_id])

    def __repr__(self) -> str:
        return f"<Ticket id={self.id} project_id={self.project_id} state={self.state}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "priority": self.priority,
            "state": self.state,
            "project_id": self.project_id,
            "owner": self.author.to_short_dict() if self.author else None,
            "assignee": self.assignee.to_short_dict() if self.assignee else None,
            "created_at": to_utc_z(self.created_at),
        }


class TicketComment(db.Model):
    __tablename__ = "ticket_comments"
    __table_args__ = (
        db.Index("ix_ticket_comments_ticket_created", "ticket_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    ticket_id = db.Column(db.Integer, db.ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False)
    author_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    text = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    ticket = db.relationship(
        "Ticket",
        backref=db.backref("comments", lazy=True, cascade="all, delete-orphan"),
    )
    author = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ticket_id": self.ticket_id,
            "author": self.author.to_short_dict() if self.author else None,
            "text": self.text,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
