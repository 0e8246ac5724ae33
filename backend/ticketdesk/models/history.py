from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


AUDIT_ACTIONS = ("CREATED", "UPDATED", "DELETED")


class TicketHistory(db.Model):
    """
    Append-only audit entry for a ticket mutation.

    IMMUTABLE: Never update or delete. One row per CREATED/DELETED event and
    one row per changed field for UPDATED.

    ticket_id and author_id are plain columns (no foreign keys) so that
    history outlives the ticket and the acting user.
    """
    __tablename__ = "ticket_history"
    __table_args__ = (
        db.Index("ix_ticket_history_ticket_created", "ticket_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    ticket_id = db.Column(db.Integer, nullable=False)
    author_id = db.Column(db.Integer, nullable=False, index=True)
    action = db.Column(db.String(16), nullable=False)
    field = db.Column(db.String(64), nullable=True)
    old_value = db.Column(db.Text, nullable=True)
    new_value = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<TicketHistory id={self.id} ticket_id={self.ticket_id} action={self.action} field={self.field}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ticket_id": self.ticket_id,
            "author_id": self.author_id,
            "action": self.action,
            "field": self.field,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "created_at": to_utc_z(self.created_at),
        }
