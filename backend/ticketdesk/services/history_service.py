# Overview: Append-only ticket audit trail and the snapshot diff that feeds it.

"""
Ticket History Invariants (authoritative)

- Append-only: entries are never updated or deleted.
- Entries are added to the caller's transaction; the caller commits the
  domain change and its entries together (see concurrency.unit_of_work).
- CREATED and DELETED carry no field/old/new. UPDATED carries exactly one
  field per entry.
- The DELETED entry is flushed before the ticket row is deleted.
- history() returns oldest first (created_at, then id).
"""

from __future__ import annotations

from dataclasses import dataclass, fields as dataclass_fields
from datetime import datetime
from typing import Any, Iterable, Optional

from ..extensions import db
from ..models import AUDIT_ACTIONS, Ticket, TicketHistory
from ..time_utils import utcnow


# Fields whose changes are recorded. Anything else on a ticket is not history.
TRACKED_TICKET_FIELDS = ("name", "description", "priority", "state")


@dataclass(frozen=True)
class TicketSnapshot:
    """Immutable view of the tracked fields of a ticket."""
    name: str
    description: Optional[str]
    priority: str
    state: str

    @classmethod
    def of(cls, ticket: Ticket) -> "TicketSnapshot":
        return cls(**{f.name: getattr(ticket, f.name) for f in dataclass_fields(cls)})


@dataclass(frozen=True)
class FieldChange:
    field: str
    old_value: Any
    new_value: Any


def diff_snapshots(before, after, tracked: Iterable[str] = TRACKED_TICKET_FIELDS) -> list[FieldChange]:
    """Value-equality diff over an explicit field list, in list order."""
    changes = []
    for field in tracked:
        old_value = getattr(before, field)
        new_value = getattr(after, field)
        if old_value != new_value:
            changes.append(FieldChange(field, old_value, new_value))
    return changes


def _as_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _append(
    *,
    ticket_id: int,
    actor_id: int,
    action: str,
    field: Optional[str] = None,
    old_value: Any = None,
    new_value: Any = None,
    created_at: Optional[datetime] = None,
) -> TicketHistory:
    if action not in AUDIT_ACTIONS:
        raise ValueError(f"Unknown history action: {action}")
    entry = TicketHistory(
        ticket_id=ticket_id,
        author_id=actor_id,
        action=action,
        field=field,
        old_value=_as_text(old_value),
        new_value=_as_text(new_value),
        created_at=created_at or utcnow(),
    )
    db.session.add(entry)
    return entry


def record_creation(ticket_id: int, actor_id: int) -> TicketHistory:
    return _append(ticket_id=ticket_id, actor_id=actor_id, action="CREATED")


def record_field_change(
    ticket_id: int,
    actor_id: int,
    field: str,
    old_value: Any,
    new_value: Any,
    *,
    created_at: Optional[datetime] = None,
) -> TicketHistory:
    return _append(
        ticket_id=ticket_id,
        actor_id=actor_id,
        action="UPDATED",
        field=field,
        old_value=old_value,
        new_value=new_value,
        created_at=created_at,
    )


def record_deletion(ticket_id: int, actor_id: int) -> TicketHistory:
    entry = _append(ticket_id=ticket_id, actor_id=actor_id, action="DELETED")
    db.session.flush()  # audit row reaches the database before the delete
    return entry


def record_update(
    ticket_id: int,
    actor_id: int,
    before: TicketSnapshot,
    after: TicketSnapshot,
) -> list[TicketHistory]:
    """One UPDATED entry per changed tracked field; nothing when equal."""
    changed_at = utcnow()
    return [
        record_field_change(
            ticket_id,
            actor_id,
            change.field,
            change.old_value,
            change.new_value,
            created_at=changed_at,
        )
        for change in diff_snapshots(before, after)
    ]


def history(ticket_id: int) -> list[TicketHistory]:
    return (
        db.session.query(TicketHistory)
        .filter(TicketHistory.ticket_id == ticket_id)
        .order_by(TicketHistory.created_at.asc(), TicketHistory.id.asc())
        .all()
    )


def has_history(ticket_id: int) -> bool:
    return db.session.query(
        db.session.query(TicketHistory).filter(TicketHistory.ticket_id == ticket_id).exists()
    ).scalar()
