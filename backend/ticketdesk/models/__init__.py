from .auth import User, PasswordResetToken
from .tracker import (
    Project,
    Ticket,
    TicketComment,
    TICKET_TYPES,
    TICKET_PRIORITIES,
    TICKET_STATES,
    PROJECT_STATUSES,
)
from .history import TicketHistory, AUDIT_ACTIONS

__all__ = [
    'User', 'PasswordResetToken',
    'Project', 'Ticket', 'TicketComment',
    'TICKET_TYPES', 'TICKET_PRIORITIES', 'TICKET_STATES', 'PROJECT_STATUSES',
    'TicketHistory', 'AUDIT_ACTIONS',
]
