# Overview: Permission resolution and resource-level access checks.

"""
Permission Checking

WHY: Endpoints ask about capabilities (permission atoms), never about roles
directly; the role -> atom table lives in ticketdesk.permissions.

DESIGN PRINCIPLES:
- Fail closed: unknown roles resolve to no permissions
- "*_assigned" atoms only apply to tickets assigned to the caller
- Denials are logged, never written to the audit trail
"""

from __future__ import annotations

from ..models import Ticket, TicketComment, User
from ..permissions import authority_name_for, permissions_for


class PermissionDeniedError(Exception):
    """Raised when user lacks required permission."""


def get_user_permissions(user: User) -> frozenset[str]:
    """Permission atoms of the user's current role."""
    return permissions_for(user.role)


def get_user_authorities(user: User) -> frozenset[str]:
    """Atoms plus the role's own authority name (ROLE_<ROLE>)."""
    return get_user_permissions(user) | {authority_name_for(user.role)}


def user_has_permission(user: User, permission_code: str) -> bool:
    return permission_code in get_user_permissions(user)


def require_permission(user: User, permission_code: str) -> None:
    if not user_has_permission(user, permission_code):
        raise PermissionDeniedError(f"Missing permission: {permission_code}")


def _is_assignee(user: User, ticket: Ticket) -> bool:
    return ticket.assignee_id is not None and ticket.assignee_id == user.id


def can_read_ticket(user: User, ticket: Ticket) -> bool:
    permissions = get_user_permissions(user)
    if "ticket:read_all" in permissions:
        return True
    return "ticket:read_assigned" in permissions and _is_assignee(user, ticket)


def can_update_ticket(user: User, ticket: Ticket) -> bool:
    permissions = get_user_permissions(user)
    if "ticket:update" in permissions:
        return True
    return "ticket:update_assigned" in permissions and _is_assignee(user, ticket)


def can_read_history(user: User, ticket: Ticket | None) -> bool:
    """History of a deleted ticket (ticket=None) needs system:audit_read."""
    if user_has_permission(user, "system:audit_read"):
        return True
    return ticket is not None and can_read_ticket(user, ticket)


def can_modify_comment(user: User, comment: TicketComment) -> bool:
    return comment.author_id == user.id or user_has_permission(user, "ticket:update")


def authorize_ticket(user: User, ticket: Ticket, action: str = "read") -> None:
    """Raise PermissionDeniedError unless the user may read (or update) the ticket."""
    allowed = can_update_ticket(user, ticket) if action == "update" else can_read_ticket(user, ticket)
    if not allowed:
        raise PermissionDeniedError(f"Not allowed to {action} ticket {ticket.id}")


def authorize_comment(user: User, comment: TicketComment) -> None:
    if not can_modify_comment(user, comment):
        raise PermissionDeniedError(f"Not allowed to modify comment {comment.id}")
