# Overview: Permission system package.
# Re-exports all public APIs so callers import from ticketdesk.permissions.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    TICKET_PERMISSIONS,
    PROJECT_PERMISSIONS,
    USER_PERMISSIONS,
    SYSTEM_PERMISSIONS,
)
from .roles import (
    SystemRole,
    ALL_ROLES,
    ALL_PERMISSIONS,
    ROLE_PERMISSIONS,
    permissions_for,
    authority_name_for,
    is_valid_role,
)
from .helpers import describe_permission, permissions_by_category, role_matrix

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "TICKET_PERMISSIONS",
    "PROJECT_PERMISSIONS",
    "USER_PERMISSIONS",
    "SYSTEM_PERMISSIONS",
    "SystemRole",
    "ALL_ROLES",
    "ALL_PERMISSIONS",
    "ROLE_PERMISSIONS",
    "permissions_for",
    "authority_name_for",
    "is_valid_role",
    "describe_permission",
    "permissions_by_category",
    "role_matrix",
]
