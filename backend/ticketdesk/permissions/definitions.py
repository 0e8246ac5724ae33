# Overview: All permission atom definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- TICKETS --

TICKET_PERMISSIONS = [
    (
        "ticket:create",
        "Create Tickets",
        "Create tickets inside a project",
        PermissionCategory.TICKETS,
    ),
    (
        "ticket:read_all",
        "Read All Tickets",
        "Read every ticket regardless of assignment",
        PermissionCategory.TICKETS,
    ),
    (
        "ticket:read_assigned",
        "Read Assigned Tickets",
        "Read tickets assigned to the caller",
        PermissionCategory.TICKETS,
    ),
    (
        "ticket:update",
        "Update Tickets",
        "Update any ticket",
        PermissionCategory.TICKETS,
    ),
    (
        "ticket:update_assigned",
        "Update Assigned Tickets",
        "Update tickets assigned to the caller",
        PermissionCategory.TICKETS,
    ),
    (
        "ticket:delete",
        "Delete Tickets",
        "Delete tickets",
        PermissionCategory.TICKETS,
    ),
]


# -- PROJECTS --

PROJECT_PERMISSIONS = [
    (
        "project:create",
        "Create Projects",
        "Create new projects",
        PermissionCategory.PROJECTS,
    ),
    (
        "project:read_all",
        "Read Projects",
        "List and read every project",
        PermissionCategory.PROJECTS,
    ),
    (
        "project:update",
        "Update Projects",
        "Edit project name, description and status",
        PermissionCategory.PROJECTS,
    ),
    (
        "project:delete",
        "Delete Projects",
        "Delete projects together with their tickets",
        PermissionCategory.PROJECTS,
    ),
]


# -- USERS --

USER_PERMISSIONS = [
    (
        "user:read_all",
        "Read Users",
        "List and read every user account",
        PermissionCategory.USERS,
    ),
    (
        "user:update_self",
        "Update Own Profile",
        "Edit the caller's own profile",
        PermissionCategory.USERS,
    ),
    (
        "user:update_role",
        "Change Roles",
        "Edit other accounts, including their role",
        PermissionCategory.USERS,
    ),
    (
        "user:delete",
        "Delete Users",
        "Delete user accounts",
        PermissionCategory.USERS,
    ),
]


# -- SYSTEM --

SYSTEM_PERMISSIONS = [
    (
        "system:audit_read",
        "Read Audit Trail",
        "Read ticket history, including history of deleted tickets",
        PermissionCategory.SYSTEM,
    ),
    (
        "system:admin_actions",
        "Administrative Actions",
        "Create, block and unblock accounts",
        PermissionCategory.SYSTEM,
    ),
]


PERMISSION_DEFINITIONS = (
    TICKET_PERMISSIONS
    + PROJECT_PERMISSIONS
    + USER_PERMISSIONS
    + SYSTEM_PERMISSIONS
)
