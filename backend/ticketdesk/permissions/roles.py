# Overview: Closed role enumeration and the fixed role -> permission atom table.

from .definitions import PERMISSION_DEFINITIONS


class SystemRole:
    """Role tags stored on users."""
    ADMIN = "ADMIN"
    PROJECT_MANAGER = "PROJECT_MANAGER"
    USER = "USER"


ALL_ROLES = (SystemRole.ADMIN, SystemRole.PROJECT_MANAGER, SystemRole.USER)

# Computed once from the full atom list so that a newly defined atom is
# granted to ADMIN without touching the table below.
ALL_PERMISSIONS = frozenset(perm[0] for perm in PERMISSION_DEFINITIONS)

ROLE_PERMISSIONS = {
    SystemRole.ADMIN: ALL_PERMISSIONS,

    SystemRole.PROJECT_MANAGER: frozenset({
        "ticket:create",
        "ticket:read_all",
        "ticket:update",
        "ticket:delete",
        "project:create",
        "project:read_all",
        "project:update",
        "project:delete",
    }),

    SystemRole.USER: frozenset({
        "ticket:read_assigned",
        "ticket:update_assigned",
        "user:update_self",
    }),
}

AUTHORITY_PREFIX = "ROLE_"


def permissions_for(role: str) -> frozenset[str]:
    """Permission atoms granted to a role. Unknown roles get nothing."""
    return ROLE_PERMISSIONS.get(role, frozenset())


def authority_name_for(role: str) -> str:
    """The role's own authority label, e.g. ROLE_ADMIN."""
    return f"{AUTHORITY_PREFIX}{role}"


def is_valid_role(role: str) -> bool:
    return role in ROLE_PERMISSIONS
