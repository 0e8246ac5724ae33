# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    TICKETS = "TICKETS"
    PROJECTS = "PROJECTS"
    USERS = "USERS"
    SYSTEM = "SYSTEM"
