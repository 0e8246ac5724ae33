# Overview: Read-only views over the permission tables (CLI listing, admin endpoints).

from .definitions import PERMISSION_DEFINITIONS
from .roles import ALL_ROLES, permissions_for


def describe_permission(code):
    """Full definition dict for an atom, or None when the code is unknown."""
    for perm_code, name, description, category in PERMISSION_DEFINITIONS:
        if perm_code == code:
            return {
                "code": perm_code,
                "name": name,
                "description": description,
                "category": category,
            }
    return None


def permissions_by_category():
    """Atom definitions grouped by category, in definition order."""
    grouped = {}
    for perm in PERMISSION_DEFINITIONS:
        grouped.setdefault(perm[3], []).append(describe_permission(perm[0]))
    return grouped


def role_matrix():
    """Role tag -> sorted atom list, for display."""
    return {role: sorted(permissions_for(role)) for role in ALL_ROLES}
