"""Identity and role model."""

from .roles import ALL_ROLES, INTERNAL_ROLES, Actor, Role, initials_from_name, normalize_organization

__all__ = [
    "ALL_ROLES",
    "INTERNAL_ROLES",
    "Actor",
    "Role",
    "initials_from_name",
    "normalize_organization",
]
