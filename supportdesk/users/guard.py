from __future__ import annotations

from typing import Any

from supportdesk.identity.roles import Role, initials_from_name, normalize_organization
from supportdesk.models import User


def guarded_changes(
    user: User,
    *,
    name: str | None = None,
    email: str | None = None,
    role: Role | None = None,
    organization_id: str | None = None,
    phone: str | None = None,
) -> dict[str, Any]:
    """Translate a user update request into the stored field changes.

    A supplied role re-applies the membership rule, so moving to an internal
    role always drops the organization and moving to ``client`` without an
    organization in the same request drops it as well. A new name recomputes
    the avatar, which therefore cannot be set directly.
    """

    changes: dict[str, Any] = {}
    if name is not None:
        changes["name"] = name
        changes["avatar"] = initials_from_name(name)
    if email is not None:
        changes["email"] = email
    if phone is not None:
        changes["phone"] = phone

    if role is not None:
        changes["role"] = role
        changes["organization_id"] = normalize_organization(role, organization_id)
    elif organization_id is not None:
        changes["organization_id"] = normalize_organization(user.role, organization_id)
    return changes
