from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from supportdesk.errors import ValidationError


class Role(str, Enum):
    """Supported roles. A flat capability set, not a hierarchy."""

    ADMIN = "admin"
    SUPPORT_LEAD = "support-lead"
    SUPPORT_STAFF = "support-staff"
    CLIENT = "client"

    @property
    def is_internal(self) -> bool:
        return self is not Role.CLIENT

    @classmethod
    def parse(cls, value: str | Role) -> Role:
        if isinstance(value, Role):
            return value
        try:
            return cls(value)
        except ValueError as exc:
            raise ValidationError(f"Unknown role: {value!r}") from exc


INTERNAL_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.SUPPORT_LEAD, Role.SUPPORT_STAFF})
ALL_ROLES: frozenset[Role] = frozenset(Role)


@dataclass(frozen=True, slots=True)
class Actor:
    """Verified identity attached to every authorized request."""

    id: str
    role: Role
    organization_id: str | None = None

    @property
    def is_client(self) -> bool:
        return self.role is Role.CLIENT

    @property
    def is_scoped(self) -> bool:
        """A client with an organization only sees its own organization's records."""

        return self.is_client and bool(self.organization_id)


def normalize_organization(role: Role, organization_id: str | None) -> str | None:
    """Apply the membership rule: only clients carry an organization reference."""

    if role is not Role.CLIENT:
        return None
    return organization_id or None


def initials_from_name(name: str) -> str:
    """First letter of each whitespace separated word, uppercased, at most two characters."""

    initials = "".join(word[0] for word in name.split())
    return initials.upper()[:2]
