"""Record types shared by the services and the storage layer.

Status-like fields are enumerations internally and are converted to their
string vocabulary at the HTTP and storage boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from supportdesk.errors import ValidationError
from supportdesk.identity.roles import Role


class _Vocabulary(str, Enum):
    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError as exc:
            allowed = ", ".join(member.value for member in cls)
            raise ValidationError(f"Invalid {cls.__name__} {value!r}; expected one of: {allowed}") from exc


class TicketStatus(_Vocabulary):
    """States of the ticket lifecycle."""

    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority(_Vocabulary):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ApprovalStatus(_Vocabulary):
    """Value of one side of a conversion request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalSide(_Vocabulary):
    INTERNAL = "internal"
    CLIENT = "client"


class ConversionTarget(_Vocabulary):
    """Work item types a ticket can be converted into."""

    FEATURE = "feature"
    ENHANCEMENT = "enhancement"


class InvoiceStatus(_Vocabulary):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"


class ActivityType(_Vocabulary):
    TICKET_CREATED = "ticket-created"
    TICKET_UPDATED = "ticket-updated"
    TICKET_RESOLVED = "ticket-resolved"
    MESSAGE_ADDED = "message-added"
    TIME_LOGGED = "time-logged"
    CONVERSION_REQUESTED = "conversion-requested"
    CONVERSION_APPROVED = "conversion-approved"
    CONVERSION_REJECTED = "conversion-rejected"


@dataclass(slots=True)
class Organization:
    """Client organization owning client users and tickets."""

    id: str
    name: str
    plan: str
    contact_email: str
    created_at: datetime


@dataclass(slots=True)
class User:
    id: str
    name: str
    email: str
    password_hash: str
    role: Role
    organization_id: str | None
    avatar: str
    created_at: datetime
    phone: str = ""


@dataclass(slots=True)
class Ticket:
    """Support ticket filed on behalf of an organization."""

    id: str
    title: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    category: str
    organization_id: str
    created_by: str
    assigned_to: str | None
    hours_worked: float
    created_at: datetime
    updated_at: datetime
    conversion_request_id: str | None = None


@dataclass(slots=True)
class Message:
    id: str
    ticket_id: str
    user_id: str
    content: str
    is_internal: bool
    created_at: datetime


@dataclass(slots=True)
class TimeEntry:
    id: str
    ticket_id: str
    user_id: str
    hours: float
    description: str
    date: str
    created_at: datetime


@dataclass(slots=True)
class ConversionRequest:
    """Proposal to turn a ticket into another work item type.

    ``applied_at`` is set once, by whichever vote claims the terminal effect.
    """

    id: str
    ticket_id: str
    proposed_type: ConversionTarget
    reason: str
    internal_approval: ApprovalStatus
    client_approval: ApprovalStatus
    proposed_by: str
    created_at: datetime
    applied_at: datetime | None = None


@dataclass(slots=True)
class Invoice:
    id: str
    organization_id: str
    month: int
    year: int
    tickets_closed: int
    total_hours: float
    rate_per_hour: float
    total_amount: float
    status: InvoiceStatus
    created_at: datetime


@dataclass(slots=True)
class ActivityItem:
    """Write-once audit log entry."""

    id: str
    type: ActivityType
    description: str
    user_id: str
    ticket_id: str | None
    created_at: datetime


@dataclass(slots=True)
class TicketDetail:
    """Ticket bundled with its messages, time entries and current conversion request."""

    ticket: Ticket
    messages: list[Message]
    time_entries: list[TimeEntry]
    conversion_request: ConversionRequest | None = None
