from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from supportdesk.identity.roles import Actor, Role
from supportdesk.models import (
    ApprovalStatus,
    ConversionRequest,
    ConversionTarget,
    Invoice,
    InvoiceStatus,
    Message,
    Organization,
    Ticket,
    TicketPriority,
    TicketStatus,
    User,
)
from supportdesk.storage import MemoryStore, RecordKind

BASE_TIME = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _user(user_id: str, name: str, role: Role, organization_id: str | None = None) -> User:
    return User(
        id=user_id,
        name=name,
        email=f"{user_id}@example.com",
        password_hash="not-a-bcrypt-hash",
        role=role,
        organization_id=organization_id,
        avatar="".join(word[0] for word in name.split())[:2].upper(),
        created_at=BASE_TIME,
    )


def make_ticket(
    ticket_id: str,
    organization_id: str,
    *,
    title: str = "Printer offline",
    status: TicketStatus = TicketStatus.OPEN,
    assigned_to: str | None = None,
    hours_worked: float = 0.0,
    minutes: int = 0,
) -> Ticket:
    created = BASE_TIME + timedelta(minutes=minutes)
    return Ticket(
        id=ticket_id,
        title=title,
        description=f"Description of {title}",
        status=status,
        priority=TicketPriority.MEDIUM,
        category="support",
        organization_id=organization_id,
        created_by="u-client-a",
        assigned_to=assigned_to,
        hours_worked=hours_worked,
        created_at=created,
        updated_at=created,
    )


def make_conversion(
    request_id: str,
    ticket_id: str,
    *,
    internal: ApprovalStatus = ApprovalStatus.PENDING,
    client: ApprovalStatus = ApprovalStatus.PENDING,
    minutes: int = 0,
) -> ConversionRequest:
    return ConversionRequest(
        id=request_id,
        ticket_id=ticket_id,
        proposed_type=ConversionTarget.FEATURE,
        reason="Customer wants a bulk export",
        internal_approval=internal,
        client_approval=client,
        proposed_by="u-lead",
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


@pytest.fixture
def admin() -> Actor:
    return Actor(id="u-admin", role=Role.ADMIN)


@pytest.fixture
def lead() -> Actor:
    return Actor(id="u-lead", role=Role.SUPPORT_LEAD)


@pytest.fixture
def staff() -> Actor:
    return Actor(id="u-staff", role=Role.SUPPORT_STAFF)


@pytest.fixture
def client_a() -> Actor:
    return Actor(id="u-client-a", role=Role.CLIENT, organization_id="org-a")


@pytest.fixture
def client_b() -> Actor:
    return Actor(id="u-client-b", role=Role.CLIENT, organization_id="org-b")


@pytest_asyncio.fixture
async def store() -> MemoryStore:
    """Two organizations, one client per organization, three internal users and three tickets."""

    store = MemoryStore()
    for organization in (
        Organization("org-a", "Acme", "professional", "it@acme.example.com", BASE_TIME),
        Organization("org-b", "Globex", "starter", "help@globex.example.com", BASE_TIME),
    ):
        await store.insert(RecordKind.ORGANIZATION, organization)
    for user in (
        _user("u-admin", "Ada Admin", Role.ADMIN),
        _user("u-lead", "Lee Lead", Role.SUPPORT_LEAD),
        _user("u-staff", "Sam Staff", Role.SUPPORT_STAFF),
        _user("u-client-a", "Alice Acme", Role.CLIENT, "org-a"),
        _user("u-client-b", "Bob Globex", Role.CLIENT, "org-b"),
    ):
        await store.insert(RecordKind.USER, user)
    for ticket in (
        make_ticket("t-a1", "org-a", title="Printer offline", assigned_to="u-staff", hours_worked=1.5),
        make_ticket("t-a2", "org-a", title="VPN drops", status=TicketStatus.RESOLVED, minutes=5),
        make_ticket("t-b1", "org-b", title="Invoice export", assigned_to="u-staff", hours_worked=2.0, minutes=10),
    ):
        await store.insert(RecordKind.TICKET, ticket)
    for message in (
        Message("m-1", "t-a1", "u-client-a", "It is still offline", False, BASE_TIME + timedelta(minutes=1)),
        Message("m-2", "t-a1", "u-staff", "Driver issue, check firmware", True, BASE_TIME + timedelta(minutes=2)),
    ):
        await store.insert(RecordKind.MESSAGE, message)
    await store.insert(
        RecordKind.INVOICE,
        Invoice("inv-a", "org-a", 2, 2026, 4, 12.5, 80.0, 1000.0, InvoiceStatus.DRAFT, BASE_TIME),
    )
    await store.insert(
        RecordKind.INVOICE,
        Invoice("inv-b", "org-b", 2, 2026, 1, 2.0, 90.0, 180.0, InvoiceStatus.SENT, BASE_TIME),
    )
    return store
