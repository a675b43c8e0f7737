from __future__ import annotations

import pytest

from supportdesk.errors import ForbiddenError, NotFoundError, ValidationError
from supportdesk.models import ActivityType, TicketPriority, TicketStatus
from supportdesk.storage import RecordKind
from supportdesk.tickets.service import TicketService


@pytest.fixture
def service(store):
    return TicketService(store)


async def _activity_types(store) -> list[ActivityType]:
    return [item.type for item in await store.scan(RecordKind.ACTIVITY)]


@pytest.mark.asyncio
async def test_list_tickets_is_scoped_and_newest_first(service, admin, client_a):
    assert [ticket.id for ticket in await service.list_tickets(admin)] == ["t-b1", "t-a2", "t-a1"]
    assert [ticket.id for ticket in await service.list_tickets(client_a)] == ["t-a2", "t-a1"]


@pytest.mark.asyncio
async def test_list_tickets_filters(service, admin):
    resolved = await service.list_tickets(admin, status=TicketStatus.RESOLVED)
    assigned = await service.list_tickets(admin, assigned_to="u-staff", organization_id="org-b")
    searched = await service.list_tickets(admin, search="vpn")
    by_description = await service.list_tickets(admin, search="DESCRIPTION OF INVOICE")

    assert [ticket.id for ticket in resolved] == ["t-a2"]
    assert [ticket.id for ticket in assigned] == ["t-b1"]
    assert [ticket.id for ticket in searched] == ["t-a2"]
    assert [ticket.id for ticket in by_description] == ["t-b1"]


@pytest.mark.asyncio
async def test_client_does_not_see_internal_messages(service, client_a, staff):
    client_view = await service.get_ticket(client_a, "t-a1")
    staff_view = await service.get_ticket(staff, "t-a1")

    assert [message.id for message in client_view.messages] == ["m-1"]
    assert [message.id for message in staff_view.messages] == ["m-1", "m-2"]
    assert client_view.conversion_request is None


@pytest.mark.asyncio
async def test_client_cannot_reach_other_organization_ticket(service, store, client_a):
    with pytest.raises(NotFoundError):
        await service.get_ticket(client_a, "t-b1")
    with pytest.raises(NotFoundError):
        await service.update_ticket(client_a, "t-b1", priority=TicketPriority.URGENT)
    with pytest.raises(NotFoundError):
        await service.add_message(client_a, "t-b1", content="hello?")

    assert (await store.get(RecordKind.TICKET, "t-b1")).priority is TicketPriority.MEDIUM


@pytest.mark.asyncio
async def test_client_ticket_is_filed_under_own_organization(service, store, client_a):
    ticket = await service.create_ticket(
        client_a,
        title="  Cannot log in ",
        description="SSO loop",
        organization_id="org-b",
    )

    assert ticket.organization_id == "org-a"
    assert ticket.title == "Cannot log in"
    assert ticket.status is TicketStatus.OPEN
    assert ticket.hours_worked == 0
    assert await _activity_types(store) == [ActivityType.TICKET_CREATED]


@pytest.mark.asyncio
async def test_internal_ticket_requires_existing_organization(service, staff):
    with pytest.raises(ValidationError):
        await service.create_ticket(staff, title="Outage", description="", organization_id=None)
    with pytest.raises(ValidationError):
        await service.create_ticket(staff, title="Outage", description="", organization_id="org-missing")


@pytest.mark.asyncio
async def test_assignment_is_tri_state(service, lead):
    untouched = await service.update_ticket(lead, "t-a1", priority=TicketPriority.HIGH)
    assert untouched.assigned_to == "u-staff"

    reassigned = await service.update_ticket(lead, "t-a1", assigned_to="u-lead")
    assert reassigned.assigned_to == "u-lead"

    cleared = await service.update_ticket(lead, "t-a1", assigned_to="")
    assert cleared.assigned_to is None


@pytest.mark.asyncio
async def test_assignment_requires_internal_assignee(service, lead, client_a):
    with pytest.raises(ValidationError):
        await service.update_ticket(lead, "t-a1", assigned_to="u-client-a")
    with pytest.raises(ValidationError):
        await service.update_ticket(lead, "t-a1", assigned_to="u-ghost")
    with pytest.raises(ForbiddenError):
        await service.update_ticket(client_a, "t-a1", assigned_to="u-staff")


@pytest.mark.asyncio
async def test_resolving_records_resolved_activity(service, store, staff):
    ticket = await service.update_ticket(staff, "t-a1", status=TicketStatus.RESOLVED)

    assert ticket.status is TicketStatus.RESOLVED
    assert ticket.updated_at > ticket.created_at
    assert await _activity_types(store) == [ActivityType.TICKET_RESOLVED]


@pytest.mark.asyncio
async def test_empty_update_returns_current_ticket(service, store, staff):
    ticket = await service.update_ticket(staff, "t-a1")
    assert ticket == await store.get(RecordKind.TICKET, "t-a1")
    assert await _activity_types(store) == []


@pytest.mark.asyncio
async def test_client_messages_are_never_internal(service, client_a):
    message = await service.add_message(client_a, "t-a1", content="Any update?", is_internal=True)
    assert message.is_internal is False


@pytest.mark.asyncio
async def test_time_entry_adds_hours_to_ticket(service, store, staff):
    entry = await service.add_time_entry(staff, "t-a1", hours=0.75, description="Firmware", date="2026-03-02")

    ticket = await store.get(RecordKind.TICKET, "t-a1")
    assert entry.hours == 0.75
    assert ticket.hours_worked == 2.25
    assert await _activity_types(store) == [ActivityType.TIME_LOGGED]

    detail = await service.get_ticket(staff, "t-a1")
    assert [item.id for item in detail.time_entries] == [entry.id]


@pytest.mark.asyncio
@pytest.mark.parametrize(("hours", "work_date"), [(0, "2026-03-02"), (-1, "2026-03-02"), (1, "02/03/2026")])
async def test_time_entry_validation(service, staff, hours, work_date):
    with pytest.raises(ValidationError):
        await service.add_time_entry(staff, "t-a1", hours=hours, description="", date=work_date)
