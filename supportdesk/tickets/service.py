from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

from supportdesk.access import Operation, authorize, ensure_visible, filter_visible
from supportdesk.conversions.state import current_request
from supportdesk.dashboard.activity import ActivityRecorder
from supportdesk.errors import NotFoundError, ValidationError
from supportdesk.identity.roles import Actor
from supportdesk.models import (
    ActivityType,
    Message,
    Ticket,
    TicketDetail,
    TicketPriority,
    TicketStatus,
    TimeEntry,
    User,
)
from supportdesk.storage.base import RecordKind, RecordStore

from .state import TicketStateMachine

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TicketService:
    """High level orchestration for ticket lifecycle operations."""

    store: RecordStore
    state_machine: TicketStateMachine = field(default_factory=TicketStateMachine)

    @property
    def activities(self) -> ActivityRecorder:
        return ActivityRecorder(self.store)

    async def list_tickets(
        self,
        actor: Actor,
        *,
        status: TicketStatus | None = None,
        priority: TicketPriority | None = None,
        category: str | None = None,
        organization_id: str | None = None,
        assigned_to: str | None = None,
        search: str | None = None,
    ) -> list[Ticket]:
        authorize(actor, Operation.TICKET_LIST)
        tickets = filter_visible(actor, await self.store.scan(RecordKind.TICKET))
        needle = search.lower() if search else None

        def matches(ticket: Ticket) -> bool:
            if status is not None and ticket.status is not status:
                return False
            if priority is not None and ticket.priority is not priority:
                return False
            if category and ticket.category != category:
                return False
            if organization_id and ticket.organization_id != organization_id:
                return False
            if assigned_to and ticket.assigned_to != assigned_to:
                return False
            if needle and needle not in ticket.title.lower() and needle not in ticket.description.lower():
                return False
            return True

        selected = [ticket for ticket in tickets if matches(ticket)]
        selected.sort(key=lambda ticket: ticket.created_at, reverse=True)
        return selected

    async def get_ticket(self, actor: Actor, ticket_id: str) -> TicketDetail:
        authorize(actor, Operation.TICKET_GET)
        ticket = await self.load_visible(actor, ticket_id)

        messages = sorted(await self.store.find(RecordKind.MESSAGE, "ticket_id", ticket_id), key=lambda m: m.created_at)
        if actor.is_client:
            messages = [message for message in messages if not message.is_internal]
        time_entries = sorted(
            await self.store.find(RecordKind.TIME_ENTRY, "ticket_id", ticket_id), key=lambda e: e.created_at
        )
        conversion = current_request(await self.store.find(RecordKind.CONVERSION, "ticket_id", ticket_id))
        return TicketDetail(
            ticket=ticket,
            messages=list(messages),
            time_entries=list(time_entries),
            conversion_request=conversion,
        )

    async def create_ticket(
        self,
        actor: Actor,
        *,
        title: str,
        description: str,
        priority: TicketPriority = TicketPriority.MEDIUM,
        category: str = "support",
        organization_id: str | None = None,
    ) -> Ticket:
        authorize(actor, Operation.TICKET_CREATE)
        if not title.strip():
            raise ValidationError("title is required")

        if actor.is_client:
            # clients always file under their own organization
            organization_id = actor.organization_id
            if not organization_id:
                raise ValidationError("Client account is not attached to an organization")
        elif not organization_id:
            raise ValidationError("organizationId is required")
        if await self.store.get(RecordKind.ORGANIZATION, organization_id) is None:
            raise ValidationError(f"Organization {organization_id} does not exist")

        now = datetime.now(timezone.utc)
        ticket = Ticket(
            id=str(uuid.uuid4()),
            title=title.strip(),
            description=description,
            status=self.state_machine.initial_state(),
            priority=priority,
            category=category,
            organization_id=organization_id,
            created_by=actor.id,
            assigned_to=None,
            hours_worked=0.0,
            created_at=now,
            updated_at=now,
        )
        await self.store.insert(RecordKind.TICKET, ticket)
        await self.activities.record(
            ActivityType.TICKET_CREATED,
            f"Ticket created: {ticket.title}",
            user_id=actor.id,
            ticket_id=ticket.id,
        )
        logger.info("Ticket %s created by %s for organization %s", ticket.id, actor.id, organization_id)
        return ticket

    async def update_ticket(
        self,
        actor: Actor,
        ticket_id: str,
        *,
        status: TicketStatus | None = None,
        priority: TicketPriority | None = None,
        assigned_to: str | None = None,
        hours_worked: float | None = None,
    ) -> Ticket:
        """Apply independent field changes.

        ``assigned_to`` is tri-state: ``None`` leaves the assignment alone, an
        empty string clears it and any other value assigns the ticket.
        """

        authorize(actor, Operation.TICKET_UPDATE)
        current = await self.load_visible(actor, ticket_id)

        changes: dict[str, Any] = {}
        if status is not None:
            self.state_machine.assert_transition(current.status, status)
            changes["status"] = status
        if priority is not None:
            changes["priority"] = priority
        if assigned_to is not None:
            authorize(actor, Operation.TICKET_ASSIGN)
            if assigned_to:
                await self._ensure_assignable(assigned_to)
            changes["assigned_to"] = assigned_to or None
        if hours_worked is not None:
            if hours_worked < 0:
                raise ValidationError("hoursWorked cannot be negative")
            changes["hours_worked"] = hours_worked
        if not changes:
            return current

        changes["updated_at"] = datetime.now(timezone.utc)
        updated = await self.store.update(RecordKind.TICKET, ticket_id, changes)
        if updated is None:
            raise NotFoundError(f"Ticket {ticket_id} not found")

        if status is TicketStatus.RESOLVED and current.status is not TicketStatus.RESOLVED:
            await self.activities.record(
                ActivityType.TICKET_RESOLVED, f"Ticket resolved: {updated.title}", user_id=actor.id, ticket_id=ticket_id
            )
        else:
            changed = ", ".join(sorted(name for name in changes if name != "updated_at"))
            await self.activities.record(
                ActivityType.TICKET_UPDATED,
                f"Ticket updated ({changed}): {updated.title}",
                user_id=actor.id,
                ticket_id=ticket_id,
            )
        return updated

    async def clear_assignment(self, ticket_id: str) -> Ticket | None:
        """Remove the assignee of a ticket regardless of scope. Used by the user deletion cascade."""

        return await self.store.update(
            RecordKind.TICKET,
            ticket_id,
            {"assigned_to": None, "updated_at": datetime.now(timezone.utc)},
        )

    async def tickets_assigned_to(self, user_id: str) -> list[Ticket]:
        return list(await self.store.find(RecordKind.TICKET, "assigned_to", user_id))

    async def add_message(self, actor: Actor, ticket_id: str, *, content: str, is_internal: bool = False) -> Message:
        authorize(actor, Operation.MESSAGE_ADD)
        ticket = await self.load_visible(actor, ticket_id)
        if not content.strip():
            raise ValidationError("content is required")

        now = datetime.now(timezone.utc)
        message = Message(
            id=str(uuid.uuid4()),
            ticket_id=ticket_id,
            user_id=actor.id,
            content=content,
            is_internal=is_internal and not actor.is_client,
            created_at=now,
        )
        await self.store.insert(RecordKind.MESSAGE, message)
        await self.store.update(RecordKind.TICKET, ticket_id, {"updated_at": now})
        await self.activities.record(
            ActivityType.MESSAGE_ADDED, f"Message added to: {ticket.title}", user_id=actor.id, ticket_id=ticket_id
        )
        return message

    async def add_time_entry(
        self,
        actor: Actor,
        ticket_id: str,
        *,
        hours: float,
        description: str,
        date: str,
    ) -> TimeEntry:
        """Append a time entry and add its hours to the ticket's running total.

        The total is a read-modify-write on the ticket; concurrent entries on
        the same ticket can under-count.
        """

        authorize(actor, Operation.TIME_ENTRY_ADD)
        ticket = await self.load_visible(actor, ticket_id)
        if hours <= 0:
            raise ValidationError("hours must be positive")
        _parse_work_date(date)

        now = datetime.now(timezone.utc)
        entry = TimeEntry(
            id=str(uuid.uuid4()),
            ticket_id=ticket_id,
            user_id=actor.id,
            hours=hours,
            description=description,
            date=date,
            created_at=now,
        )
        await self.store.insert(RecordKind.TIME_ENTRY, entry)
        await self.store.update(
            RecordKind.TICKET,
            ticket_id,
            {"hours_worked": round(ticket.hours_worked + hours, 2), "updated_at": now},
        )
        await self.activities.record(
            ActivityType.TIME_LOGGED, f"{hours:g}h logged on: {ticket.title}", user_id=actor.id, ticket_id=ticket_id
        )
        return entry

    async def load_visible(self, actor: Actor, ticket_id: str) -> Ticket:
        ticket = await self.store.get(RecordKind.TICKET, ticket_id)
        return ensure_visible(actor, ticket, label="Ticket", record_id=ticket_id)

    async def _ensure_assignable(self, user_id: str) -> User:
        user = await self.store.get(RecordKind.USER, user_id)
        if user is None:
            raise ValidationError(f"Assignee {user_id} does not exist")
        if not user.role.is_internal:
            raise ValidationError("Tickets can only be assigned to internal staff")
        return user


def _parse_work_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid work date {value!r}; expected YYYY-MM-DD") from exc
