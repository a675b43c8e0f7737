from __future__ import annotations

from dataclasses import dataclass

from supportdesk.access import Operation, authorize, filter_by_ticket, filter_visible
from supportdesk.conversions.state import ConversionStateMachine
from supportdesk.identity.roles import Actor
from supportdesk.models import ActivityItem, TicketStatus
from supportdesk.storage.base import RecordKind, RecordStore

DEFAULT_ACTIVITY_LIMIT = 50


@dataclass(slots=True)
class DashboardStats:
    total_tickets: int = 0
    open_tickets: int = 0
    in_progress_tickets: int = 0
    resolved_tickets: int = 0
    closed_tickets: int = 0
    total_hours: float = 0.0
    pending_approvals: int = 0


class DashboardService:
    """Aggregate views over the records an actor can see."""

    def __init__(self, store: RecordStore, *, activity_limit: int = DEFAULT_ACTIVITY_LIMIT) -> None:
        self._store = store
        self._activity_limit = activity_limit

    async def stats(self, actor: Actor) -> DashboardStats:
        authorize(actor, Operation.DASHBOARD_VIEW)
        tickets = filter_visible(actor, await self._store.scan(RecordKind.TICKET))
        stats = DashboardStats(total_tickets=len(tickets))
        for ticket in tickets:
            if ticket.status is TicketStatus.OPEN:
                stats.open_tickets += 1
            elif ticket.status is TicketStatus.IN_PROGRESS:
                stats.in_progress_tickets += 1
            elif ticket.status is TicketStatus.RESOLVED:
                stats.resolved_tickets += 1
            elif ticket.status is TicketStatus.CLOSED:
                stats.closed_tickets += 1
            stats.total_hours += ticket.hours_worked
        stats.total_hours = round(stats.total_hours, 2)

        visible_ids = {ticket.id for ticket in tickets}
        requests = filter_by_ticket(await self._store.scan(RecordKind.CONVERSION), visible_ids)
        stats.pending_approvals = sum(1 for request in requests if ConversionStateMachine.awaiting_vote(request))
        return stats

    async def activities(self, actor: Actor, limit: int | None = None) -> list[ActivityItem]:
        """Newest visible activity items first."""

        authorize(actor, Operation.DASHBOARD_VIEW)
        items = list(await self._store.scan(RecordKind.ACTIVITY))
        if actor.is_scoped:
            tickets = filter_visible(actor, await self._store.scan(RecordKind.TICKET))
            items = filter_by_ticket(items, {ticket.id for ticket in tickets})
        items.sort(key=lambda item: item.created_at, reverse=True)
        return items[: limit or self._activity_limit]
