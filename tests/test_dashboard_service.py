from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import BASE_TIME, make_conversion
from supportdesk.dashboard.service import DashboardService
from supportdesk.models import ActivityItem, ActivityType, ApprovalStatus
from supportdesk.storage import RecordKind


@pytest.mark.asyncio
async def test_stats_cover_visible_tickets(store, admin, client_b):
    await store.insert(RecordKind.CONVERSION, make_conversion("c-a", "t-a1"))
    await store.insert(RecordKind.CONVERSION, make_conversion("c-b", "t-b1", internal=ApprovalStatus.APPROVED))
    service = DashboardService(store)

    overall = await service.stats(admin)
    scoped = await service.stats(client_b)

    assert (overall.total_tickets, overall.open_tickets, overall.resolved_tickets) == (3, 2, 1)
    assert overall.total_hours == 3.5
    assert overall.pending_approvals == 2
    assert (scoped.total_tickets, scoped.open_tickets, scoped.in_progress_tickets) == (1, 1, 0)
    assert scoped.total_hours == 2.0
    assert scoped.pending_approvals == 1


@pytest.mark.asyncio
async def test_activities_are_scoped_newest_first_and_limited(store, admin, client_a):
    items = [
        ActivityItem("a-1", ActivityType.TICKET_CREATED, "created a1", "u-client-a", "t-a1", BASE_TIME),
        ActivityItem("a-2", ActivityType.MESSAGE_ADDED, "message b1", "u-client-b", "t-b1", BASE_TIME + timedelta(minutes=1)),
        ActivityItem("a-3", ActivityType.TIME_LOGGED, "logged a1", "u-staff", "t-a1", BASE_TIME + timedelta(minutes=2)),
    ]
    for item in items:
        await store.insert(RecordKind.ACTIVITY, item)
    service = DashboardService(store, activity_limit=2)

    assert [item.id for item in await service.activities(client_a)] == ["a-3", "a-1"]
    assert len(await service.activities(admin)) == 2
    assert len(await service.activities(admin, limit=10)) == 3
