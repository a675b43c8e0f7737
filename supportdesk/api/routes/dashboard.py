from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Query

from supportdesk.api.schemas import ActivityResponse, DashboardStatsResponse
from supportdesk.dependencies.auth import CurrentActor
from supportdesk.dependencies.services import DashboardServiceDep

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStatsResponse)
async def stats(service: DashboardServiceDep, actor: CurrentActor) -> DashboardStatsResponse:
    return DashboardStatsResponse(**asdict(await service.stats(actor)))


@router.get("/activities", response_model=list[ActivityResponse])
async def activities(
    service: DashboardServiceDep,
    actor: CurrentActor,
    limit: int | None = Query(default=None, ge=1, le=500),
) -> list[ActivityResponse]:
    return [ActivityResponse.model_validate(item) for item in await service.activities(actor, limit)]
