from __future__ import annotations

from fastapi import APIRouter

from supportdesk.api.schemas import ApprovalResponse, ApprovalVoteRequest, ConversionRequestResponse
from supportdesk.dependencies.auth import CurrentActor
from supportdesk.dependencies.services import ConversionServiceDep

router = APIRouter(prefix="/approvals", tags=["approvals"])


@router.get("", response_model=list[ConversionRequestResponse])
async def list_pending_approvals(service: ConversionServiceDep, actor: CurrentActor) -> list[ConversionRequestResponse]:
    return [ConversionRequestResponse.from_request(request) for request in await service.list_pending(actor)]


@router.put("/{request_id}", response_model=ApprovalResponse)
async def vote(
    request_id: str,
    payload: ApprovalVoteRequest,
    service: ConversionServiceDep,
    actor: CurrentActor,
) -> ApprovalResponse:
    result = await service.apply_approval(actor, request_id, payload.side, payload.status)
    return ApprovalResponse(
        request=ConversionRequestResponse.from_request(result.request),
        status=result.state,
        effect_applied=result.effect_applied,
    )
