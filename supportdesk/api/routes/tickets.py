from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from supportdesk.api.schemas import (
    ConversionCreateRequest,
    ConversionRequestResponse,
    MessageCreateRequest,
    MessageResponse,
    TicketCreateRequest,
    TicketDetailResponse,
    TicketResponse,
    TicketUpdateRequest,
    TimeEntryCreateRequest,
    TimeEntryResponse,
)
from supportdesk.dependencies.auth import CurrentActor
from supportdesk.dependencies.services import ConversionServiceDep, TicketServiceDep
from supportdesk.models import Ticket, TicketPriority, TicketStatus

router = APIRouter(prefix="/tickets", tags=["tickets"])


def _to_response(ticket: Ticket) -> TicketResponse:
    return TicketResponse.model_validate(ticket)


@router.get("", response_model=list[TicketResponse])
async def list_tickets(
    service: TicketServiceDep,
    actor: CurrentActor,
    status_filter: TicketStatus | None = Query(default=None, alias="status"),
    priority: TicketPriority | None = Query(default=None),
    category: str | None = Query(default=None),
    organization_id: str | None = Query(default=None, alias="organizationId"),
    assigned_to: str | None = Query(default=None, alias="assignedTo"),
    search: str | None = Query(default=None),
) -> list[TicketResponse]:
    tickets = await service.list_tickets(
        actor,
        status=status_filter,
        priority=priority,
        category=category,
        organization_id=organization_id,
        assigned_to=assigned_to,
        search=search,
    )
    return [_to_response(ticket) for ticket in tickets]


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(payload: TicketCreateRequest, service: TicketServiceDep, actor: CurrentActor) -> TicketResponse:
    ticket = await service.create_ticket(
        actor,
        title=payload.title,
        description=payload.description,
        priority=payload.priority,
        category=payload.category,
        organization_id=payload.organization_id,
    )
    return _to_response(ticket)


@router.get("/{ticket_id}", response_model=TicketDetailResponse)
async def get_ticket(ticket_id: str, service: TicketServiceDep, actor: CurrentActor) -> TicketDetailResponse:
    return TicketDetailResponse.from_detail(await service.get_ticket(actor, ticket_id))


@router.put("/{ticket_id}", response_model=TicketResponse)
async def update_ticket(
    ticket_id: str,
    payload: TicketUpdateRequest,
    service: TicketServiceDep,
    actor: CurrentActor,
) -> TicketResponse:
    if not payload.model_fields_set:
        raise HTTPException(status_code=400, detail="No fields provided for update")
    ticket = await service.update_ticket(
        actor,
        ticket_id,
        status=payload.status,
        priority=payload.priority,
        assigned_to=payload.assigned_to,
        hours_worked=payload.hours_worked,
    )
    return _to_response(ticket)


@router.post("/{ticket_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def add_message(
    ticket_id: str,
    payload: MessageCreateRequest,
    service: TicketServiceDep,
    actor: CurrentActor,
) -> MessageResponse:
    message = await service.add_message(actor, ticket_id, content=payload.content, is_internal=payload.is_internal)
    return MessageResponse.model_validate(message)


@router.post("/{ticket_id}/time-entries", response_model=TimeEntryResponse, status_code=status.HTTP_201_CREATED)
async def add_time_entry(
    ticket_id: str,
    payload: TimeEntryCreateRequest,
    service: TicketServiceDep,
    actor: CurrentActor,
) -> TimeEntryResponse:
    entry = await service.add_time_entry(
        actor,
        ticket_id,
        hours=payload.hours,
        description=payload.description,
        date=payload.date,
    )
    return TimeEntryResponse.model_validate(entry)


@router.post("/{ticket_id}/convert", response_model=ConversionRequestResponse, status_code=status.HTTP_201_CREATED)
async def request_conversion(
    ticket_id: str,
    payload: ConversionCreateRequest,
    service: ConversionServiceDep,
    actor: CurrentActor,
) -> ConversionRequestResponse:
    request = await service.request_conversion(
        actor,
        ticket_id,
        proposed_type=payload.proposed_type,
        reason=payload.reason,
    )
    return ConversionRequestResponse.from_request(request)
