from __future__ import annotations

from fastapi import APIRouter, status

from supportdesk.api.schemas import InvoiceCreateRequest, InvoiceResponse, InvoiceStatusRequest
from supportdesk.dependencies.auth import CurrentActor
from supportdesk.dependencies.services import InvoiceServiceDep

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.get("", response_model=list[InvoiceResponse])
async def list_invoices(service: InvoiceServiceDep, actor: CurrentActor) -> list[InvoiceResponse]:
    return [InvoiceResponse.model_validate(invoice) for invoice in await service.list_invoices(actor)]


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(payload: InvoiceCreateRequest, service: InvoiceServiceDep, actor: CurrentActor) -> InvoiceResponse:
    invoice = await service.create_invoice(
        actor,
        organization_id=payload.organization_id,
        month=payload.month,
        year=payload.year,
        tickets_closed=payload.tickets_closed,
        total_hours=payload.total_hours,
        rate_per_hour=payload.rate_per_hour,
        total_amount=payload.total_amount,
    )
    return InvoiceResponse.model_validate(invoice)


@router.put("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice_status(
    invoice_id: str,
    payload: InvoiceStatusRequest,
    service: InvoiceServiceDep,
    actor: CurrentActor,
) -> InvoiceResponse:
    return InvoiceResponse.model_validate(await service.update_status(actor, invoice_id, payload.status))
