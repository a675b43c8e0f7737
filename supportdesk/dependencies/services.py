from __future__ import annotations

from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request

from supportdesk.conversions.service import ConversionService
from supportdesk.dashboard.service import DashboardService
from supportdesk.invoices.service import InvoiceService
from supportdesk.organizations.service import OrganizationService
from supportdesk.tickets.service import TicketService
from supportdesk.users.service import UserService


def _service(request: Request, name: str, label: str) -> Any:
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(status_code=503, detail=f"{label} service is not configured")
    return service


async def get_ticket_service(request: Request) -> TicketService:
    return _service(request, "ticket_service", "Ticket")


async def get_conversion_service(request: Request) -> ConversionService:
    return _service(request, "conversion_service", "Conversion")


async def get_user_service(request: Request) -> UserService:
    return _service(request, "user_service", "User")


async def get_organization_service(request: Request) -> OrganizationService:
    return _service(request, "organization_service", "Organization")


async def get_invoice_service(request: Request) -> InvoiceService:
    return _service(request, "invoice_service", "Invoice")


async def get_dashboard_service(request: Request) -> DashboardService:
    return _service(request, "dashboard_service", "Dashboard")


TicketServiceDep = Annotated[TicketService, Depends(get_ticket_service)]
ConversionServiceDep = Annotated[ConversionService, Depends(get_conversion_service)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
OrganizationServiceDep = Annotated[OrganizationService, Depends(get_organization_service)]
InvoiceServiceDep = Annotated[InvoiceService, Depends(get_invoice_service)]
DashboardServiceDep = Annotated[DashboardService, Depends(get_dashboard_service)]
