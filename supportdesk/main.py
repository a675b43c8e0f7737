from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from supportdesk.api.routes import approvals, dashboard, health, invoices, organizations, tickets, users
from supportdesk.conversions.service import ConversionService
from supportdesk.core.config import Settings, get_settings
from supportdesk.core.logging import configure_logging, init_tracer, shutdown_tracer
from supportdesk.dashboard.service import DashboardService
from supportdesk.errors import ForbiddenError, InvalidStateError, NotFoundError, SupportDeskError, ValidationError
from supportdesk.invoices.service import InvoiceService
from supportdesk.organizations.service import OrganizationService
from supportdesk.storage import MemoryStore, RecordStore, SQLStore
from supportdesk.tickets.service import TicketService
from supportdesk.users.service import UserService

logger = logging.getLogger(__name__)

_ERROR_STATUS: dict[type[SupportDeskError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    InvalidStateError: status.HTTP_409_CONFLICT,
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def build_store(settings: Settings) -> RecordStore:
    if settings.storage_backend == "postgres":
        return SQLStore.from_dsn(settings.postgres_dsn)
    return MemoryStore()


def install_services(app: FastAPI, store: RecordStore, settings: Settings) -> None:
    """Attach every service to ``app.state`` so the dependencies can find them."""

    ticket_service = TicketService(store)
    app.state.store = store
    app.state.ticket_service = ticket_service
    app.state.conversion_service = ConversionService(store)
    app.state.user_service = UserService(store, ticket_service, default_password=settings.default_password)
    app.state.organization_service = OrganizationService(store)
    app.state.invoice_service = InvoiceService(store)
    app.state.dashboard_service = DashboardService(store, activity_limit=settings.activity_limit)


async def handle_domain_error(request: Request, exc: SupportDeskError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in _ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    if status_code == status.HTTP_403_FORBIDDEN:
        logger.info("Forbidden %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - executed by framework
    settings = get_settings()
    app.state.logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)
    app.state.tracer_provider = tracer_provider

    store = build_store(settings)
    await store.ensure_schema()
    install_services(app, store, settings)
    logger.info("SupportDesk API started with %s storage", settings.storage_backend)
    try:
        yield
    finally:
        await store.close()
        shutdown_tracer(tracer_provider)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.add_exception_handler(SupportDeskError, handle_domain_error)
    for module in (health, users, organizations, tickets, approvals, invoices, dashboard):
        app.include_router(module.router, prefix="/api")
    return app


app = create_app()
