from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from supportdesk.access import Operation, authorize, filter_visible
from supportdesk.errors import NotFoundError, ValidationError
from supportdesk.identity.roles import Actor
from supportdesk.models import Invoice, InvoiceStatus
from supportdesk.storage.base import RecordKind, RecordStore

logger = logging.getLogger(__name__)


class InvoiceService:
    """Monthly invoices built from externally aggregated figures."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def list_invoices(self, actor: Actor) -> list[Invoice]:
        """Visible invoices, newest billing period first."""

        authorize(actor, Operation.INVOICE_LIST)
        invoices = filter_visible(actor, await self._store.scan(RecordKind.INVOICE))
        invoices.sort(key=lambda invoice: (invoice.year, invoice.month, invoice.created_at), reverse=True)
        return invoices

    async def create_invoice(
        self,
        actor: Actor,
        *,
        organization_id: str,
        month: int,
        year: int,
        tickets_closed: int,
        total_hours: float,
        rate_per_hour: float,
        total_amount: float | None = None,
    ) -> Invoice:
        authorize(actor, Operation.INVOICE_CREATE)
        if not 1 <= month <= 12:
            raise ValidationError(f"Invalid month {month}; expected 1-12")
        if tickets_closed < 0 or total_hours < 0 or rate_per_hour < 0:
            raise ValidationError("Invoice figures cannot be negative")
        if await self._store.get(RecordKind.ORGANIZATION, organization_id) is None:
            raise ValidationError(f"Organization {organization_id} does not exist")

        if total_amount is None:
            total_amount = round(total_hours * rate_per_hour, 2)
        invoice = Invoice(
            id=str(uuid.uuid4()),
            organization_id=organization_id,
            month=month,
            year=year,
            tickets_closed=tickets_closed,
            total_hours=total_hours,
            rate_per_hour=rate_per_hour,
            total_amount=total_amount,
            status=InvoiceStatus.DRAFT,
            created_at=datetime.now(timezone.utc),
        )
        await self._store.insert(RecordKind.INVOICE, invoice)
        logger.info("Invoice %s created for organization %s (%d-%02d)", invoice.id, organization_id, year, month)
        return invoice

    async def update_status(self, actor: Actor, invoice_id: str, status: InvoiceStatus) -> Invoice:
        authorize(actor, Operation.INVOICE_UPDATE)
        updated = await self._store.update(RecordKind.INVOICE, invoice_id, {"status": status})
        if updated is None:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return updated
