from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Protocol, Sequence

from supportdesk.models import (
    ActivityItem,
    ConversionRequest,
    Invoice,
    Message,
    Organization,
    Ticket,
    TimeEntry,
    User,
)


class RecordKind(str, Enum):
    """Collections held by the record store."""

    ORGANIZATION = "organizations"
    USER = "users"
    TICKET = "tickets"
    MESSAGE = "ticket_messages"
    TIME_ENTRY = "time_entries"
    CONVERSION = "conversion_requests"
    INVOICE = "invoices"
    ACTIVITY = "activities"

    @property
    def record_type(self) -> type:
        return _RECORD_TYPES[self]


_RECORD_TYPES: Mapping[RecordKind, type] = {
    RecordKind.ORGANIZATION: Organization,
    RecordKind.USER: User,
    RecordKind.TICKET: Ticket,
    RecordKind.MESSAGE: Message,
    RecordKind.TIME_ENTRY: TimeEntry,
    RecordKind.CONVERSION: ConversionRequest,
    RecordKind.INVOICE: Invoice,
    RecordKind.ACTIVITY: ActivityItem,
}


class RecordStore(Protocol):
    """Keyed record storage consumed by the services.

    ``update`` applies ``changes`` only when every field in ``expected`` still
    holds the given value and returns the updated record, or ``None`` when the
    record is missing or the precondition failed.
    """

    async def ensure_schema(self) -> None:
        ...

    async def get(self, kind: RecordKind, record_id: str) -> Any | None:
        ...

    async def find(self, kind: RecordKind, field: str, value: Any) -> Sequence[Any]:
        ...

    async def scan(self, kind: RecordKind) -> Sequence[Any]:
        ...

    async def insert(self, kind: RecordKind, record: Any) -> None:
        ...

    async def update(
        self,
        kind: RecordKind,
        record_id: str,
        changes: Mapping[str, Any],
        *,
        expected: Mapping[str, Any] | None = None,
    ) -> Any | None:
        ...

    async def delete(self, kind: RecordKind, record_id: str) -> bool:
        ...

    async def close(self) -> None:
        ...
