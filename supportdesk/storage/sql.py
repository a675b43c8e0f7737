from __future__ import annotations

from dataclasses import fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Sequence

from sqlalchemy import update as sql_update
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel, select

from supportdesk.db.models import (
    ActivityTable,
    ConversionRequestTable,
    InvoiceTable,
    OrganizationTable,
    TicketMessageTable,
    TicketTable,
    TimeEntryTable,
    UserTable,
)
from supportdesk.identity.roles import Role
from supportdesk.models import (
    ActivityType,
    ApprovalStatus,
    ConversionTarget,
    InvoiceStatus,
    TicketPriority,
    TicketStatus,
)

from .base import RecordKind

_TABLES: Mapping[RecordKind, type[SQLModel]] = {
    RecordKind.ORGANIZATION: OrganizationTable,
    RecordKind.USER: UserTable,
    RecordKind.TICKET: TicketTable,
    RecordKind.MESSAGE: TicketMessageTable,
    RecordKind.TIME_ENTRY: TimeEntryTable,
    RecordKind.CONVERSION: ConversionRequestTable,
    RecordKind.INVOICE: InvoiceTable,
    RecordKind.ACTIVITY: ActivityTable,
}

_ENUM_FIELDS: Mapping[RecordKind, Mapping[str, type[Enum]]] = {
    RecordKind.USER: {"role": Role},
    RecordKind.TICKET: {"status": TicketStatus, "priority": TicketPriority},
    RecordKind.CONVERSION: {
        "proposed_type": ConversionTarget,
        "internal_approval": ApprovalStatus,
        "client_approval": ApprovalStatus,
    },
    RecordKind.INVOICE: {"status": InvoiceStatus},
    RecordKind.ACTIVITY: {"type": ActivityType},
}


def to_asyncpg_dsn(dsn: str) -> str:
    """Ensure the SQLAlchemy DSN uses the asyncpg driver."""

    if dsn.startswith("postgresql+asyncpg://"):
        return dsn
    if dsn.startswith("postgresql://"):
        return "postgresql+asyncpg://" + dsn[len("postgresql://") :]
    return dsn


class SQLStore:
    """Record store backed by SQLModel tables on an async SQLAlchemy engine."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        engine: AsyncEngine | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._engine: AsyncEngine | None = engine

    @classmethod
    def from_dsn(cls, dsn: str) -> "SQLStore":
        engine = create_async_engine(to_asyncpg_dsn(dsn), future=True)
        return cls(async_sessionmaker(engine, expire_on_commit=False), engine=engine)

    async def ensure_schema(self) -> None:
        if self._engine is None:
            raise RuntimeError("Session factory is not bound to an async engine")
        async with self._engine.begin() as connection:
            await connection.run_sync(SQLModel.metadata.create_all)

    async def get(self, kind: RecordKind, record_id: str) -> Any | None:
        async with self._session_factory() as session:
            row = await session.get(_TABLES[kind], record_id)
        return None if row is None else self._row_to_record(kind, row)

    async def find(self, kind: RecordKind, field: str, value: Any) -> Sequence[Any]:
        table = _TABLES[kind]
        async with self._session_factory() as session:
            result = await session.execute(select(table).where(getattr(table, field) == _to_column(value)))
            rows = result.scalars().all()
        return [self._row_to_record(kind, row) for row in rows]

    async def scan(self, kind: RecordKind) -> Sequence[Any]:
        async with self._session_factory() as session:
            result = await session.execute(select(_TABLES[kind]))
            rows = result.scalars().all()
        return [self._row_to_record(kind, row) for row in rows]

    async def insert(self, kind: RecordKind, record: Any) -> None:
        table = _TABLES[kind]
        columns = {item.name: _to_column(getattr(record, item.name)) for item in fields(record)}
        async with self._session_factory() as session:
            async with session.begin():
                session.add(table(**columns))

    async def update(
        self,
        kind: RecordKind,
        record_id: str,
        changes: Mapping[str, Any],
        *,
        expected: Mapping[str, Any] | None = None,
    ) -> Any | None:
        table = _TABLES[kind]
        conditions = [table.id == record_id]
        conditions.extend(
            getattr(table, name).is_(None) if value is None else getattr(table, name) == _to_column(value)
            for name, value in (expected or {}).items()
        )
        statement = (
            sql_update(table)
            .where(*conditions)
            .values({name: _to_column(value) for name, value in changes.items()})
            .execution_options(synchronize_session=False)
        )
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(statement)
                if result.rowcount == 0:
                    return None
                row = await session.get(table, record_id)
        return None if row is None else self._row_to_record(kind, row)

    async def delete(self, kind: RecordKind, record_id: str) -> bool:
        async with self._session_factory() as session:
            row = await session.get(_TABLES[kind], record_id)
            if row is None:
                return False
            await session.delete(row)
            await session.commit()
            return True

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()

    @staticmethod
    def _row_to_record(kind: RecordKind, row: SQLModel) -> Any:
        record_type = kind.record_type
        enum_fields = _ENUM_FIELDS.get(kind, {})
        values: dict[str, Any] = {}
        for item in fields(record_type):
            value = getattr(row, item.name)
            if item.name in enum_fields and value is not None:
                value = enum_fields[item.name](value)
            elif isinstance(value, datetime):
                value = _ensure_utc(value)
            values[item.name] = value
        return record_type(**values)


def _to_column(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
