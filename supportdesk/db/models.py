"""SQLModel table definitions for the SupportDesk data layer."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, Text
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    """Return a timezone aware UTC timestamp."""

    return datetime.now(timezone.utc)


class OrganizationTable(SQLModel, table=True):
    """Client organizations."""

    __tablename__ = "organizations"

    id: str = Field(primary_key=True, index=True)
    name: str = Field(sa_column=Column(String(255), nullable=False))
    plan: str = Field(sa_column=Column(String(50), nullable=False))
    contact_email: str = Field(sa_column=Column(String(255), nullable=False))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class UserTable(SQLModel, table=True):
    """Internal staff and client accounts."""

    __tablename__ = "users"

    id: str = Field(primary_key=True, index=True)
    name: str = Field(sa_column=Column(String(255), nullable=False))
    email: str = Field(sa_column=Column(String(255), nullable=False, unique=True, index=True))
    password_hash: str = Field(sa_column=Column(String(255), nullable=False))
    role: str = Field(sa_column=Column(String(50), nullable=False))
    organization_id: str | None = Field(default=None, sa_column=Column(String(64), nullable=True, index=True))
    avatar: str = Field(sa_column=Column(String(8), nullable=False))
    phone: str = Field(default="", sa_column=Column(String(50), nullable=False, default=""))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class TicketTable(SQLModel, table=True):
    """Support tickets."""

    __tablename__ = "tickets"

    id: str = Field(primary_key=True, index=True)
    title: str = Field(sa_column=Column(String(500), nullable=False))
    description: str = Field(sa_column=Column(Text, nullable=False))
    status: str = Field(sa_column=Column(String(50), nullable=False))
    priority: str = Field(sa_column=Column(String(50), nullable=False))
    category: str = Field(sa_column=Column(String(100), nullable=False))
    organization_id: str = Field(sa_column=Column(String(64), nullable=False, index=True))
    created_by: str = Field(sa_column=Column(String(64), nullable=False))
    assigned_to: str | None = Field(default=None, sa_column=Column(String(64), nullable=True, index=True))
    hours_worked: float = Field(default=0.0, sa_column=Column(Float, nullable=False))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    conversion_request_id: str | None = Field(default=None, sa_column=Column(String(64), nullable=True))


class TicketMessageTable(SQLModel, table=True):
    """Append-only ticket messages."""

    __tablename__ = "ticket_messages"

    id: str = Field(primary_key=True, index=True)
    ticket_id: str = Field(sa_column=Column(String(64), nullable=False, index=True))
    user_id: str = Field(sa_column=Column(String(64), nullable=False))
    content: str = Field(sa_column=Column(Text, nullable=False))
    is_internal: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class TimeEntryTable(SQLModel, table=True):
    """Append-only time entries logged against tickets."""

    __tablename__ = "time_entries"

    id: str = Field(primary_key=True, index=True)
    ticket_id: str = Field(sa_column=Column(String(64), nullable=False, index=True))
    user_id: str = Field(sa_column=Column(String(64), nullable=False))
    hours: float = Field(sa_column=Column(Float, nullable=False))
    description: str = Field(sa_column=Column(Text, nullable=False))
    date: str = Field(sa_column=Column("entry_date", String(10), nullable=False))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class ConversionRequestTable(SQLModel, table=True):
    """Dual-approval requests to convert a ticket into another work item type."""

    __tablename__ = "conversion_requests"

    id: str = Field(primary_key=True, index=True)
    ticket_id: str = Field(sa_column=Column(String(64), nullable=False, index=True))
    proposed_type: str = Field(sa_column=Column(String(50), nullable=False))
    reason: str = Field(sa_column=Column(Text, nullable=False))
    internal_approval: str = Field(sa_column=Column(String(20), nullable=False))
    client_approval: str = Field(sa_column=Column(String(20), nullable=False))
    proposed_by: str = Field(sa_column=Column(String(64), nullable=False))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    applied_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))


class InvoiceTable(SQLModel, table=True):
    """Monthly invoices built from externally aggregated figures."""

    __tablename__ = "invoices"

    id: str = Field(primary_key=True, index=True)
    organization_id: str = Field(sa_column=Column(String(64), nullable=False, index=True))
    month: int = Field(sa_column=Column(Integer, nullable=False))
    year: int = Field(sa_column=Column(Integer, nullable=False))
    tickets_closed: int = Field(sa_column=Column(Integer, nullable=False))
    total_hours: float = Field(sa_column=Column(Float, nullable=False))
    rate_per_hour: float = Field(sa_column=Column(Float, nullable=False))
    total_amount: float = Field(sa_column=Column(Float, nullable=False))
    status: str = Field(sa_column=Column(String(20), nullable=False))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class ActivityTable(SQLModel, table=True):
    """Write-once activity log."""

    __tablename__ = "activities"

    id: str = Field(primary_key=True, index=True)
    type: str = Field(sa_column=Column(String(50), nullable=False))
    description: str = Field(sa_column=Column(Text, nullable=False))
    user_id: str = Field(sa_column=Column(String(64), nullable=False))
    ticket_id: str | None = Field(default=None, sa_column=Column(String(64), nullable=True, index=True))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
