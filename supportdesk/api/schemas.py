"""Request and response bodies. JSON keys are camelCase on the wire."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from supportdesk.conversions.state import ConversionStateMachine
from supportdesk.identity.roles import Role
from supportdesk.models import (
    ActivityType,
    ApprovalSide,
    ApprovalStatus,
    ConversionRequest,
    ConversionTarget,
    InvoiceStatus,
    TicketDetail,
    TicketPriority,
    TicketStatus,
)


class ApiModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True, alias_generator=to_camel)


# Users


class UserCreateRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    role: Role
    organization_id: str | None = None
    password: str | None = Field(default=None, min_length=6)


class UserUpdateRequest(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    role: Role | None = None
    organization_id: str | None = None


class ProfileUpdateRequest(ApiModel):
    name: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)


class PasswordChangeRequest(ApiModel):
    current_password: str = Field(..., min_length=1)
    new_password: str


class UserResponse(ApiModel):
    id: str
    name: str
    email: str
    role: Role
    organization_id: str | None
    avatar: str
    phone: str
    created_at: datetime


class CascadeResponse(ApiModel):
    status: str = "deleted"
    unassigned_tickets: list[str]
    failed_tickets: list[str]


# Organizations


class OrganizationCreateRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=255)
    plan: str = Field(default="starter", max_length=50)
    contact_email: EmailStr


class OrganizationUpdateRequest(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    plan: str | None = Field(default=None, max_length=50)
    contact_email: EmailStr | None = None


class OrganizationResponse(ApiModel):
    id: str
    name: str
    plan: str
    contact_email: str
    created_at: datetime


# Tickets


class TicketCreateRequest(ApiModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    priority: TicketPriority = TicketPriority.MEDIUM
    category: str = Field(default="support", min_length=1, max_length=100)
    organization_id: str | None = None


class TicketUpdateRequest(ApiModel):
    """Omitted fields stay unchanged. An empty ``assignedTo`` clears the assignee."""

    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    assigned_to: str | None = None
    hours_worked: float | None = Field(default=None, ge=0)


class MessageCreateRequest(ApiModel):
    content: str = Field(..., min_length=1)
    is_internal: bool = False


class TimeEntryCreateRequest(ApiModel):
    hours: float = Field(..., gt=0)
    description: str = ""
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")


class ConversionCreateRequest(ApiModel):
    proposed_type: ConversionTarget
    reason: str = Field(..., min_length=1)


class TicketResponse(ApiModel):
    id: str
    title: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    category: str
    organization_id: str
    created_by: str
    assigned_to: str | None
    hours_worked: float
    created_at: datetime
    updated_at: datetime


class MessageResponse(ApiModel):
    id: str
    ticket_id: str
    user_id: str
    content: str
    is_internal: bool
    created_at: datetime


class TimeEntryResponse(ApiModel):
    id: str
    ticket_id: str
    user_id: str
    hours: float
    description: str
    date: str
    created_at: datetime


class ConversionRequestResponse(ApiModel):
    id: str
    ticket_id: str
    proposed_type: ConversionTarget
    reason: str
    internal_approval: ApprovalStatus
    client_approval: ApprovalStatus
    status: ApprovalStatus
    proposed_by: str
    created_at: datetime
    applied_at: datetime | None

    @classmethod
    def from_request(cls, request: ConversionRequest) -> "ConversionRequestResponse":
        return cls(
            id=request.id,
            ticket_id=request.ticket_id,
            proposed_type=request.proposed_type,
            reason=request.reason,
            internal_approval=request.internal_approval,
            client_approval=request.client_approval,
            status=ConversionStateMachine.derived_state(request),
            proposed_by=request.proposed_by,
            created_at=request.created_at,
            applied_at=request.applied_at,
        )


class TicketDetailResponse(TicketResponse):
    messages: list[MessageResponse]
    time_entries: list[TimeEntryResponse]
    conversion_request: ConversionRequestResponse | None

    @classmethod
    def from_detail(cls, detail: TicketDetail) -> "TicketDetailResponse":
        base = TicketResponse.model_validate(detail.ticket)
        return cls(
            **base.model_dump(),
            messages=[MessageResponse.model_validate(message) for message in detail.messages],
            time_entries=[TimeEntryResponse.model_validate(entry) for entry in detail.time_entries],
            conversion_request=(
                ConversionRequestResponse.from_request(detail.conversion_request)
                if detail.conversion_request is not None
                else None
            ),
        )


# Approvals


class ApprovalVoteRequest(ApiModel):
    side: ApprovalSide
    status: ApprovalStatus


class ApprovalResponse(ApiModel):
    request: ConversionRequestResponse
    status: ApprovalStatus
    effect_applied: bool


# Invoices


class InvoiceCreateRequest(ApiModel):
    organization_id: str
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=9999)
    tickets_closed: int = Field(default=0, ge=0)
    total_hours: float = Field(default=0.0, ge=0)
    rate_per_hour: float = Field(default=0.0, ge=0)
    total_amount: float | None = Field(default=None, ge=0)


class InvoiceStatusRequest(ApiModel):
    status: InvoiceStatus


class InvoiceResponse(ApiModel):
    id: str
    organization_id: str
    month: int
    year: int
    tickets_closed: int
    total_hours: float
    rate_per_hour: float
    total_amount: float
    status: InvoiceStatus
    created_at: datetime


# Dashboard


class DashboardStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    total_tickets: int = Field(alias="totalTickets")
    open_tickets: int = Field(alias="openTickets")
    in_progress_tickets: int = Field(alias="inProgress")
    resolved_tickets: int = Field(alias="resolved")
    closed_tickets: int = Field(alias="closed")
    total_hours: float = Field(alias="totalHours")
    pending_approvals: int = Field(alias="pendingApprovals")


class ActivityResponse(ApiModel):
    id: str
    type: ActivityType
    description: str
    user_id: str
    ticket_id: str | None
    created_at: datetime
