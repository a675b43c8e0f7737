from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from opentelemetry import trace

from supportdesk.access import Operation, authorize, ensure_visible, filter_by_ticket, visible_ticket_ids
from supportdesk.dashboard.activity import ActivityRecorder
from supportdesk.errors import InvalidStateError, NotFoundError, ValidationError
from supportdesk.identity.roles import Actor
from supportdesk.models import (
    ActivityType,
    ApprovalSide,
    ApprovalStatus,
    ConversionRequest,
    ConversionTarget,
    Ticket,
)
from supportdesk.storage.base import RecordKind, RecordStore

from .state import ConversionStateMachine, current_request

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

_VOTE_OPERATIONS = {
    ApprovalSide.INTERNAL: Operation.APPROVAL_VOTE_INTERNAL,
    ApprovalSide.CLIENT: Operation.APPROVAL_VOTE_CLIENT,
}


@dataclass(slots=True)
class ApprovalResult:
    """Outcome of a single vote.

    ``effect_applied`` is true only for the vote that claimed the terminal
    effect and changed the ticket category.
    """

    request: ConversionRequest
    state: ApprovalStatus
    effect_applied: bool = False


class ConversionService:
    """Request conversions and record the two independent approval votes."""

    def __init__(self, store: RecordStore, state_machine: ConversionStateMachine | None = None) -> None:
        self._store = store
        self._state_machine = state_machine or ConversionStateMachine()
        self._activities = ActivityRecorder(store)

    async def request_conversion(
        self,
        actor: Actor,
        ticket_id: str,
        *,
        proposed_type: ConversionTarget,
        reason: str,
    ) -> ConversionRequest:
        authorize(actor, Operation.CONVERSION_REQUEST)
        ticket = await self._load_ticket(actor, ticket_id)
        if not reason.strip():
            raise ValidationError("reason is required")

        existing = current_request(await self._store.find(RecordKind.CONVERSION, "ticket_id", ticket_id))
        if existing is not None and self._state_machine.is_live(existing):
            state = self._state_machine.derived_state(existing)
            raise InvalidStateError(f"Ticket {ticket_id} already has a {state.value} conversion request")

        request = ConversionRequest(
            id=str(uuid.uuid4()),
            ticket_id=ticket_id,
            proposed_type=proposed_type,
            reason=reason,
            internal_approval=ApprovalStatus.PENDING,
            client_approval=ApprovalStatus.PENDING,
            proposed_by=actor.id,
            created_at=datetime.now(timezone.utc),
        )
        # conditional swap of the ticket pointer serialises concurrent proposals
        claimed = await self._store.update(
            RecordKind.TICKET,
            ticket_id,
            {"conversion_request_id": request.id},
            expected={"conversion_request_id": ticket.conversion_request_id},
        )
        if claimed is None:
            raise InvalidStateError(f"Ticket {ticket_id} received another conversion request concurrently")
        try:
            await self._store.insert(RecordKind.CONVERSION, request)
        except Exception:
            await self._store.update(
                RecordKind.TICKET,
                ticket_id,
                {"conversion_request_id": ticket.conversion_request_id},
                expected={"conversion_request_id": request.id},
            )
            raise
        await self._activities.record(
            ActivityType.CONVERSION_REQUESTED,
            f"Conversion to {proposed_type.value} requested: {ticket.title}",
            user_id=actor.id,
            ticket_id=ticket_id,
        )
        logger.info("Conversion request %s opened for ticket %s", request.id, ticket_id)
        return request

    async def get(self, actor: Actor, request_id: str) -> ConversionRequest:
        request = await self._store.get(RecordKind.CONVERSION, request_id)
        if request is None:
            raise NotFoundError(f"Conversion request {request_id} not found")
        await self._load_ticket(actor, request.ticket_id, label="Conversion request", record_id=request_id)
        return request

    async def list_pending(self, actor: Actor) -> list[ConversionRequest]:
        """Requests still waiting on at least one side, newest first."""

        authorize(actor, Operation.APPROVAL_LIST)
        ticket_ids = visible_ticket_ids(actor, await self._store.scan(RecordKind.TICKET))
        requests = filter_by_ticket(await self._store.scan(RecordKind.CONVERSION), ticket_ids)
        pending = [request for request in requests if self._state_machine.awaiting_vote(request)]
        pending.sort(key=lambda request: request.created_at, reverse=True)
        return pending

    async def apply_approval(
        self,
        actor: Actor,
        request_id: str,
        side: ApprovalSide,
        decision: ApprovalStatus,
    ) -> ApprovalResult:
        """Record one side's vote and apply the terminal effect exactly once.

        Repeating an approval whose effect never landed completes the effect
        instead of failing on the already recorded vote.
        """

        authorize(actor, _VOTE_OPERATIONS[side])
        if decision is ApprovalStatus.PENDING:
            raise ValidationError("A vote must be approved or rejected")

        with tracer.start_as_current_span("conversions.apply_approval") as span:
            span.set_attribute("request_id", request_id)
            span.set_attribute("side", side.value)
            span.set_attribute("decision", decision.value)

            request = await self.get(actor, request_id)
            field_name = self._state_machine.field_for(side)
            if self._effect_pending(request, side, decision):
                # earlier attempt recorded this vote but never applied the effect
                voted = request
            else:
                self._state_machine.assert_vote(request, side, decision)
                voted = await self._store.update(
                    RecordKind.CONVERSION,
                    request_id,
                    {field_name: decision},
                    expected={field_name: ApprovalStatus.PENDING},
                )
                if voted is None:
                    # lost the race against another vote on the same side
                    raise InvalidStateError(f"The {side.value} side of request {request_id} has already been decided")

            state = self._state_machine.derived_state(voted)
            span.set_attribute("derived_state", state.value)
            logger.info(
                "Recorded %s %s vote on conversion request %s (now %s)",
                side.value,
                decision.value,
                request_id,
                state.value,
            )

            if decision is ApprovalStatus.REJECTED:
                await self._activities.record(
                    ActivityType.CONVERSION_REJECTED,
                    f"Conversion to {voted.proposed_type.value} rejected by {side.value} reviewer",
                    user_id=actor.id,
                    ticket_id=voted.ticket_id,
                )
                return ApprovalResult(request=voted, state=state)

            if state is not ApprovalStatus.APPROVED:
                return ApprovalResult(request=voted, state=state)

            claimed = await self._claim_terminal_effect(voted)
            if claimed is None:
                return ApprovalResult(request=voted, state=state)

            try:
                ticket = await self._store.update(
                    RecordKind.TICKET,
                    claimed.ticket_id,
                    {"category": claimed.proposed_type.value, "updated_at": claimed.applied_at},
                )
            except Exception:
                logger.warning("Releasing claim on conversion request %s after failed category update", request_id)
                await self._release_terminal_effect(claimed)
                raise
            if ticket is None:
                logger.warning(
                    "Ticket %s disappeared before conversion request %s was applied", claimed.ticket_id, request_id
                )
            await self._activities.record(
                ActivityType.CONVERSION_APPROVED,
                f"Ticket converted to {claimed.proposed_type.value}",
                user_id=actor.id,
                ticket_id=claimed.ticket_id,
            )
            span.set_attribute("effect_applied", True)
            return ApprovalResult(request=claimed, state=state, effect_applied=True)

    def _effect_pending(self, request: ConversionRequest, side: ApprovalSide, decision: ApprovalStatus) -> bool:
        return (
            decision is ApprovalStatus.APPROVED
            and self._state_machine.side_status(request, side) is ApprovalStatus.APPROVED
            and self._state_machine.derived_state(request) is ApprovalStatus.APPROVED
            and request.applied_at is None
        )

    async def _claim_terminal_effect(self, request: ConversionRequest) -> ConversionRequest | None:
        return await self._store.update(
            RecordKind.CONVERSION,
            request.id,
            {"applied_at": datetime.now(timezone.utc)},
            expected={
                "applied_at": None,
                "internal_approval": ApprovalStatus.APPROVED,
                "client_approval": ApprovalStatus.APPROVED,
            },
        )

    async def _release_terminal_effect(self, claimed: ConversionRequest) -> None:
        await self._store.update(
            RecordKind.CONVERSION,
            claimed.id,
            {"applied_at": None},
            expected={"applied_at": claimed.applied_at},
        )

    async def _load_ticket(
        self,
        actor: Actor,
        ticket_id: str,
        *,
        label: str = "Ticket",
        record_id: str | None = None,
    ) -> Ticket:
        ticket = await self._store.get(RecordKind.TICKET, ticket_id)
        return ensure_visible(actor, ticket, label=label, record_id=record_id or ticket_id)
