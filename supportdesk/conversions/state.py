from __future__ import annotations

from typing import Iterable, Mapping

from supportdesk.errors import InvalidStateError
from supportdesk.models import ApprovalSide, ApprovalStatus, ConversionRequest


class ConversionStateMachine:
    """Dual-approval workflow for ticket conversion requests.

    Each side moves independently from pending to approved or rejected and
    never back. The request as a whole is rejected as soon as either side
    rejects, approved once both sides approve and pending otherwise.
    """

    _TRANSITIONS: Mapping[ApprovalStatus, frozenset[ApprovalStatus]] = {
        ApprovalStatus.PENDING: frozenset({ApprovalStatus.APPROVED, ApprovalStatus.REJECTED}),
        ApprovalStatus.APPROVED: frozenset(),
        ApprovalStatus.REJECTED: frozenset(),
    }

    @staticmethod
    def field_for(side: ApprovalSide) -> str:
        return "internal_approval" if side is ApprovalSide.INTERNAL else "client_approval"

    @classmethod
    def side_status(cls, request: ConversionRequest, side: ApprovalSide) -> ApprovalStatus:
        return getattr(request, cls.field_for(side))

    @classmethod
    def can_transition(cls, current: ApprovalStatus, target: ApprovalStatus) -> bool:
        return target in cls._TRANSITIONS.get(current, frozenset())

    @classmethod
    def assert_vote(cls, request: ConversionRequest, side: ApprovalSide, decision: ApprovalStatus) -> None:
        current = cls.side_status(request, side)
        if not cls.can_transition(current, decision):
            raise InvalidStateError(
                f"Cannot set {side.value} approval of request {request.id} from {current.value} to {decision.value}"
            )

    @staticmethod
    def derived_state(request: ConversionRequest) -> ApprovalStatus:
        sides = (request.internal_approval, request.client_approval)
        if ApprovalStatus.REJECTED in sides:
            return ApprovalStatus.REJECTED
        if all(side is ApprovalStatus.APPROVED for side in sides):
            return ApprovalStatus.APPROVED
        return ApprovalStatus.PENDING

    @staticmethod
    def awaiting_vote(request: ConversionRequest) -> bool:
        """True while at least one side has not voted yet."""

        return ApprovalStatus.PENDING in (request.internal_approval, request.client_approval)

    @classmethod
    def is_live(cls, request: ConversionRequest) -> bool:
        """A request blocks new proposals unless it ended in rejection."""

        return cls.derived_state(request) is not ApprovalStatus.REJECTED


def current_request(requests: Iterable[ConversionRequest]) -> ConversionRequest | None:
    """The most recently created request of a ticket."""

    latest: ConversionRequest | None = None
    for request in requests:
        if latest is None or request.created_at >= latest.created_at:
            latest = request
    return latest
