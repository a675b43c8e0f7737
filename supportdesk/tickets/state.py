from __future__ import annotations

from typing import Mapping

from supportdesk.errors import InvalidStateError
from supportdesk.models import TicketPriority, TicketStatus


class TicketStateMachine:
    """Validate ticket lifecycle transitions.

    The lifecycle is open -> in-progress -> resolved -> closed, but staff may
    move a ticket between any pair of states, so every transition is listed.
    """

    _TRANSITIONS: Mapping[TicketStatus, frozenset[TicketStatus]] = {
        status: frozenset(TicketStatus) - {status} for status in TicketStatus
    }

    def __init__(self, transitions: Mapping[TicketStatus, frozenset[TicketStatus]] | None = None) -> None:
        self._transitions = transitions or self._TRANSITIONS

    @staticmethod
    def initial_state() -> TicketStatus:
        return TicketStatus.OPEN

    def can_transition(self, current: TicketStatus, target: TicketStatus) -> bool:
        if current == target:
            return True
        return target in self._transitions.get(current, frozenset())

    def assert_transition(self, current: TicketStatus, target: TicketStatus) -> None:
        if not self.can_transition(current, target):
            raise InvalidStateError(f"Invalid ticket status transition: {current.value} -> {target.value}")


__all__ = ["TicketPriority", "TicketStateMachine", "TicketStatus"]
