import itertools

import pytest

from supportdesk.errors import InvalidStateError, ValidationError
from supportdesk.tickets.state import TicketPriority, TicketStateMachine, TicketStatus


def test_ticket_state_machine_allows_every_pair():
    machine = TicketStateMachine()
    for current, target in itertools.product(TicketStatus, repeat=2):
        assert machine.can_transition(current, target)


def test_ticket_state_machine_starts_open():
    assert TicketStateMachine.initial_state() is TicketStatus.OPEN


def test_restricted_transition_table_is_enforced():
    machine = TicketStateMachine({TicketStatus.OPEN: frozenset({TicketStatus.IN_PROGRESS})})
    assert machine.can_transition(TicketStatus.OPEN, TicketStatus.IN_PROGRESS)
    with pytest.raises(InvalidStateError):
        machine.assert_transition(TicketStatus.CLOSED, TicketStatus.OPEN)


def test_status_and_priority_strings_are_parsed():
    assert TicketStatus.parse("in-progress") is TicketStatus.IN_PROGRESS
    assert TicketPriority.parse("urgent") is TicketPriority.URGENT
    with pytest.raises(ValidationError):
        TicketStatus.parse("reopened")
    with pytest.raises(ValidationError):
        TicketPriority.parse("critical")
