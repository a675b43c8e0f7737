"""Ticket lifecycle: state machine and service."""

from .service import TicketService
from .state import TicketPriority, TicketStateMachine, TicketStatus

__all__ = [
    "TicketPriority",
    "TicketService",
    "TicketStateMachine",
    "TicketStatus",
]
