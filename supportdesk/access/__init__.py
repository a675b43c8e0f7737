"""Authorization: role policy table and visibility scope filter."""

from .policy import POLICY, Operation, authorize, is_allowed
from .scope import ensure_visible, filter_by_ticket, filter_visible, scope, scope_for, visible_ticket_ids

__all__ = [
    "POLICY",
    "Operation",
    "authorize",
    "ensure_visible",
    "filter_by_ticket",
    "filter_visible",
    "is_allowed",
    "scope",
    "scope_for",
    "visible_ticket_ids",
]
