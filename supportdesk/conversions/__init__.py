"""Dual-approval conversion of tickets into other work item types."""

from .service import ApprovalResult, ConversionService
from .state import ConversionStateMachine, current_request

__all__ = [
    "ApprovalResult",
    "ConversionService",
    "ConversionStateMachine",
    "current_request",
]
