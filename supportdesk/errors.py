from __future__ import annotations


class SupportDeskError(RuntimeError):
    """Base error for domain level failures."""


class NotFoundError(SupportDeskError):
    """Raised when a referenced record does not exist or is outside the actor's scope."""


class ForbiddenError(SupportDeskError):
    """Raised when the actor's role is not allowed to perform an operation."""


class InvalidStateError(SupportDeskError):
    """Raised when a state machine precondition is violated."""


class ValidationError(SupportDeskError):
    """Raised for malformed input such as a missing field or an unknown enum value."""
