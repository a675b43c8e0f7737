"""User management with the profile/role mutation guard."""

from .guard import guarded_changes
from .service import CascadeResult, UserService

__all__ = ["CascadeResult", "UserService", "guarded_changes"]
