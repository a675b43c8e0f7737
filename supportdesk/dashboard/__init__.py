"""Activity log and dashboard statistics."""

from .activity import ActivityRecorder
from .service import DashboardService, DashboardStats

__all__ = ["ActivityRecorder", "DashboardService", "DashboardStats"]
