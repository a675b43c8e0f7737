"""Route modules exposed by the API package."""

from . import approvals, dashboard, health, invoices, organizations, tickets, users

__all__ = ["approvals", "dashboard", "health", "invoices", "organizations", "tickets", "users"]
