"""SupportDesk multi-tenant ticketing API."""
