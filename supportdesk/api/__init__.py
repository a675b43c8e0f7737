"""HTTP boundary of the SupportDesk API."""
