from .service import OrganizationService

__all__ = ["OrganizationService"]
