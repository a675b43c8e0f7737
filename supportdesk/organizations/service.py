from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from supportdesk.access import Operation, authorize, ensure_visible, filter_visible
from supportdesk.errors import NotFoundError, ValidationError
from supportdesk.identity.roles import Actor
from supportdesk.models import Organization
from supportdesk.storage.base import RecordKind, RecordStore

logger = logging.getLogger(__name__)


class OrganizationService:
    """CRUD for client organizations. Deletion does not cascade to tickets or users."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def list_organizations(self, actor: Actor) -> list[Organization]:
        authorize(actor, Operation.ORGANIZATION_LIST)
        organizations = filter_visible(actor, await self._store.scan(RecordKind.ORGANIZATION))
        return sorted(organizations, key=lambda organization: organization.name.lower())

    async def get_organization(self, actor: Actor, organization_id: str) -> Organization:
        authorize(actor, Operation.ORGANIZATION_GET)
        organization = await self._store.get(RecordKind.ORGANIZATION, organization_id)
        return ensure_visible(actor, organization, label="Organization", record_id=organization_id)

    async def create_organization(self, actor: Actor, *, name: str, plan: str, contact_email: str) -> Organization:
        authorize(actor, Operation.ORGANIZATION_CREATE)
        if not name.strip():
            raise ValidationError("name is required")
        organization = Organization(
            id=str(uuid.uuid4()),
            name=name.strip(),
            plan=plan,
            contact_email=contact_email,
            created_at=datetime.now(timezone.utc),
        )
        await self._store.insert(RecordKind.ORGANIZATION, organization)
        logger.info("Organization %s created", organization.id)
        return organization

    async def update_organization(
        self,
        actor: Actor,
        organization_id: str,
        *,
        name: str | None = None,
        plan: str | None = None,
        contact_email: str | None = None,
    ) -> Organization:
        authorize(actor, Operation.ORGANIZATION_UPDATE)
        if name is not None and not name.strip():
            raise ValidationError("name cannot be empty")
        changes: dict[str, Any] = {
            key: value
            for key, value in (("name", name), ("plan", plan), ("contact_email", contact_email))
            if value is not None
        }
        if not changes:
            return await self.get_organization(actor, organization_id)
        updated = await self._store.update(RecordKind.ORGANIZATION, organization_id, changes)
        if updated is None:
            raise NotFoundError(f"Organization {organization_id} not found")
        return updated

    async def delete_organization(self, actor: Actor, organization_id: str) -> None:
        authorize(actor, Operation.ORGANIZATION_DELETE)
        if not await self._store.delete(RecordKind.ORGANIZATION, organization_id):
            raise NotFoundError(f"Organization {organization_id} not found")
        logger.info("Organization %s deleted", organization_id)
