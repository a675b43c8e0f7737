from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from opentelemetry import trace

from supportdesk.access import Operation, authorize, ensure_visible, filter_visible
from supportdesk.errors import ForbiddenError, NotFoundError, ValidationError
from supportdesk.identity.passwords import hash_password, verify_password
from supportdesk.identity.roles import Actor, Role, initials_from_name, normalize_organization
from supportdesk.models import User
from supportdesk.storage.base import RecordKind, RecordStore
from supportdesk.tickets.service import TicketService

from .guard import guarded_changes

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

MIN_PASSWORD_LENGTH = 6
UNASSIGN_ATTEMPTS = 3


@dataclass(slots=True)
class CascadeResult:
    """Outcome of a best-effort cascade.

    ``succeeded`` lists the dependent records that were updated and
    ``failures`` pairs each record that could not be updated with its error.
    """

    primary_succeeded: bool
    succeeded: list[str] = field(default_factory=list)
    failures: list[tuple[str, str]] = field(default_factory=list)


class UserService:
    def __init__(self, store: RecordStore, tickets: TicketService, *, default_password: str = "changeme") -> None:
        self._store = store
        self._tickets = tickets
        self._default_password = default_password

    async def list_users(self, actor: Actor) -> list[User]:
        authorize(actor, Operation.USER_LIST)
        users = filter_visible(actor, await self._store.scan(RecordKind.USER))
        return sorted(users, key=lambda user: user.name.lower())

    async def get_user(self, actor: Actor, user_id: str) -> User:
        authorize(actor, Operation.USER_GET)
        return ensure_visible(actor, await self._store.get(RecordKind.USER, user_id), label="User", record_id=user_id)

    async def me(self, actor: Actor) -> User:
        user = await self._store.get(RecordKind.USER, actor.id)
        if user is None:
            raise NotFoundError(f"User {actor.id} not found")
        return user

    async def create_user(
        self,
        actor: Actor,
        *,
        name: str,
        email: str,
        role: Role,
        organization_id: str | None = None,
        password: str | None = None,
    ) -> User:
        authorize(actor, Operation.USER_CREATE)
        if not name.strip() or not email.strip():
            raise ValidationError("name and email are required")
        await self._ensure_email_available(email)

        organization_id = normalize_organization(role, organization_id)
        if organization_id and await self._store.get(RecordKind.ORGANIZATION, organization_id) is None:
            raise ValidationError(f"Organization {organization_id} does not exist")

        user = User(
            id=str(uuid.uuid4()),
            name=name,
            email=email,
            password_hash=hash_password(password or self._default_password),
            role=role,
            organization_id=organization_id,
            avatar=initials_from_name(name),
            created_at=datetime.now(timezone.utc),
        )
        await self._store.insert(RecordKind.USER, user)
        logger.info("User %s created with role %s", user.id, role.value)
        return user

    async def update_user(
        self,
        actor: Actor,
        user_id: str,
        *,
        name: str | None = None,
        email: str | None = None,
        role: Role | None = None,
        organization_id: str | None = None,
    ) -> User:
        authorize(actor, Operation.USER_UPDATE)
        current = await self._store.get(RecordKind.USER, user_id)
        if current is None:
            raise NotFoundError(f"User {user_id} not found")
        if name is not None and not name.strip():
            raise ValidationError("name cannot be empty")
        if email is not None and email != current.email:
            await self._ensure_email_available(email)

        changes = guarded_changes(current, name=name, email=email, role=role, organization_id=organization_id)
        new_org = changes.get("organization_id")
        if new_org and await self._store.get(RecordKind.ORGANIZATION, new_org) is None:
            raise ValidationError(f"Organization {new_org} does not exist")
        if not changes:
            return current

        updated = await self._store.update(RecordKind.USER, user_id, changes)
        if updated is None:
            raise NotFoundError(f"User {user_id} not found")
        return updated

    async def update_my_profile(self, actor: Actor, *, name: str | None = None, phone: str | None = None) -> User:
        authorize(actor, Operation.PROFILE_UPDATE)
        if name is None and phone is None:
            raise ValidationError("At least one of name or phone must be provided")
        if name is not None and not name.strip():
            raise ValidationError("name cannot be empty")

        current = await self.me(actor)
        updated = await self._store.update(RecordKind.USER, actor.id, guarded_changes(current, name=name, phone=phone))
        if updated is None:
            raise NotFoundError(f"User {actor.id} not found")
        return updated

    async def change_password(self, actor: Actor, *, current_password: str, new_password: str) -> None:
        authorize(actor, Operation.PROFILE_UPDATE)
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters")
        user = await self.me(actor)
        if not verify_password(current_password, user.password_hash):
            raise ForbiddenError("Current password is incorrect")
        await self._store.update(RecordKind.USER, actor.id, {"password_hash": hash_password(new_password)})
        logger.info("Password changed for user %s", actor.id)

    async def delete_user_cascading_unassign(self, actor: Actor, user_id: str) -> CascadeResult:
        """Clear every ticket assignment pointing at the user, then delete the user.

        Assignments are looked up across all organizations. Each ticket is retried
        up to ``UNASSIGN_ATTEMPTS`` times; one that still cannot be cleared is
        logged and reported in the result and never stops the deletion itself.
        """

        authorize(actor, Operation.USER_DELETE)
        if user_id == actor.id:
            raise ForbiddenError("Cannot delete your own account")
        if await self._store.get(RecordKind.USER, user_id) is None:
            raise NotFoundError(f"User {user_id} not found")

        result = CascadeResult(primary_succeeded=False)
        with tracer.start_as_current_span("users.delete_cascading_unassign") as span:
            span.set_attribute("user_id", user_id)
            for ticket in await self._tickets.tickets_assigned_to(user_id):
                error = await self._unassign_with_retry(ticket.id, user_id)
                if error is None:
                    result.succeeded.append(ticket.id)
                else:
                    result.failures.append((ticket.id, error))

            result.primary_succeeded = await self._store.delete(RecordKind.USER, user_id)
            span.set_attribute("unassigned", len(result.succeeded))
            span.set_attribute("failures", len(result.failures))

        logger.info(
            "Deleted user %s (%d tickets unassigned, %d failures)",
            user_id,
            len(result.succeeded),
            len(result.failures),
        )
        return result

    async def _unassign_with_retry(self, ticket_id: str, user_id: str) -> str | None:
        """Clear one assignment, retrying transient failures. Returns the last error, if any."""

        error = ""
        for attempt in range(1, UNASSIGN_ATTEMPTS + 1):
            try:
                cleared = await self._tickets.clear_assignment(ticket_id)
            except Exception as exc:
                error = str(exc)
                logger.warning(
                    "Failed to unassign ticket %s from user %s (attempt %d/%d): %s",
                    ticket_id,
                    user_id,
                    attempt,
                    UNASSIGN_ATTEMPTS,
                    exc,
                )
                continue
            if cleared is None:
                logger.warning("Ticket %s vanished while unassigning user %s", ticket_id, user_id)
                return "ticket not found"
            return None
        logger.error("Giving up on unassigning ticket %s from user %s: %s", ticket_id, user_id, error)
        return error

    async def _ensure_email_available(self, email: str) -> None:
        if await self._store.find(RecordKind.USER, "email", email):
            raise ValidationError(f"Email {email} is already in use")
