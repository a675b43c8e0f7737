"""Visibility scope filter.

Clients attached to an organization only see records belonging to that
organization. Every other actor, including a client without an organization,
sees everything. The same predicate backs single record lookups and full scan
listings.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, TypeVar

from supportdesk.errors import NotFoundError
from supportdesk.identity.roles import Actor, Role
from supportdesk.models import ActivityItem, ConversionRequest, Invoice, Organization, Ticket, User

RecordT = TypeVar("RecordT")
Predicate = Callable[[Any], bool]


def _match_all(_: Any) -> bool:
    return True


def organization_of(record: Any) -> str | None:
    """Return the organization a record belongs to."""

    if isinstance(record, Organization):
        return record.id
    if isinstance(record, (Ticket, Invoice, User)):
        return record.organization_id
    raise TypeError(f"{type(record).__name__} is not organization scoped")


def scope(role: Role, organization_id: str | None) -> Predicate:
    """Build the visibility predicate for an actor's role and organization.

    Users without an organization (internal staff) stay visible to clients so
    that support contacts can be listed.
    """

    if role is not Role.CLIENT or not organization_id:
        return _match_all

    def visible(record: Any) -> bool:
        record_org = organization_of(record)
        if isinstance(record, User) and not record_org:
            return True
        return record_org == organization_id

    return visible


def scope_for(actor: Actor) -> Predicate:
    return scope(actor.role, actor.organization_id)


def filter_visible(actor: Actor, records: Iterable[RecordT]) -> list[RecordT]:
    predicate = scope_for(actor)
    return [record for record in records if predicate(record)]


def ensure_visible(actor: Actor, record: RecordT | None, *, label: str, record_id: str) -> RecordT:
    """Return ``record`` when it exists and is in scope, otherwise raise ``NotFoundError``."""

    if record is None or not scope_for(actor)(record):
        raise NotFoundError(f"{label} {record_id} not found")
    return record


def visible_ticket_ids(actor: Actor, tickets: Iterable[Ticket]) -> set[str] | None:
    """Ids of the tickets an actor can see, or ``None`` when nothing is filtered."""

    if not actor.is_scoped:
        return None
    return {ticket.id for ticket in filter_visible(actor, tickets)}


def filter_by_ticket(
    records: Iterable[RecordT], ticket_ids: set[str] | None
) -> list[RecordT]:
    """Keep conversion requests or activity items whose ticket is visible."""

    if ticket_ids is None:
        return list(records)
    kept: list[RecordT] = []
    for record in records:
        if not isinstance(record, (ConversionRequest, ActivityItem)):
            raise TypeError(f"{type(record).__name__} is not ticket scoped")
        if record.ticket_id is not None and record.ticket_id in ticket_ids:
            kept.append(record)
    return kept
