"""Declarative role policy evaluated once per operation."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Mapping

from supportdesk.errors import ForbiddenError
from supportdesk.identity.roles import ALL_ROLES, INTERNAL_ROLES, Actor, Role

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    ORGANIZATION_LIST = "organization:list"
    ORGANIZATION_GET = "organization:get"
    ORGANIZATION_CREATE = "organization:create"
    ORGANIZATION_UPDATE = "organization:update"
    ORGANIZATION_DELETE = "organization:delete"
    USER_LIST = "user:list"
    USER_GET = "user:get"
    USER_CREATE = "user:create"
    USER_UPDATE = "user:update"
    USER_DELETE = "user:delete"
    PROFILE_UPDATE = "profile:update"
    TICKET_LIST = "ticket:list"
    TICKET_GET = "ticket:get"
    TICKET_CREATE = "ticket:create"
    TICKET_UPDATE = "ticket:update"
    TICKET_ASSIGN = "ticket:assign"
    MESSAGE_ADD = "message:add"
    TIME_ENTRY_ADD = "time-entry:add"
    CONVERSION_REQUEST = "conversion:request"
    APPROVAL_LIST = "approval:list"
    APPROVAL_VOTE_INTERNAL = "approval:vote-internal"
    APPROVAL_VOTE_CLIENT = "approval:vote-client"
    INVOICE_LIST = "invoice:list"
    INVOICE_CREATE = "invoice:create"
    INVOICE_UPDATE = "invoice:update"
    DASHBOARD_VIEW = "dashboard:view"


_ADMIN = frozenset({Role.ADMIN})

POLICY: Mapping[Operation, frozenset[Role]] = {
    Operation.ORGANIZATION_LIST: ALL_ROLES,
    Operation.ORGANIZATION_GET: ALL_ROLES,
    Operation.ORGANIZATION_CREATE: _ADMIN,
    Operation.ORGANIZATION_UPDATE: _ADMIN,
    Operation.ORGANIZATION_DELETE: _ADMIN,
    Operation.USER_LIST: ALL_ROLES,
    Operation.USER_GET: ALL_ROLES,
    Operation.USER_CREATE: _ADMIN,
    Operation.USER_UPDATE: _ADMIN,
    Operation.USER_DELETE: _ADMIN,
    Operation.PROFILE_UPDATE: ALL_ROLES,
    Operation.TICKET_LIST: ALL_ROLES,
    Operation.TICKET_GET: ALL_ROLES,
    Operation.TICKET_CREATE: ALL_ROLES,
    Operation.TICKET_UPDATE: ALL_ROLES,
    Operation.TICKET_ASSIGN: INTERNAL_ROLES,
    Operation.MESSAGE_ADD: ALL_ROLES,
    Operation.TIME_ENTRY_ADD: ALL_ROLES,
    Operation.CONVERSION_REQUEST: INTERNAL_ROLES,
    Operation.APPROVAL_LIST: frozenset({Role.ADMIN, Role.SUPPORT_LEAD, Role.CLIENT}),
    Operation.APPROVAL_VOTE_INTERNAL: frozenset({Role.ADMIN, Role.SUPPORT_LEAD}),
    Operation.APPROVAL_VOTE_CLIENT: frozenset({Role.CLIENT}),
    Operation.INVOICE_LIST: frozenset({Role.ADMIN, Role.CLIENT}),
    Operation.INVOICE_CREATE: _ADMIN,
    Operation.INVOICE_UPDATE: _ADMIN,
    Operation.DASHBOARD_VIEW: ALL_ROLES,
}


def is_allowed(role: Role, operation: Operation) -> bool:
    return role in POLICY.get(operation, frozenset())


def authorize(actor: Actor, operation: Operation) -> Actor:
    """Raise ``ForbiddenError`` unless the policy grants ``operation`` to the actor's role."""

    if not is_allowed(actor.role, operation):
        logger.info("Denied %s for actor %s with role %s", operation.value, actor.id, actor.role.value)
        raise ForbiddenError(f"Role {actor.role.value} may not perform {operation.value}")
    return actor
