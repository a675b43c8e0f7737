from __future__ import annotations

import logging
from typing import Annotated, Any, Mapping

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from supportdesk.core.config import Settings, get_settings
from supportdesk.errors import ValidationError
from supportdesk.identity.roles import Actor, Role

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def actor_from_claims(claims: Mapping[str, Any]) -> Actor:
    """Build the actor from verified ``sub``, ``role`` and ``org`` claims."""

    subject = claims.get("sub")
    if not subject:
        raise ValidationError("Token has no subject")
    return Actor(id=str(subject), role=Role.parse(claims.get("role", "")), organization_id=claims.get("org") or None)


def decode_token(token: str, settings: Settings) -> Actor:
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return actor_from_claims(claims)
    except (JWTError, ValidationError) as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise HTTPException(status_code=401, detail="Invalid authentication credentials") from exc


async def get_current_actor(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> Actor:
    cached = getattr(request.state, "actor", None)
    if isinstance(cached, Actor):
        return cached

    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    actor = decode_token(credentials.credentials, settings)
    request.state.actor = actor
    return actor


CurrentActor = Annotated[Actor, Depends(get_current_actor)]
