"""Caller identity and the moderation capability check"""

import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Request, Security
from fastapi.security import APIKeyHeader

from directory_api.models.errors import AuthorizationError

logger = logging.getLogger(__name__)

MODERATOR_ROLES = frozenset({"admin", "moderator"})

# Define API key header scheme
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


@dataclass(frozen=True)
class Identity:
    id: str
    role: str = "user"
    email: Optional[str] = None


def can_moderate_submissions(identity: Optional[Identity]) -> bool:
    """Single place where moderation privilege is decided"""
    return identity is not None and identity.role in MODERATOR_ROLES


def ensure_can_moderate(identity: Optional[Identity]) -> Identity:
    """401 without an identity, 403 when the identity may not moderate"""
    if identity is None:
        raise AuthorizationError.unauthenticated()
    if not can_moderate_submissions(identity):
        logger.warning(f"[AUTH] {identity.id} ({identity.role}) denied moderation access")
        raise AuthorizationError.forbidden()
    return identity


async def resolve_identity(
    request: Request,
    api_key: Optional[str] = Security(api_key_header),
) -> Optional[Identity]:
    """
    Work out who is calling.

    An X-API-Key matching ADMIN_API_KEY is an admin. Otherwise, when the
    identity provider's gateway headers are trusted, X-User-Id, X-User-Role
    and X-User-Email describe the caller. Anyone else is anonymous.
    """
    settings = request.app.state.settings

    if api_key:
        if settings.admin_api_key and secrets.compare_digest(api_key, settings.admin_api_key):
            return Identity(id="api-key", role="admin")
        logger.warning(f"Invalid API key attempt: {api_key[:8]}...")
        raise AuthorizationError.unauthenticated("Invalid API key")

    if settings.trust_identity_headers:
        user_id = request.headers.get("X-User-Id")
        if user_id:
            return Identity(
                id=user_id,
                role=(request.headers.get("X-User-Role") or "user").lower(),
                email=request.headers.get("X-User-Email"),
            )
    return None


async def require_identity(
    identity: Optional[Identity] = Security(resolve_identity),
) -> Identity:
    if identity is None:
        raise AuthorizationError.unauthenticated()
    return identity


async def require_moderator(
    identity: Optional[Identity] = Security(resolve_identity),
) -> Identity:
    return ensure_can_moderate(identity)
