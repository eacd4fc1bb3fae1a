"""Access control — who may reach a route and which accounts they may touch.

A protected request passes up to three gates, each independent of the web
framework:

1. authenticate: the Authorization header must be exactly
   ``Bearer <token>`` and the token must verify. Produces an Identity.
2. authorize: the Identity's role must be in the route's allowed set.
3. ensure_can_access: a USER may only act on the account whose id is
   their own; an ADMIN may act on any account.

The first failing gate decides the response.
"""

from typing import Iterable, Optional

import structlog

from accounts_api.application.services.security import InvalidTokenError, TokenService
from accounts_api.core.exceptions import FailureCode, ForbiddenException, UnauthorizedException
from accounts_api.domain.models.user import Role
from accounts_api.domain.schemas.auth import Identity

logger = structlog.get_logger(__name__)

BEARER_SCHEME = "Bearer"


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Return the token of a ``Bearer <token>`` header value.

    The scheme is case-sensitive and separated by a single space; anything
    else (lowercase scheme, Basic, extra segments, no token) is malformed.
    """
    if not authorization:
        raise UnauthorizedException("Authorization header is required", FailureCode.AUTH_HEADER_MISSING)

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != BEARER_SCHEME or not parts[1]:
        raise UnauthorizedException("Invalid authorization header format", FailureCode.AUTH_HEADER_MALFORMED)
    return parts[1]


def authenticate(authorization: Optional[str], tokens: TokenService) -> Identity:
    token = extract_bearer_token(authorization)
    try:
        return tokens.verify(token)
    except InvalidTokenError as exc:
        logger.info("token_rejected", reason=str(exc))
        raise UnauthorizedException("Invalid or expired token", FailureCode.INVALID_OR_EXPIRED_TOKEN) from exc


def authorize(identity: Optional[Identity], allowed_roles: Iterable[Role]) -> Identity:
    if identity is None:
        raise UnauthorizedException("Authentication required", FailureCode.AUTHENTICATION_REQUIRED)
    if identity.role not in set(allowed_roles):
        logger.info("permission_denied", user_id=identity.id, role=identity.role.value)
        raise ForbiddenException("Insufficient permissions", FailureCode.INSUFFICIENT_PERMISSIONS)
    return identity


def can_access(identity: Identity, account_id: str) -> bool:
    return identity.role is Role.ADMIN or identity.id == account_id


def ensure_can_access(identity: Optional[Identity], account_id: str) -> Identity:
    """Ownership check for handlers addressing a single account."""
    if identity is None:
        raise UnauthorizedException("Authentication required", FailureCode.AUTHENTICATION_REQUIRED)
    if not can_access(identity, account_id):
        logger.info("ownership_denied", user_id=identity.id, target_id=account_id)
        raise ForbiddenException("Insufficient permissions", FailureCode.INSUFFICIENT_PERMISSIONS)
    return identity
