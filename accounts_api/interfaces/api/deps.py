"""FastAPI dependencies — bearer authentication and role gates."""

from typing import Callable, List, Optional

from fastapi import Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader

from accounts_api.application.services.access_control import authenticate, authorize
from accounts_api.application.services.security import TokenService
from accounts_api.core.exceptions import AppError, app_error_handler, request_validation_handler
from accounts_api.domain.models.user import Role
from accounts_api.domain.schemas.auth import Identity
from accounts_api.interfaces.deps import get_token_service

# Raw header access: the scheme is parsed by access_control, not by FastAPI,
# so "bearer x" or "Bearer a b" are rejected instead of normalised.
authorization_header = APIKeyHeader(
    name="Authorization",
    auto_error=False,
    description="Bearer <token> obtained from POST /auth/login",
)


def get_current_user(
    authorization: Optional[str] = Depends(authorization_header),
    tokens: TokenService = Depends(get_token_service),
) -> Identity:
    """Resolve the caller's identity from the Authorization header."""
    return authenticate(authorization, tokens)


def require_roles(*roles: Role) -> Callable[..., Identity]:
    """Build a dependency that admits only the given roles."""
    allowed = frozenset(roles)

    def dependency(identity: Identity = Depends(get_current_user)) -> Identity:
        return authorize(identity, allowed)

    dependency.allowed_roles = allowed
    return dependency


require_admin = require_roles(Role.ADMIN)


def _route_guards(dependant) -> List[Callable]:
    guards = []
    for sub in dependant.dependencies:
        guards.extend(_route_guards(sub))
        if sub.call is get_current_user or hasattr(sub.call, "allowed_roles"):
            guards.append(sub.call)
    return guards


def enforce_route_guards(request: Request) -> None:
    """Run the matched route's authentication and role gates by hand.

    FastAPI parses the body before it resolves dependencies, so a broken
    body would otherwise be reported ahead of a missing or bad token.
    """
    dependant = getattr(request.scope.get("route"), "dependant", None)
    guards = _route_guards(dependant) if dependant is not None else []
    if not guards:
        return

    identity = authenticate(request.headers.get("Authorization"), request.app.state.token_service)
    for guard in guards:
        allowed = getattr(guard, "allowed_roles", None)
        if allowed is not None:
            authorize(identity, allowed)


async def guarded_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report a malformed body only to callers the route would admit."""
    try:
        enforce_route_guards(request)
    except AppError as error:
        return await app_error_handler(request, error)
    return await request_validation_handler(request, exc)
