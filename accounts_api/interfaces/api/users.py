"""User API routes — list, search, read, create, update, delete."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from accounts_api.application.services import user_service
from accounts_api.application.services.security import PasswordHasher
from accounts_api.core.exceptions import BadRequestException, FailureCode
from accounts_api.domain.repositories.user_repository import UserRepository
from accounts_api.domain.schemas.auth import Identity
from accounts_api.domain.schemas.user import UserCreate, UserRead, UserUpdate
from accounts_api.interfaces.api.deps import get_current_user, require_admin
from accounts_api.interfaces.deps import get_password_hasher, get_user_repository

router = APIRouter(prefix="/users", tags=["Users"])

_AUTH_RESPONSES = {401: {"description": "Unauthorized"}, 403: {"description": "Forbidden"}}


@router.get("", responses=_AUTH_RESPONSES)
def list_users(
    name: Optional[str] = Query(None, description="Case-insensitive name fragment"),
    email: Optional[str] = Query(None, description="Exact email address"),
    repo: UserRepository = Depends(get_user_repository),
    identity: Identity = Depends(get_current_user),
):
    """List users, search by name, or look one up by email.

    Returns every account for ADMIN and only the caller's own for USER.
    """
    if name is not None:
        return user_service.search_users_by_name(repo, name, identity)
    if email is not None:
        return user_service.get_user_by_email(repo, email, identity)
    return user_service.list_users(repo, identity)


@router.get("/{user_id}", response_model=UserRead, responses={**_AUTH_RESPONSES, 404: {"description": "User not found"}})
def get_user(
    user_id: str,
    repo: UserRepository = Depends(get_user_repository),
    identity: Identity = Depends(get_current_user),
):
    return user_service.get_user(repo, user_id, identity)


@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    responses={**_AUTH_RESPONSES, 400: {"description": "Validation error"}, 409: {"description": "Email already in use"}},
)
def create_user(
    body: UserCreate,
    repo: UserRepository = Depends(get_user_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
    actor: Identity = Depends(require_admin),
):
    """Create a user. ADMIN only."""
    if not body.name or not body.email or body.age is None or not body.password:
        raise BadRequestException("Name, email, age and password are required", FailureCode.FIELDS_REQUIRED)
    return user_service.create_user(repo, hasher, body, actor)


@router.put(
    "/{user_id}",
    response_model=UserRead,
    responses={
        **_AUTH_RESPONSES,
        400: {"description": "Validation error"},
        404: {"description": "User not found"},
        409: {"description": "Email already in use"},
    },
)
def update_user(
    user_id: str,
    body: UserUpdate,
    repo: UserRepository = Depends(get_user_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
    actor: Identity = Depends(require_admin),
):
    """Partially update a user; omitted fields keep their value. ADMIN only."""
    return user_service.update_user(repo, hasher, user_id, body, actor)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={**_AUTH_RESPONSES, 404: {"description": "User not found"}},
)
def delete_user(
    user_id: str,
    repo: UserRepository = Depends(get_user_repository),
    actor: Identity = Depends(require_admin),
):
    """Delete a user. ADMIN only."""
    user_service.delete_user(repo, user_id, actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
