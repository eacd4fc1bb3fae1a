"""Auth API routes — login."""

from fastapi import APIRouter, Depends

from accounts_api.application.services.auth_service import login as login_user
from accounts_api.application.services.security import PasswordHasher, TokenService
from accounts_api.core.exceptions import BadRequestException, FailureCode
from accounts_api.domain.repositories.user_repository import UserRepository
from accounts_api.domain.schemas.auth import LoginRequest, TokenResponse
from accounts_api.interfaces.deps import get_password_hasher, get_token_service, get_user_repository

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={400: {"description": "Missing required fields"}, 401: {"description": "Invalid credentials"}},
)
def login(
    body: LoginRequest,
    repo: UserRepository = Depends(get_user_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
):
    """Authenticate with email and password and obtain a JWT."""
    if not body.email or not body.password:
        raise BadRequestException("Email and password are required", FailureCode.FIELDS_REQUIRED)
    return login_user(repo, hasher, tokens, body.email, body.password)
