"""Auth service — credential verification, token issuance and first-run admin."""

from typing import Any, Optional

import structlog

from accounts_api.application.services.security import PasswordHasher, TokenService
from accounts_api.config import Settings
from accounts_api.core.exceptions import FailureCode, UnauthorizedException
from accounts_api.domain.models.user import Role
from accounts_api.domain.repositories.user_repository import UserRepository
from accounts_api.domain.schemas.auth import Identity, TokenResponse
from accounts_api.domain.schemas.user import UserRead

logger = structlog.get_logger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


def _invalid_credentials() -> UnauthorizedException:
    # Unknown email and wrong password must be indistinguishable to the caller.
    return UnauthorizedException(INVALID_CREDENTIALS_MESSAGE, FailureCode.INVALID_CREDENTIALS)


def authenticate_user(repo: UserRepository, hasher: PasswordHasher, email: Any, password: Any):
    """Return the stored account for valid credentials, None otherwise."""
    if not isinstance(email, str) or not isinstance(password, str):
        return None
    user = repo.get_by_email(email)
    if user is None:
        hasher.dummy_verify()
        return None
    if not hasher.verify(password, user.password_hash):
        return None
    return user


def login(
    repo: UserRepository,
    hasher: PasswordHasher,
    tokens: TokenService,
    email: Any,
    password: Any,
) -> TokenResponse:
    user = authenticate_user(repo, hasher, email, password)
    if user is None:
        logger.info("login_failed")
        raise _invalid_credentials()

    identity = Identity(id=user.id, email=user.email, role=user.role)
    token = tokens.issue(identity)
    logger.info("login_succeeded", user_id=user.id, role=user.role)
    return TokenResponse(token=token, user=UserRead.model_validate(user))


def bootstrap_admin_if_needed(
    repo: UserRepository,
    hasher: PasswordHasher,
    settings: Settings,
) -> Optional[UserRead]:
    """Create the first ADMIN account if the store is empty.

    Controlled via the BOOTSTRAP_ADMIN_* settings; an empty email or password
    disables seeding.
    """
    if repo.count() > 0:
        return None
    if not settings.BOOTSTRAP_ADMIN_EMAIL or not settings.BOOTSTRAP_ADMIN_PASSWORD:
        return None

    admin = repo.create(
        {
            "name": settings.BOOTSTRAP_ADMIN_NAME,
            "email": settings.BOOTSTRAP_ADMIN_EMAIL,
            "age": settings.BOOTSTRAP_ADMIN_AGE,
            "password_hash": hasher.hash(settings.BOOTSTRAP_ADMIN_PASSWORD),
            "role": Role.ADMIN.value,
        }
    )
    logger.info("admin_bootstrapped", email=admin.email)
    return UserRead.model_validate(admin)
