"""User service — account CRUD with validation, uniqueness and self-scoping."""

from typing import Any, Dict, List, Optional

import structlog

from accounts_api.application.services.access_control import can_access, ensure_can_access
from accounts_api.application.services.security import PasswordHasher
from accounts_api.application.services.validation import (
    validate_age,
    validate_email,
    validate_name,
    validate_password,
    validate_role,
)
from accounts_api.core.exceptions import (
    BadRequestException,
    ConflictException,
    EntityNotFoundException,
    FailureCode,
    ForbiddenException,
)
from accounts_api.domain.models.user import Role, User, utcnow
from accounts_api.domain.repositories.user_repository import UserRepository
from accounts_api.domain.schemas.auth import Identity
from accounts_api.domain.schemas.user import UserRead

logger = structlog.get_logger(__name__)


def _as_dict(data: Any) -> Dict[str, Any]:
    """Only the fields the caller actually supplied."""
    if hasattr(data, "model_dump"):
        return data.model_dump(exclude_unset=True)
    return dict(data or {})


def _not_found() -> EntityNotFoundException:
    return EntityNotFoundException("User not found", FailureCode.USER_NOT_FOUND)


def _email_in_use() -> ConflictException:
    return ConflictException("Email already in use", FailureCode.EMAIL_IN_USE)


def _get_or_404(repo: UserRepository, user_id: str) -> User:
    user = repo.get_by_id(user_id)
    if user is None:
        raise _not_found()
    return user


def _ensure_may_set_role(actor: Optional[Identity]) -> None:
    # actor None is a trusted in-process caller (bootstrap, CLI)
    if actor is not None and not actor.is_admin:
        raise ForbiddenException("Insufficient permissions", FailureCode.INSUFFICIENT_PERMISSIONS)


def list_users(repo: UserRepository, identity: Identity) -> List[UserRead]:
    """ADMIN sees every account; USER sees a one-element list of their own."""
    if identity.is_admin:
        return [UserRead.model_validate(u) for u in repo.list()]
    return [get_user(repo, identity.id)]


def get_user(repo: UserRepository, user_id: str, identity: Optional[Identity] = None) -> UserRead:
    if identity is not None:
        ensure_can_access(identity, user_id)
    return UserRead.model_validate(_get_or_404(repo, user_id))


def search_users_by_name(
    repo: UserRepository, name: Any, identity: Optional[Identity] = None
) -> List[UserRead]:
    if not isinstance(name, str) or not name.strip():
        raise BadRequestException("Name query parameter is required", FailureCode.QUERY_REQUIRED)

    users = repo.search_by_name(name.strip())
    if identity is not None:
        users = [u for u in users if can_access(identity, u.id)]
    return [UserRead.model_validate(u) for u in users]


def get_user_by_email(repo: UserRepository, email: Any, identity: Optional[Identity] = None) -> UserRead:
    if not isinstance(email, str) or not email.strip():
        raise BadRequestException("Email query parameter is required", FailureCode.QUERY_REQUIRED)
    email = validate_email(email.strip())

    # Decided before the lookup so a USER cannot probe which emails exist.
    if identity is not None and not identity.is_admin and identity.email != email:
        raise ForbiddenException("Insufficient permissions", FailureCode.INSUFFICIENT_PERMISSIONS)

    user = repo.get_by_email(email)
    if user is None:
        raise _not_found()
    return UserRead.model_validate(user)


def create_user(
    repo: UserRepository,
    hasher: PasswordHasher,
    data: Any,
    actor: Optional[Identity] = None,
) -> UserRead:
    """Validate, check uniqueness, hash and persist a new account.

    Format rules run before the uniqueness lookup so malformed input never
    reaches the store.
    """
    fields = _as_dict(data)

    email = validate_email(fields.get("email"))
    password = validate_password(fields.get("password"))
    age = validate_age(fields.get("age"))
    name = validate_name(fields.get("name"))
    if fields.get("role") is not None:
        _ensure_may_set_role(actor)
    role = validate_role(fields.get("role"), default=Role.USER)

    if repo.get_by_email(email) is not None:
        raise _email_in_use()

    now = utcnow()
    user = repo.create(
        {
            "name": name,
            "email": email,
            "age": age,
            "password_hash": hasher.hash(password),
            "role": role.value,
            "created_at": now,
            "updated_at": now,
        }
    )
    logger.info("user_created", user_id=user.id, role=user.role, by=actor.id if actor else None)
    return UserRead.model_validate(user)


def update_user(
    repo: UserRepository,
    hasher: PasswordHasher,
    user_id: str,
    data: Any,
    actor: Optional[Identity] = None,
) -> UserRead:
    """Apply a partial update.

    Only supplied fields are checked and written. updated_at moves only when
    something actually changed; an empty update returns the record as is.
    """
    existing = _get_or_404(repo, user_id)
    fields = _as_dict(data)
    changes: Dict[str, Any] = {}

    if "email" in fields and fields["email"] != existing.email:
        email = validate_email(fields["email"])
        if repo.get_by_email(email) is not None:
            raise _email_in_use()
        changes["email"] = email

    if "password" in fields:
        changes["password_hash"] = hasher.hash(validate_password(fields["password"]))

    if "age" in fields:
        age = validate_age(fields["age"])
        if age != existing.age:
            changes["age"] = age

    if "name" in fields:
        name = validate_name(fields["name"])
        if name != existing.name:
            changes["name"] = name

    if "role" in fields:
        _ensure_may_set_role(actor)
        role = validate_role(fields["role"])
        if role.value != existing.role:
            changes["role"] = role.value

    if not changes:
        return UserRead.model_validate(existing)

    changes["updated_at"] = utcnow()
    user = repo.update(existing, changes)
    logger.info(
        "user_updated",
        user_id=user.id,
        fields=sorted(k for k in changes if k != "updated_at"),
        by=actor.id if actor else None,
    )
    return UserRead.model_validate(user)


def delete_user(repo: UserRepository, user_id: str, actor: Optional[Identity] = None) -> bool:
    if not repo.delete(user_id):
        raise _not_found()
    logger.info("user_deleted", user_id=user_id, by=actor.id if actor else None)
    return True
