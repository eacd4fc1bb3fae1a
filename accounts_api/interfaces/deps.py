"""
API Dependencies.
Resolve the process-wide resources created at startup (database handle,
hasher, token service) from app.state for each request.
"""

from typing import Iterator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from accounts_api.application.services.security import PasswordHasher, TokenService
from accounts_api.domain.models.user import User
from accounts_api.domain.repositories.user_repository import UserRepository
from accounts_api.infrastructure.repositories.user_repository import SQLAlchemyUserRepository


def get_db(request: Request) -> Iterator[Session]:
    yield from request.app.state.database.get_db()


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    """Get user repository instance."""
    return SQLAlchemyUserRepository(db, User)


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service
