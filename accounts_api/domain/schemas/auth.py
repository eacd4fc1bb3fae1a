"""Pydantic schemas for authentication."""

from typing import Any

from pydantic import BaseModel

from accounts_api.domain.models.user import Role
from accounts_api.domain.schemas.user import UserRead


class Identity(BaseModel):
    """Claims resolved from a verified bearer token."""
    id: str
    email: str
    role: Role

    model_config = {"frozen": True}

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


class LoginRequest(BaseModel):
    email: Any = None
    password: Any = None


class TokenResponse(BaseModel):
    token: str
    user: UserRead
