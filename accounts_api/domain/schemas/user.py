"""Pydantic schemas for the User domain.

Incoming fields are typed loosely on purpose: the validation rules in
application.services.validation decide what is acceptable and in which
order, so a wrong type must reach them instead of failing in the parser.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from accounts_api.domain.models.user import Role


class UserCreate(BaseModel):
    name: Any = None
    email: Any = None
    age: Any = None
    password: Any = None
    role: Any = None


class UserUpdate(BaseModel):
    name: Any = None
    email: Any = None
    age: Any = None
    password: Any = None
    role: Any = None


class UserRead(BaseModel):
    """Sanitized account: everything but the password hash."""
    id: str
    name: str
    email: str
    age: int
    role: Role
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
