"""User domain model — maps to the 'users' table."""

import enum
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, Integer, String

from accounts_api.infrastructure.database import Base, UTCDateTime


class Role(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_user_id() -> str:
    return str(uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_user_id)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    age = Column(Integer, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=Role.USER.value)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<User {self.email}>"
