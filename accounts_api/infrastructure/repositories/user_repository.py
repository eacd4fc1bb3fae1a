"""
SQLAlchemy Implementation of User Repository.
"""

from typing import List, Optional

from sqlalchemy import func

from accounts_api.domain.models.user import User
from accounts_api.domain.repositories.user_repository import UserRepository
from accounts_api.infrastructure.repositories.base_repository import SQLAlchemyRepository


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SQLAlchemyUserRepository(SQLAlchemyRepository[User], UserRepository):
    """User repository implementation using SQLAlchemy."""

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def search_by_name(self, fragment: str) -> List[User]:
        pattern = f"%{_escape_like(fragment)}%"
        return (
            self.db.query(User)
            .filter(User.name.ilike(pattern, escape="\\"))
            .order_by(User.created_at.asc())
            .all()
        )

    def count(self) -> int:
        return self.db.query(func.count(User.id)).scalar() or 0
