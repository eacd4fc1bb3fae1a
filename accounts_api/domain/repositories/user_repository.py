"""
User Repository Interface.
Defines the credential store operations the services rely on.
"""

from typing import List, Optional

from accounts_api.domain.repositories.base import BaseRepository
from accounts_api.domain.models.user import User


class UserRepository(BaseRepository[User]):
    """Interface for User-specific operations.

    create and update raise ConflictException when the email is already
    held by another account.
    """

    def get_by_email(self, email: str) -> Optional[User]:
        """Exact, case-sensitive email lookup."""
        ...

    def search_by_name(self, fragment: str) -> List[User]:
        """Case-insensitive substring match on name."""
        ...

    def count(self) -> int:
        """Number of stored accounts."""
        ...
