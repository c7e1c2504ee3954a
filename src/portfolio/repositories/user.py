"""User repository for user-specific database operations."""

from sqlalchemy import select

from portfolio.models.user import User
from portfolio.repositories.base import BaseRepository


def normalize_email(email: str) -> str:
    """Trim and lower-case an email address, the form in which it is stored."""
    return email.strip().lower()


class UserRepository(BaseRepository[User]):
    """Repository for User model.

    Every lookup normalizes the email first, so callers may pass user input
    as typed.

    Example:
        >>> repo = UserRepository(User, db)
        >>> user = await repo.get_by_email(" Ana@Example.com ")
    """

    async def get_by_email(self, email: str) -> User | None:
        """Get user by email address.

        Args:
            email: The email address to search for (any case)

        Returns:
            User object if found, None otherwise
        """
        result = await self.db.execute(select(User).where(User.email == normalize_email(email)))
        return result.scalar_one_or_none()

    async def exists_by_email(self, email: str) -> bool:
        """Check if an email is already registered.

        Args:
            email: The email to check

        Returns:
            True if email exists, False otherwise
        """
        return await self.get_by_email(email) is not None
