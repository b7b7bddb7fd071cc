"""
User repository: persistence for User entities.

UserRepository is the contract the handlers depend on;
SQLAlchemyUserRepository implements it over an async session.

Every method is a coroutine. Cancelling the calling task raises
CancelledError at the pending await and the session rolls back on close.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from usermanager.core.exceptions import DuplicateUserError, InvalidArgumentError, NotFoundError
from usermanager.models.user import User

logger = logging.getLogger(__name__)


class UserRepository(ABC):
    """Storage operations the user handlers rely on."""

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Return the user with this id, or None."""

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[User]:
        """Return the user with this username, or None."""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Return the user with this email, or None."""

    @abstractmethod
    async def get_paged(self, page_number: int, page_size: int) -> List[User]:
        """Return one page of users, oldest first."""

    @abstractmethod
    async def exists(self, username: str, email: str, exclude_id: Optional[UUID] = None) -> bool:
        """True if a user other than exclude_id has this username or email."""

    @abstractmethod
    async def add(self, user: User) -> None:
        """Persist a new user."""

    @abstractmethod
    async def update(self, user: User) -> None:
        """Persist changes to an existing user. Raises NotFoundError if it is gone."""

    @abstractmethod
    async def delete(self, user_id: UUID) -> None:
        """Remove a user. Raises NotFoundError if it does not exist."""

    @abstractmethod
    async def get_total_count(self) -> int:
        """Number of persisted users."""


class SQLAlchemyUserRepository(UserRepository):
    """
    UserRepository backed by a SQLAlchemy AsyncSession.

    Args:
        db: Request-scoped database session
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_paged(self, page_number: int, page_size: int) -> List[User]:
        """
        Get one page of users ordered by creation time.

        Args:
            page_number: 1-based page index
            page_size: Maximum number of users per page

        Returns:
            List of User objects (empty past the last page)

        Raises:
            InvalidArgumentError: If page_number < 1 or page_size < 1
        """
        if page_number < 1:
            raise InvalidArgumentError("page_number must be at least 1", "page_number")
        if page_size < 1:
            raise InvalidArgumentError("page_size must be at least 1", "page_size")

        stmt = (
            select(User)
            .order_by(User.created_at.asc(), User.id.asc())
            .offset((page_number - 1) * page_size)
            .limit(page_size)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def exists(self, username: str, email: str, exclude_id: Optional[UUID] = None) -> bool:
        stmt = select(User.id).where(or_(User.username == username, User.email == email))
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)

        result = await self.db.execute(select(stmt.exists()))
        return bool(result.scalar())

    async def add(self, user: User) -> None:
        self.db.add(user)
        await self._commit(user)

    async def update(self, user: User) -> None:
        existing = await self.db.get(User, user.id)
        if existing is None:
            raise NotFoundError(f"User {user.id} does not exist", user.id)

        # A detached copy carries its changes onto the tracked row
        if existing is not user:
            existing.username = user.username
            existing.email = user.email
            existing.password_hash = user.password_hash
            existing.role = user.role
            existing.is_active = user.is_active
            existing.updated_at = user.updated_at

        await self._commit(existing)

    async def delete(self, user_id: UUID) -> None:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} does not exist", user_id)

        await self.db.delete(user)
        await self.db.commit()

    async def get_total_count(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(User))
        return result.scalar_one()

    async def _commit(self, user: User) -> None:
        """
        Commit the pending write.

        The unique indexes on username and email are the final guard against
        two requests racing past exists(); a violation becomes DuplicateUserError.
        """
        username = user.username
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Unique constraint rejected user '{username}': {str(e.orig)}")
            raise DuplicateUserError("Username or email already exists") from e
