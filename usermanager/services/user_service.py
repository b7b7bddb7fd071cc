"""
User service layer for user management operations.

One handler class per command or query. Handlers receive their repository
(and hasher) through the constructor and assume their input has already
been validated. UserService runs the validator for each request and then
hands it to the matching handler.
"""

import logging
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from usermanager.core.exceptions import DuplicateUserError, NotFoundError
from usermanager.core.security import PasswordHasher, get_password_hasher
from usermanager.database import get_db
from usermanager.models.user import User
from usermanager.repositories.user_repository import SQLAlchemyUserRepository, UserRepository
from usermanager.schemas.user import (
    CreateUserCommand,
    DeleteUserCommand,
    GetUserQuery,
    GetUsersQuery,
    PagedResult,
    UpdateUserCommand,
    UserDto,
    to_user_dto,
)
from usermanager.services import validators

logger = logging.getLogger(__name__)


class CreateUserHandler:
    """Creates a user after checking that username and email are free."""

    def __init__(self, repository: UserRepository, hasher: PasswordHasher):
        self.repository = repository
        self.hasher = hasher

    async def handle(self, command: CreateUserCommand) -> UUID:
        """
        Create a new user.

        Args:
            command: Validated create command

        Returns:
            Id of the new user

        Raises:
            DuplicateUserError: If the username or email is already taken
        """
        if await self.repository.exists(command.username, command.email):
            raise DuplicateUserError("Username or email already exists")

        # bcrypt blocks for the whole work factor
        password_hash = await run_in_threadpool(self.hasher.hash, command.password)
        user = User.create(command.username, command.email, password_hash, command.role)
        await self.repository.add(user)

        return user.id


class UpdateUserHandler:
    """Replaces the profile fields of an existing user."""

    def __init__(self, repository: UserRepository):
        self.repository = repository

    async def handle(self, command: UpdateUserCommand) -> bool:
        """
        Update an existing user.

        Raises:
            NotFoundError: If no user has this id
            DuplicateUserError: If another user already has the username or email
        """
        user = await self.repository.get_by_id(command.user_id)
        if user is None:
            raise NotFoundError(f"User {command.user_id} does not exist", command.user_id)

        if await self.repository.exists(command.username, command.email, exclude_id=command.user_id):
            raise DuplicateUserError("Username or email already exists")

        user.update_profile(command.username, command.email, command.role, command.is_active)
        await self.repository.update(user)

        return True


class DeleteUserHandler:
    """Physically removes a user."""

    def __init__(self, repository: UserRepository):
        self.repository = repository

    async def handle(self, command: DeleteUserCommand) -> bool:
        # The repository raises NotFoundError for unknown ids
        await self.repository.delete(command.user_id)
        return True


class GetUserHandler:
    """Loads one user and projects it."""

    def __init__(self, repository: UserRepository):
        self.repository = repository

    async def handle(self, query: GetUserQuery) -> UserDto:
        user = await self.repository.get_by_id(query.user_id)
        if user is None:
            raise NotFoundError(f"User {query.user_id} does not exist", query.user_id)
        return to_user_dto(user)


class GetUsersHandler:
    """Loads one page of users together with the total count."""

    def __init__(self, repository: UserRepository):
        self.repository = repository

    async def handle(self, query: GetUsersQuery) -> PagedResult[UserDto]:
        users = await self.repository.get_paged(query.page_number, query.page_size)
        total_count = await self.repository.get_total_count()

        return PagedResult[UserDto](
            items=[to_user_dto(user) for user in users],
            total_count=total_count,
            page_number=query.page_number,
            page_size=query.page_size,
        )


class UserService:
    """
    Entry point for user operations.

    Every call is validated first; a validation failure never reaches the
    repository.

    Args:
        repository: User storage
        hasher: Password hasher used when creating users
    """

    def __init__(self, repository: UserRepository, hasher: PasswordHasher):
        self.create_handler = CreateUserHandler(repository, hasher)
        self.update_handler = UpdateUserHandler(repository)
        self.delete_handler = DeleteUserHandler(repository)
        self.get_handler = GetUserHandler(repository)
        self.list_handler = GetUsersHandler(repository)

    async def create_user(self, command: CreateUserCommand) -> UUID:
        validators.validate_create_user(command)
        user_id = await self.create_handler.handle(command)
        logger.info(f"Created user '{command.username}' ({user_id})")
        return user_id

    async def update_user(self, command: UpdateUserCommand) -> bool:
        validators.validate_update_user(command)
        result = await self.update_handler.handle(command)
        logger.info(f"Updated user {command.user_id}")
        return result

    async def delete_user(self, command: DeleteUserCommand) -> bool:
        validators.validate_delete_user(command)
        result = await self.delete_handler.handle(command)
        logger.info(f"Deleted user {command.user_id}")
        return result

    async def get_user(self, query: GetUserQuery) -> UserDto:
        validators.validate_get_user(query)
        return await self.get_handler.handle(query)

    async def list_users(self, query: GetUsersQuery) -> PagedResult[UserDto]:
        validators.validate_get_users(query)
        return await self.list_handler.handle(query)


def get_user_service(
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> UserService:
    """Dependency wiring a request-scoped UserService."""
    return UserService(SQLAlchemyUserRepository(db), hasher)
