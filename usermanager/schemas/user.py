"""
Commands, queries and read models for user management.

Commands describe a state change, queries a read. UserDto is the public
projection of a User and never carries the password hash.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Generic, List, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, Field, computed_field

from usermanager.config import get_settings
from usermanager.models.user import User, UserRole

_pagination = get_settings().pagination

T = TypeVar("T")


# Commands

@dataclass(frozen=True)
class CreateUserCommand:
    """Create a new user account."""
    username: str
    email: str
    password: str
    role: UserRole = UserRole.USER


@dataclass(frozen=True)
class UpdateUserCommand:
    """Replace the profile fields of an existing user."""
    user_id: UUID
    username: str
    email: str
    role: UserRole
    is_active: bool


@dataclass(frozen=True)
class DeleteUserCommand:
    """Permanently remove a user."""
    user_id: UUID


# Queries

@dataclass(frozen=True)
class GetUserQuery:
    """Fetch a single user by id."""
    user_id: UUID


@dataclass(frozen=True)
class GetUsersQuery:
    """Fetch one page of users, oldest first."""
    page_number: int = _pagination.DEFAULT_PAGE_NUMBER
    page_size: int = _pagination.DEFAULT_PAGE_SIZE


# Read models

class UserDto(BaseModel):
    """Public representation of a user."""
    id: UUID
    username: str
    email: str
    role: UserRole
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class PagedResult(BaseModel, Generic[T]):
    """One page of results plus the metadata needed to page through the rest."""
    items: List[T] = Field(default_factory=list)
    total_count: int = 0
    page_number: int = _pagination.DEFAULT_PAGE_NUMBER
    page_size: int = _pagination.DEFAULT_PAGE_SIZE

    @computed_field
    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)


def to_user_dto(user: User) -> UserDto:
    """Project a User entity onto its public representation."""
    return UserDto(
        id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
        is_active=user.is_active,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


# API request bodies. Field rules live in services.validators so every
# violation is reported together.

class CreateUserRequest(BaseModel):
    """Request model for creating a user."""
    username: str = Field("", description="Login name (3-50 chars: letters, digits, underscore)")
    email: str = Field("", description="Email address (max 100 chars)")
    password: str = Field("", description="Plaintext password (min 8 chars, upper, lower and digit)")
    role: str = Field(UserRole.USER.value, description="Admin or User")


class UpdateUserRequest(BaseModel):
    """Request model for updating a user."""
    user_id: Optional[UUID] = Field(None, description="Must match the id in the URL")
    username: str = Field("", description="New login name")
    email: str = Field("", description="New email address")
    role: str = Field(UserRole.USER.value, description="Admin or User")
    is_active: bool = Field(True, description="Whether the account may be used")
