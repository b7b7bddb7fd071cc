"""
User model: the account entity and its state changes.

New users are built through User.create(); every later change goes
through one of the mutation methods so updated_at stays consistent.
"""

import uuid
from enum import Enum

from sqlalchemy import Boolean, Column, String, Uuid
from sqlalchemy import Enum as SQLEnum

from usermanager.core.exceptions import InvalidArgumentError
from usermanager.database import Base
from usermanager.models.types import UTCDateTime, utcnow


class UserRole(str, Enum):
    """Access level of an account."""
    ADMIN = "Admin"
    USER = "User"


def _require(value: str, argument: str, message: str) -> None:
    if value is None or not value.strip():
        raise InvalidArgumentError(message, argument)


def _coerce_role(role) -> UserRole:
    try:
        return UserRole(role)
    except ValueError:
        raise InvalidArgumentError(f"Unknown role: {role!r}", "role") from None


class User(Base):
    """
    User account.

    Attributes:
        id: UUID primary key, assigned at creation
        username: Unique login name (3-50 chars, letters, digits, underscore)
        email: Unique email address (max 100 chars)
        password_hash: bcrypt hash, never exposed by the API
        role: Admin or User
        is_active: Whether the account may be used
        created_at: Creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC), None until first change
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(500), nullable=False)
    role = Column(
        SQLEnum(UserRole, values_callable=lambda roles: [r.value for r in roles],
                native_enum=False, length=20, name="user_role"),
        nullable=False,
    )
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(UTCDateTime, nullable=True)

    @classmethod
    def create(cls, username: str, email: str, password_hash: str, role: UserRole) -> "User":
        """
        Build a new active user.

        Raises:
            InvalidArgumentError: If username, email or password_hash is blank
        """
        _require(username, "username", "Username must not be empty")
        _require(email, "email", "Email must not be empty")
        _require(password_hash, "password_hash", "Password hash must not be empty")

        return cls(
            id=uuid.uuid4(),
            username=username,
            email=email,
            password_hash=password_hash,
            role=_coerce_role(role),
            is_active=True,
            created_at=utcnow(),
            updated_at=None,
        )

    def update_profile(self, username: str, email: str, role: UserRole, is_active: bool) -> None:
        """
        Overwrite the editable profile fields.

        Raises:
            InvalidArgumentError: If username or email is blank
        """
        _require(username, "username", "Username must not be empty")
        _require(email, "email", "Email must not be empty")

        self.username = username
        self.email = email
        self.role = _coerce_role(role)
        self.is_active = is_active
        self._touch()

    def change_password(self, new_password_hash: str) -> None:
        """
        Replace the stored password hash.

        Raises:
            InvalidArgumentError: If the hash is blank
        """
        _require(new_password_hash, "new_password_hash", "Password hash must not be empty")

        self.password_hash = new_password_hash
        self._touch()

    def activate(self) -> None:
        """Enable the account. No-op if it is already active."""
        if self.is_active:
            return
        self.is_active = True
        self._touch()

    def deactivate(self) -> None:
        """Disable the account. No-op if it is already inactive."""
        if not self.is_active:
            return
        self.is_active = False
        self._touch()

    def _touch(self) -> None:
        now = utcnow()
        # updated_at must never precede created_at
        if self.created_at is not None and now < self.created_at:
            now = self.created_at
        self.updated_at = now

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role={self.role.value if self.role else None})>"
