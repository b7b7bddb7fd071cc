"""
Request validation for user commands and queries.

Each field check returns every message that applies, and the validate_*
functions gather them per field and raise ValidationError once, so a caller
sees all broken rules in a single response.
"""

import re
from typing import Dict, List, Optional
from uuid import UUID

from email_validator import EmailNotValidError, validate_email

from usermanager.config import get_settings
from usermanager.core.exceptions import ValidationError
from usermanager.models.user import UserRole
from usermanager.schemas.user import (
    CreateUserCommand,
    DeleteUserCommand,
    GetUserQuery,
    GetUsersQuery,
    UpdateUserCommand,
)

rules = get_settings().user_rules
pagination = get_settings().pagination

USERNAME_PATTERN = re.compile(r"[a-zA-Z0-9_]+")


def check_username(username: Optional[str]) -> List[str]:
    if not username or not username.strip():
        return ["Username is required"]

    errors = []
    if not rules.USERNAME_MIN_LENGTH <= len(username) <= rules.USERNAME_MAX_LENGTH:
        errors.append(
            f"Username must be between {rules.USERNAME_MIN_LENGTH} and "
            f"{rules.USERNAME_MAX_LENGTH} characters"
        )
    if not USERNAME_PATTERN.fullmatch(username):
        errors.append("Username can only contain letters, numbers, and underscores")
    return errors


def check_email(email: Optional[str]) -> List[str]:
    if not email or not email.strip():
        return ["Email is required"]

    errors = []
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        errors.append("Email address is not valid")
    if len(email) > rules.EMAIL_MAX_LENGTH:
        errors.append(f"Email must not exceed {rules.EMAIL_MAX_LENGTH} characters")
    return errors


def check_password(password: Optional[str]) -> List[str]:
    if not password:
        return ["Password is required"]

    errors = []
    if len(password) < rules.PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {rules.PASSWORD_MIN_LENGTH} characters")
    if not (re.search(r"[a-z]", password) and re.search(r"[A-Z]", password) and re.search(r"[0-9]", password)):
        errors.append("Password must contain an uppercase letter, a lowercase letter, and a digit")
    return errors


def check_role(role) -> List[str]:
    try:
        UserRole(role)
    except ValueError:
        valid = ", ".join(r.value for r in UserRole)
        return [f"Role must be one of: {valid}"]
    return []


def check_user_id(user_id) -> List[str]:
    if not isinstance(user_id, UUID) or user_id.int == 0:
        return ["User ID is required"]
    return []


def _raise_if_any(errors: Dict[str, List[str]]) -> None:
    failed = {field: messages for field, messages in errors.items() if messages}
    if failed:
        raise ValidationError(failed)


def validate_create_user(command: CreateUserCommand) -> None:
    """
    Validate a create command.

    Raises:
        ValidationError: With every violated rule, keyed by field
    """
    _raise_if_any({
        "username": check_username(command.username),
        "email": check_email(command.email),
        "password": check_password(command.password),
        "role": check_role(command.role),
    })


def validate_update_user(command: UpdateUserCommand) -> None:
    """
    Validate an update command.

    Raises:
        ValidationError: With every violated rule, keyed by field
    """
    _raise_if_any({
        "user_id": check_user_id(command.user_id),
        "username": check_username(command.username),
        "email": check_email(command.email),
        "role": check_role(command.role),
    })


def validate_delete_user(command: DeleteUserCommand) -> None:
    _raise_if_any({"user_id": check_user_id(command.user_id)})


def validate_get_user(query: GetUserQuery) -> None:
    _raise_if_any({"user_id": check_user_id(query.user_id)})


def validate_get_users(query: GetUsersQuery) -> None:
    errors = {"page_number": [], "page_size": []}
    if query.page_number < 1:
        errors["page_number"].append("Page number must be at least 1")
    if not 1 <= query.page_size <= pagination.MAX_PAGE_SIZE:
        errors["page_size"].append(f"Page size must be between 1 and {pagination.MAX_PAGE_SIZE}")
    _raise_if_any(errors)
