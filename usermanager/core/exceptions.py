"""
Error kinds raised by the user management layers.

Every error is terminal for the current request; nothing here is retried.
The API routes translate them into HTTP status codes.
"""

from typing import Dict, List


class UserManagerError(Exception):
    """Base class for all user management errors."""


class InvalidArgumentError(UserManagerError, ValueError):
    """
    Malformed input reached the entity or repository.

    Validators reject bad requests before they get this far, so seeing this
    error means a caller skipped validation.
    """

    def __init__(self, message: str, argument: str = None):
        super().__init__(message)
        self.argument = argument


class ValidationError(UserManagerError):
    """
    One or more field rules were violated.

    Attributes:
        errors: Mapping of field name to every message raised for that field
    """

    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = errors
        fields = ", ".join(sorted(errors))
        super().__init__(f"Validation failed for: {fields}")


class DuplicateUserError(UserManagerError):
    """Username or email already belongs to another user."""


class NotFoundError(UserManagerError):
    """The referenced user does not exist."""

    def __init__(self, message: str, entity_id=None):
        super().__init__(message)
        self.entity_id = entity_id
