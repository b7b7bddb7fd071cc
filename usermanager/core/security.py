"""
Password hashing.

Wraps bcrypt so the rest of the code only ever sees opaque hash strings.
"""

import base64
import hashlib
import logging

import bcrypt

from usermanager.config import get_settings

logger = logging.getLogger(__name__)


def _prehash(password: str) -> bytes:
    # bcrypt rejects input over 72 bytes; a base64 SHA-256 digest is always 44
    digest = hashlib.sha256(password.encode("utf-8")).digest()
    return base64.b64encode(digest)


class PasswordHasher:
    """
    Salted, adaptive password hashing backed by bcrypt.

    Plaintexts of any length are accepted: the password is reduced to a
    SHA-256 digest before it reaches bcrypt.

    Args:
        rounds: bcrypt work factor (log2 of the iteration count)
    """

    def __init__(self, rounds: int = None):
        self.rounds = rounds or get_settings().security.BCRYPT_ROUNDS

    def hash(self, password: str) -> str:
        """Hash a plaintext password with a fresh salt."""
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_prehash(password), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """
        Check a plaintext password against a stored hash.

        Returns False for a malformed hash instead of raising.
        """
        try:
            return bcrypt.checkpw(_prehash(password), password_hash.encode("utf-8"))
        except ValueError as e:
            logger.warning(f"Rejected malformed password hash: {str(e)}")
            return False


def get_password_hasher() -> PasswordHasher:
    """Dependency returning a hasher configured from settings."""
    return PasswordHasher()
