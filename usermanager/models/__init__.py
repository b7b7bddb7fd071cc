from usermanager.models.user import User, UserRole

__all__ = ["User", "UserRole"]
