"""
UserManager Server Configuration

This file contains all server-side configurable settings.
Each value can be overridden with a USERMANAGER_* environment variable.
"""

from dataclasses import dataclass, field
import os


def _env(name: str, default: str) -> str:
    return os.getenv(f"USERMANAGER_{name}", default)


def _env_bool(name: str, default: bool) -> bool:
    return _env(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ServerConfig:
    """Server networking configuration."""
    HOST: str = field(default_factory=lambda: _env("HOST", "0.0.0.0"))
    PORT: int = field(default_factory=lambda: int(_env("PORT", "8000")))
    CORS_ORIGINS: tuple = (
        "http://localhost:5173",  # Vite default port
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    )


@dataclass
class DatabaseConfig:
    """Database configuration."""
    DATABASE_URL: str = field(
        default_factory=lambda: _env("DATABASE_URL", "sqlite+aiosqlite:///./data/usermanager.db")
    )
    ECHO_SQL: bool = field(default_factory=lambda: _env_bool("ECHO_SQL", False))  # Log SQL queries


@dataclass
class SecurityConfig:
    """Password hashing configuration."""
    BCRYPT_ROUNDS: int = field(default_factory=lambda: int(_env("BCRYPT_ROUNDS", "12")))


@dataclass
class PaginationConfig:
    """Defaults and limits for paged listings."""
    DEFAULT_PAGE_NUMBER: int = 1
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100


@dataclass
class UserRulesConfig:
    """Field constraints enforced by the request validators."""
    USERNAME_MIN_LENGTH: int = 3
    USERNAME_MAX_LENGTH: int = 50
    EMAIL_MAX_LENGTH: int = 100
    PASSWORD_MIN_LENGTH: int = 8


@dataclass
class WebConfig:
    """Server-rendered admin pages."""
    # The pages never touch the database; every action goes through the REST API
    API_BASE_URL: str = field(default_factory=lambda: _env("API_BASE_URL", "http://localhost:8000"))
    API_TIMEOUT_SECONDS: float = field(default_factory=lambda: float(_env("API_TIMEOUT_SECONDS", "10")))


@dataclass
class Settings:
    """Main settings container."""
    server: ServerConfig = None
    database: DatabaseConfig = None
    security: SecurityConfig = None
    pagination: PaginationConfig = None
    user_rules: UserRulesConfig = None
    web: WebConfig = None

    # Application info
    APP_NAME: str = "UserManager"
    VERSION: str = "0.1.0"
    DEBUG: bool = field(default_factory=lambda: _env_bool("DEBUG", False))
    LOG_LEVEL: str = field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))

    def __post_init__(self):
        self.server = self.server or ServerConfig()
        self.database = self.database or DatabaseConfig()
        self.security = self.security or SecurityConfig()
        self.pagination = self.pagination or PaginationConfig()
        self.user_rules = self.user_rules or UserRulesConfig()
        self.web = self.web or WebConfig()


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings
