"""
Configuration & Environment Management for EventDesk
"""

import logging
import secrets
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings as PydanticBaseSettings

logger = logging.getLogger(__name__)


class DatabaseSettings(PydanticBaseSettings):
    """Database configuration settings"""

    DATABASE_URL: str = "sqlite+aiosqlite:///./events.db"
    DB_ECHO: bool = False

    # Connection Pool Settings (PostgreSQL only)
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 30
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_POOL_PRE_PING: bool = True

    # Seconds a SQLite writer waits for the database write lock
    DB_SQLITE_BUSY_TIMEOUT: float = 20.0

    model_config = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}


class SecuritySettings(PydanticBaseSettings):
    """Security and authentication settings"""

    JWT_SECRET_KEY: str = secrets.token_urlsafe(32)
    JWT_ALGORITHM: str = "HS256"

    # Token Expiration
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Password Security
    PASSWORD_MIN_LENGTH: int = 6
    BCRYPT_ROUNDS: int = 12

    model_config = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}


class MonitoringSettings(PydanticBaseSettings):
    """Logging settings"""

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    model_config = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}


class Settings(PydanticBaseSettings):
    """Main application settings"""

    # Environment
    ENVIRONMENT: str = "development"
    VERSION: str = "1.0.0"

    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # API Configuration
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "EventDesk"
    PROJECT_DESCRIPTION: str = "Event registration with capacity-checked seat booking"

    # CORS Configuration, comma separated
    BACKEND_CORS_ORIGINS: str = "http://localhost:5500"

    # Default administrator provisioned on first startup
    FIRST_ADMIN_USERNAME: str = "admin"
    FIRST_ADMIN_EMAIL: str = "admin@events.com"
    FIRST_ADMIN_PASSWORD: str = "admin123"

    # Component Settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    model_config = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}

    @property
    def cors_origins(self) -> List[str]:
        value = self.BACKEND_CORS_ORIGINS.strip()
        if value.startswith("["):
            value = value.strip("[]").replace('"', "")
        return [origin.strip() for origin in value.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
