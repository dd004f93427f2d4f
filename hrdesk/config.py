"""HR Desk Configuration Settings."""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


def _split_csv(value: str) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    # Database
    DATABASE_URL: Optional[str] = None

    # JWT
    JWT_SECRET_KEY: str = Field(default="dev-secret-key-change-me")
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440
    PASSWORD_RESET_EXPIRE_MINUTES: int = 30

    # Application
    APP_NAME: str = "HR Desk"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Object storage
    STORAGE_ROOT: str = "storage"
    STORAGE_PUBLIC_BASE_URL: str = "http://localhost:8000/api/v1/storage"
    SIGNED_URL_EXPIRE_SECONDS: int = 3600

    # Location gate
    ALLOWED_LATITUDE: float = 15.1840
    ALLOWED_LONGITUDE: float = 120.5560
    ALLOWED_RADIUS_KM: float = 1.0
    IP_VALIDATION_ENFORCED: bool = False

    # Activity feed
    ACTIVITY_DEFAULT_LIMIT: int = 15
    ACTIVITY_PAGE_SIZE: int = 10

    # Realtime
    REALTIME_HEARTBEAT_SECONDS: float = 25.0
    REALTIME_MAX_QUEUE: int = 200

    # Roles
    ADMIN_ROLES: str = "admin,hr"
    DEFAULT_ROLE: str = "Staff"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    @property
    def cors_origins_list(self) -> List[str]:
        """Return the configured CORS origins as a sanitized list."""
        return _split_csv(self.CORS_ORIGINS)

    @property
    def admin_roles(self) -> List[str]:
        return [role.lower() for role in _split_csv(self.ADMIN_ROLES)]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()
