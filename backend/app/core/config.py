"""Application configuration."""

import os
from typing import List, Optional, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "GoalTracker"
    APP_ENV: str = "development"
    DEBUG: bool = False  # Secure default: disabled
    API_V1_PREFIX: str = "/api/v1"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # OIDC provider - No defaults, tokens cannot be validated without them
    OIDC_ISSUER: str  # Required - e.g. https://tenant.auth0.com/
    OIDC_AUDIENCE: str  # Required - API identifier
    OIDC_ALGORITHMS: List[str] = ["RS256"]
    OIDC_JWKS_URL: Optional[str] = None
    OIDC_USERINFO_URL: Optional[str] = None
    JWKS_CACHE_TTL_SECONDS: int = 3600
    HTTP_TIMEOUT_SECONDS: float = 5.0

    # Database - Credentials must come from environment
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "goaltracker"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "goaltracker"

    # Database pool configuration
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 3600

    @field_validator("OIDC_ISSUER")
    @classmethod
    def validate_issuer(cls, v: str) -> str:
        """Ensure the issuer is an absolute URL ending with a slash."""
        v = v.strip()
        if not v.startswith(("https://", "http://")):
            raise ValueError("OIDC_ISSUER must be an http(s) URL")
        if not v.endswith("/"):
            v = f"{v}/"
        return v

    @field_validator("OIDC_AUDIENCE")
    @classmethod
    def validate_audience(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("OIDC_AUDIENCE must not be empty")
        return v.strip()

    @property
    def jwks_url(self) -> str:
        return self.OIDC_JWKS_URL or f"{self.OIDC_ISSUER}.well-known/jwks.json"

    @property
    def userinfo_url(self) -> str:
        return self.OIDC_USERINFO_URL or f"{self.OIDC_ISSUER}userinfo"

    @property
    def DATABASE_URL(self) -> str:
        """Build async database URL. Uses DATABASE_URL env var if set."""
        external = os.environ.get("DATABASE_URL", "")
        if external:
            return external.replace("postgresql://", "postgresql+asyncpg://")
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def DATABASE_URL_SYNC(self) -> str:
        """Build sync database URL for Alembic."""
        external = os.environ.get("DATABASE_URL", "")
        if external:
            return external.replace("postgresql+asyncpg://", "postgresql://")
        return (
            f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # CORS - Restricted methods and headers
    # Override with comma-separated env var: CORS_ORIGINS=https://mysite.com,https://www.mysite.com
    CORS_ORIGINS: Union[str, List[str]] = "http://localhost:5173,http://127.0.0.1:5173"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    CORS_ALLOWED_METHODS: List[str] = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    CORS_ALLOWED_HEADERS: List[str] = [
        "Authorization",
        "Content-Type",
        "Accept",
        "Origin",
        "X-Requested-With",
    ]

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 120
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.APP_ENV == "production" and not self.DEBUG

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
