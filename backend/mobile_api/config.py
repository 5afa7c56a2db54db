"""Application configuration management"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, List
from urllib.parse import quote_plus

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

# Base directory: backend/
_BASE_DIR = Path(__file__).resolve().parent.parent

_DEFAULT_SECRET = "your-secret-key-change-in-production"


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Application
    APP_NAME: str = "DigitalOcean App Platform Mobile API"
    APP_VERSION: str = "2.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = Field(
        default="development",
        validation_alias=AliasChoices("ENVIRONMENT", "NODE_ENV"),
    )

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    WORKERS: int = 4
    API_PREFIX: str = "/api"

    # Database (PostgreSQL)
    DATABASE_URL: str = ""
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "mobile_api"
    POSTGRES_USER: str = "mobile_api"
    POSTGRES_PASSWORD: str = "mobile_api"
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 10

    # Security
    SECRET_KEY: str = Field(
        default=_DEFAULT_SECRET,
        validation_alias=AliasChoices("SECRET_KEY", "JWT_SECRET"),
    )
    ALGORITHM: str = "HS256"
    SESSION_TTL_DAYS: int = 7
    BCRYPT_ROUNDS: int = 10
    PASSWORD_MIN_LENGTH: int = 8

    # Sessions
    RUN_SESSION_SWEEPER: bool = True
    SESSION_SWEEP_INTERVAL_SECONDS: float = 3600.0

    # Rate Limiting (per client IP, sliding window)
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    API_RATE_LIMIT: int = 1000
    AUTH_RATE_LIMIT: int = 5

    # Items
    PUBLIC_ITEMS_LIMIT: int = 10
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    # Object storage (DigitalOcean Spaces, S3-compatible)
    SPACES_ENDPOINT: str = "nyc3.digitaloceanspaces.com"
    SPACES_REGION: str = "us-east-1"
    SPACES_KEY: str = ""
    SPACES_SECRET: str = ""
    SPACES_BUCKET: str = ""

    # DigitalOcean management API (cloud tool bridge)
    DO_API_TOKEN: str = Field(
        default="",
        validation_alias=AliasChoices("DO_API_TOKEN", "DIGITALOCEAN_TOKEN"),
    )
    DO_API_BASE: str = "https://api.digitalocean.com/v2"
    DO_API_TIMEOUT_SECONDS: float = 30.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # CORS
    CORS_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default=["*"],
        validation_alias=AliasChoices("CORS_ORIGINS", "CORS_ORIGIN"),
    )

    # Database initialization discipline
    DB_INIT_MODE: str = "migrate"  # migrate | create_all | off
    DB_REQUIRE_HEAD: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, value: Any) -> Any:
        """
        Accept JSON array or comma-separated origins from env.

        Examples:
            CORS_ORIGINS=["http://localhost:3000","http://example.com"]
            CORS_ORIGINS=http://localhost:3000,http://example.com
        """
        if not isinstance(value, str):
            return value

        raw = value.strip()
        if not raw:
            return []

        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None

        if isinstance(parsed, str):
            return [parsed]
        if isinstance(parsed, list):
            return [str(origin).strip() for origin in parsed if str(origin).strip()]

        return [origin.strip() for origin in raw.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    def get_log_file(self) -> str:
        p = self.LOG_FILE
        if not p or p.startswith(".."):
            return str(_BASE_DIR.parent / "logs" / "app.log")
        return p

    def get_database_url(self) -> str:
        """
        Resolve database URL.

        Priority:
          1) Explicit DATABASE_URL (postgres:// is normalised for SQLAlchemy)
          2) Construct from POSTGRES_* parts with safe URL encoding
        """
        if self.DATABASE_URL:
            if self.DATABASE_URL.startswith("postgres://"):
                return self.DATABASE_URL.replace("postgres://", "postgresql://", 1)
            return self.DATABASE_URL

        user = quote_plus(self.POSTGRES_USER)
        password = quote_plus(self.POSTGRES_PASSWORD)
        return (
            f"postgresql://{user}:{password}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    def get_spaces_endpoint_url(self) -> str:
        endpoint = self.SPACES_ENDPOINT.strip()
        if endpoint.startswith("http://") or endpoint.startswith("https://"):
            return endpoint
        return f"https://{endpoint}"

    def using_default_secret(self) -> bool:
        return self.SECRET_KEY == _DEFAULT_SECRET

    def validate_security_settings(self) -> None:
        """
        Validate runtime security defaults in production.

        Raises:
            ValueError: If insecure defaults are detected.
        """
        if not self.is_production:
            return

        insecure_secret_markers = {"", _DEFAULT_SECRET, "change-me"}
        if self.SECRET_KEY in insecure_secret_markers or len(self.SECRET_KEY) < 32:
            raise ValueError(
                "Insecure SECRET_KEY for production. Use a strong key (e.g. `openssl rand -hex 32`)."
            )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
