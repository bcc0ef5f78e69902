"""
SafeStart settings, read from the environment and an optional .env file.
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    """get_settings() caches the first instance; set env vars before importing safestart."""

    # Database settings
    DATABASE_URL: str = "postgresql://localhost/safestart_dev"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 40

    # Tokens. Access and refresh tokens use separate secrets.
    # Empty issuer/audience leaves those claims out.
    JWT_ACCESS_SECRET: str = "dev-access-secret-change-in-production"
    JWT_REFRESH_SECRET: str = "dev-refresh-secret-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = ""
    JWT_AUDIENCE: str = ""
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Password settings
    BCRYPT_ROUNDS: int = 12
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60

    # Redis for rate limiting
    REDIS_URL: str = "redis://localhost:6379/0"

    # Rate limiting, per client IP over a fixed window
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_WINDOW_SECONDS: int = 900
    AUTH_RATE_LIMIT: int = 5
    API_RATE_LIMIT: int = 100

    # Application settings
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    FRONTEND_URL: str = "http://localhost:3000"
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Outbound email (SMTP). Empty host disables sending.
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    EMAIL_FROM: str = "noreply@safestart.app"
    EMAIL_FROM_NAME: str = "SafeStart"

    # Outbound SMS (Twilio). Missing credentials disable sending.
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_FROM_NUMBER: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
