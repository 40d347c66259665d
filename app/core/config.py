# app/core/config.py
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - DATABASE_URL (Postgres in production, sqlite for local runs)
      - JWT_SECRET (HS256 signing secret for access tokens)

    Everything else has a sensible default for local development.
    """

    PROJECT_NAME: str = "Shalura Store API"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # DB config
    DATABASE_URL: str
    DATABASE_ECHO: bool = False

    # JWT issuing / verification
    JWT_SECRET: str
    JWT_ALG: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 7 * 24 * 60

    # Cookies
    AUTH_COOKIE_NAME: str = "token"
    SESSION_COOKIE_NAME: str = "sessionId"
    SESSION_COOKIE_MAX_AGE_DAYS: int = 7

    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]

    # Checkout rules (currency has no minor units)
    FREE_SHIPPING_THRESHOLD: float = 300000
    FLAT_SHIPPING_FEE: float = 15000
    TAX_RATE: float = 0.11
    ESTIMATED_DELIVERY_DAYS: int = 5

    FEATURED_LIMIT: int = 8
    # dashboard flags active products at or below this stock level
    LOW_STOCK_THRESHOLD: int = 5

    # Order confirmation emails
    SEND_ORDER_EMAILS: bool = False
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_FROM_EMAIL: str | None = None
    SMTP_FROM_NAME: str = "Shalura Store"
    SMTP_USE_TLS: bool = True
    SMTP_USE_SSL: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
