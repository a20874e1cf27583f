# tuktuk/core/config.py
from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - SUPABASE_URL
      - SUPABASE_KEY (anon key)
      - DATABASE_URL (Supabase Postgres connection string)
      - SUPABASE_JWT_SECRET (JWT signing secret from Supabase project settings)

    Missing any of these is a fatal startup error (pydantic ValidationError).

    Optional:
      - SUPABASE_SERVICE_ROLE_KEY (only used for Storage uploads)
      - REDIS_URL (change notifications)
      - DELIVERY_FEE (flat fee added to every vendor order)
    """

    PROJECT_NAME: str = "TukTuk Delivery API"
    API_V1_STR: str = "/api/v1"

    # Supabase / DB config
    SUPABASE_URL: str
    SUPABASE_KEY: str
    DATABASE_URL: str

    # JWT verification (backend-side)
    SUPABASE_JWT_SECRET: str
    SUPABASE_JWT_ALG: str = "HS256"

    # Service role key bypasses RLS (backend only)
    SUPABASE_SERVICE_ROLE_KEY: str | None = None

    PRODUCT_IMAGES_BUCKET: str = "product-images"

    # Realtime change notifications
    REDIS_URL: str = "redis://localhost:6379/0"
    REALTIME_CHANNEL_PREFIX: str = "tuktuk:changes"

    # Flat delivery fee per vendor order
    DELIVERY_FEE: Decimal = Decimal("25.00")

    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
