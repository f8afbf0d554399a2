# app/config.py
import os
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # === General ===
    app_env: str = "local"  # local | development | production
    app_name: str = "freight-quote-engine"

    # === Database ===
    # Supabase/Postgres in production, e.g. postgresql+psycopg://user:pw@host:5432/postgres
    database_url: str = "sqlite:///./quotations.db"

    # === Logging ===
    log_level: str = "INFO"

    # === Pricing defaults ===
    default_margin_percentage: float = Field(15.0, ge=0, description="Margin when a rate card has none")
    default_quote_validity_days: int = Field(7, ge=1, description="Validity window for generated quotes")
    volumetric_divisor: float = Field(167.0, gt=0, description="kg per cbm for chargeable weight")
    default_currency: str = "USD"

    # === Rate Limiting ===
    rate_limit_default: str = "1000/minute"

    # === Metrics ===
    metrics_enabled: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton Settings instance with simple env overrides."""
    s = Settings()

    env = os.getenv("ENVIRONMENT", s.app_env).lower()
    if env == "production":
        s.log_level = "WARNING"
        s.rate_limit_default = "300/minute"
    elif env == "development":
        s.log_level = "DEBUG"

    return s


settings = get_settings()
