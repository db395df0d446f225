"""Application configuration."""

import os
from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Planner settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    environment: str = _ENVIRONMENT
    debug: bool = False
    phe_over_threshold_percent: Decimal = Decimal("25")
    min_days_between_repeats: int = 2
    variety_lookback_days: int = 7
    default_cost_per_gram: Decimal = Decimal("0.05")
    reference_daily_budget: Decimal = Decimal("25.00")
    pantry_bonus: Decimal = Decimal("5")
    expiring_soon_days: int = 3
    max_candidates_per_slot: int = 10
    selections_per_slot: int = 1

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
