"""
Application configuration using Pydantic Settings.
All environment-specific values are centralized here.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

_DEFAULT_SEED_FILE = Path(__file__).parent / "sources" / "seed_data" / "client_configurations.json"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── App ──────────────────────────────────────────────
    app_name: str = "Delivery Pricing Calculator"
    debug: bool = False
    mock_mode: bool = True  # When True, sources and quote storage stay in memory

    # ── MongoDB ──────────────────────────────────────────
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "delivery_pricing"
    configurations_collection: str = "delivery_configurations"
    quotes_collection: str = "quotes"

    # ── Configuration source ─────────────────────────────
    seed_file: str = str(_DEFAULT_SEED_FILE)

    # ── Batch quoting ────────────────────────────────────
    batch_max_workers: int = 1  # 1 = quote sequentially

    # ── Logging ──────────────────────────────────────────
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "DELIVERY_PRICING_",
        "case_sensitive": False,
    }


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings (singleton)."""
    return Settings()
