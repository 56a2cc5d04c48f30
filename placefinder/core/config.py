"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    geoapify_api_key: str
    database_url: str
    worker_port: int = 9000
    home_country: str = "USA"
    nearby_cache_dir: str = ".cache/nearby"
    nearby_cache_ttl_seconds: int = 600
    provider_timeout_seconds: float = 10.0


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    geoapify_api_key = os.getenv("GEOAPIFY_API_KEY", "")
    database_url = os.getenv("DATABASE_URL", "")
    worker_port = int(os.getenv("WORKER_PORT", "9000"))
    home_country = (os.getenv("HOME_COUNTRY") or "USA").strip().upper()
    nearby_cache_dir = os.getenv("NEARBY_CACHE_DIR", ".cache/nearby")
    nearby_cache_ttl_seconds = int(os.getenv("NEARBY_CACHE_TTL_SECONDS", "600"))
    provider_timeout_seconds = float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "10"))

    if not database_url:
        logger.warning("DATABASE_URL is not set; restaurant store reads will fail.")
    if not geoapify_api_key:
        logger.warning("GEOAPIFY_API_KEY is not configured; provider requests will fail.")

    return Settings(
        geoapify_api_key=geoapify_api_key,
        database_url=database_url,
        worker_port=worker_port,
        home_country=home_country,
        nearby_cache_dir=nearby_cache_dir,
        nearby_cache_ttl_seconds=nearby_cache_ttl_seconds,
        provider_timeout_seconds=provider_timeout_seconds,
    )
