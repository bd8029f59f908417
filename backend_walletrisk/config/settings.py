"""
Application settings.

Responsibilities:
- Load configuration from environment variables and .env files (via env.py).
- Provide defaults for every optional setting.
- Expose one typed, frozen Settings object used by the pipeline, batch
  scheduler, cache, providers and API server.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from pathlib import Path

from backend_walletrisk.config.env import (
    get_default_network,
    get_env_float,
    get_env_int,
    get_env_str,
    get_lists_dir,
    get_weights_path,
)

DEFAULT_PROVIDER_TIMEOUT_SEC = 10.0
DEFAULT_BATCH_CONCURRENCY = 6
DEFAULT_NEIGHBOR_LIMIT = 120
DEFAULT_NEIGHBOR_MAX_LIMIT = 250
DEFAULT_TX_TTL_SEC = 300.0
DEFAULT_NEIGHBOR_TTL_SEC = 600.0
DEFAULT_SCORE_TTL_SEC = 600.0
DEFAULT_CACHE_MAX_ENTRIES = 5000


@dataclass(frozen=True)
class Settings:
    """Typed service configuration."""

    default_network: str = "eth"
    etherscan_api_key: str = ""
    etherscan_base_url: str = ""
    provider_timeout_sec: float = DEFAULT_PROVIDER_TIMEOUT_SEC
    batch_concurrency: int = DEFAULT_BATCH_CONCURRENCY
    neighbor_limit: int = DEFAULT_NEIGHBOR_LIMIT
    neighbor_max_limit: int = DEFAULT_NEIGHBOR_MAX_LIMIT
    tx_ttl_sec: float = DEFAULT_TX_TTL_SEC
    neighbor_ttl_sec: float = DEFAULT_NEIGHBOR_TTL_SEC
    score_ttl_sec: float = DEFAULT_SCORE_TTL_SEC
    cache_max_entries: int = DEFAULT_CACHE_MAX_ENTRIES
    lists_dir: Path | None = None
    weights_path: Path | None = None
    api_host: str = "0.0.0.0"
    api_port: int = 8000


def load_settings() -> Settings:
    """Build Settings from the environment (uncached)."""
    return Settings(
        default_network=get_default_network(),
        etherscan_api_key=get_env_str("ETHERSCAN_API_KEY"),
        etherscan_base_url=get_env_str("ETHERSCAN_BASE_URL"),
        provider_timeout_sec=get_env_float("PROVIDER_TIMEOUT_SEC", DEFAULT_PROVIDER_TIMEOUT_SEC),
        batch_concurrency=get_env_int("BATCH_CONCURRENCY", DEFAULT_BATCH_CONCURRENCY),
        neighbor_limit=get_env_int("NEIGHBOR_LIMIT", DEFAULT_NEIGHBOR_LIMIT),
        neighbor_max_limit=get_env_int("NEIGHBOR_MAX_LIMIT", DEFAULT_NEIGHBOR_MAX_LIMIT),
        tx_ttl_sec=get_env_float("TX_CACHE_TTL_SEC", DEFAULT_TX_TTL_SEC),
        neighbor_ttl_sec=get_env_float("NEIGHBOR_CACHE_TTL_SEC", DEFAULT_NEIGHBOR_TTL_SEC),
        score_ttl_sec=get_env_float("SCORE_CACHE_TTL_SEC", DEFAULT_SCORE_TTL_SEC),
        cache_max_entries=get_env_int("CACHE_MAX_ENTRIES", DEFAULT_CACHE_MAX_ENTRIES),
        lists_dir=get_lists_dir(),
        weights_path=get_weights_path(),
        api_host=get_env_str("API_HOST", "0.0.0.0"),
        api_port=get_env_int("API_PORT", 8000),
    )


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return the current application settings (loaded once per process).

    Tests that change the environment call get_settings.cache_clear().
    """
    return load_settings()
