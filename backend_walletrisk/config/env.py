"""
Environment variable loading for WalletRisk.

- WALLETRISK_NETWORK: default network for requests (default: eth)
- ETHERSCAN_API_KEY: API key for the Etherscan-style chain data provider
- ETHERSCAN_BASE_URL: optional override of the per-network API base URL
- WALLETRISK_LISTS_DIR: directory with sanctioned / mixer / scam cluster lists
- WALLETRISK_WEIGHTS_PATH: optional JSON weight table
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is backend_walletrisk/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_NETWORK = "eth"
SUPPORTED_NETWORKS = ("eth", "polygon", "arbitrum")

ETHERSCAN_BASE_URLS = {
    "eth": "https://api.etherscan.io/api",
    "polygon": "https://api.polygonscan.com/api",
    "arbitrum": "https://api.arbiscan.io/api",
}


def load_walletrisk_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides real env."""
    load_dotenv(_ENV_PATH, override=False)


def get_env_str(name: str, default: str = "") -> str:
    load_walletrisk_env()
    return (os.getenv(name) or "").strip() or default


def get_env_float(name: str, default: float) -> float:
    """Float from env; invalid or non-positive values fall back to default."""
    raw = get_env_str(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def get_env_int(name: str, default: int) -> int:
    """Int from env; invalid or non-positive values fall back to default."""
    raw = get_env_str(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def get_default_network() -> str:
    """
    Return WALLETRISK_NETWORK from env: eth | polygon | arbitrum.
    Default: eth.
    """
    raw = get_env_str("WALLETRISK_NETWORK", DEFAULT_NETWORK).lower()
    return raw if raw in SUPPORTED_NETWORKS else DEFAULT_NETWORK


def get_etherscan_base_url(network: str) -> str:
    """
    Resolve the chain data API base URL.
    Order: ETHERSCAN_BASE_URL > per-network default > eth default.
    """
    override = get_env_str("ETHERSCAN_BASE_URL")
    if override:
        return override.rstrip("/")
    return ETHERSCAN_BASE_URLS.get((network or "").lower(), ETHERSCAN_BASE_URLS[DEFAULT_NETWORK])


def get_lists_dir() -> Path:
    """Directory holding the curated address lists; defaults to backend_walletrisk/data/lists."""
    raw = get_env_str("WALLETRISK_LISTS_DIR")
    return Path(raw) if raw else _BACKEND_DIR / "data" / "lists"


def get_weights_path() -> Path | None:
    """Optional JSON weight table path; None means the built-in canonical table."""
    raw = get_env_str("WALLETRISK_WEIGHTS_PATH")
    return Path(raw) if raw else None
