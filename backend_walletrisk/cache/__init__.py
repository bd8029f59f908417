"""
Result cache package: TTL caches in front of chain data and scoring.
"""

from backend_walletrisk.cache.result_cache import (
    CacheBackend,
    MemoryTTLCache,
    NullCache,
    ResultCache,
    cache_key,
)

__all__ = [
    "CacheBackend",
    "MemoryTTLCache",
    "NullCache",
    "ResultCache",
    "cache_key",
]
