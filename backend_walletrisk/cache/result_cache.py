"""
Process-local TTL caches for tx histories, neighbor graphs and scores.

Best-effort only: never durable, never shared across instances. Entries
expire lazily on read once now - inserted_at >= ttl; when a cache holds more
than max_entries the oldest-inserted entry is evicted. The backend is
injected, so tests (or a deployment without caching) can use NullCache.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Hashable, Protocol

from backend_walletrisk.analysis_engine.models import NeighborGraph, ScoreResult, Transaction
from backend_walletrisk.walletrisk_logging import get_logger

logger = get_logger(__name__)

DEFAULT_TX_TTL_SEC = 300.0
DEFAULT_NEIGHBOR_TTL_SEC = 600.0
DEFAULT_SCORE_TTL_SEC = 600.0
DEFAULT_MAX_ENTRIES = 5000


class CacheBackend(Protocol):
    """Minimal get/set/ttl interface used by ResultCache."""

    ttl: float

    def get(self, key: Hashable) -> Any | None: ...

    def set(self, key: Hashable, value: Any) -> None: ...

    def delete(self, key: Hashable) -> None: ...

    def clear(self) -> None: ...


class MemoryTTLCache:
    """Thread-safe in-memory cache with TTL and an insertion-order size bound."""

    def __init__(
        self,
        ttl_sec: float,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        *,
        clock: Callable[[], float] = time.monotonic,
        name: str = "cache",
    ) -> None:
        self.ttl = float(ttl_sec)
        self.max_entries = max(1, int(max_entries))
        self.name = name
        self._clock = clock
        self._store: OrderedDict[Hashable, tuple[Any, float]] = OrderedDict()
        self._lock = threading.Lock()
        self.stats = {"hits": 0, "misses": 0, "expired": 0, "evictions": 0}

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def get(self, key: Hashable) -> Any | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self.stats["misses"] += 1
                return None
            value, inserted_at = entry
            if self._clock() - inserted_at >= self.ttl:
                del self._store[key]
                self.stats["expired"] += 1
                self.stats["misses"] += 1
                return None
            self.stats["hits"] += 1
            return value

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            # Re-inserting moves the key to the newest position
            self._store.pop(key, None)
            self._store[key] = (value, self._clock())
            while len(self._store) > self.max_entries:
                evicted, _ = self._store.popitem(last=False)
                self.stats["evictions"] += 1
                logger.debug("cache_evicted", cache=self.name, key=str(evicted))

    def delete(self, key: Hashable) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()


class NullCache:
    """Cache that never stores anything; every read is a miss."""

    def __init__(self, ttl_sec: float = 0.0) -> None:
        self.ttl = float(ttl_sec)

    def get(self, key: Hashable) -> Any | None:
        return None

    def set(self, key: Hashable, value: Any) -> None:
        return None

    def delete(self, key: Hashable) -> None:
        return None

    def clear(self) -> None:
        return None


def cache_key(network: str, address: str) -> tuple[str, str]:
    return ((network or "").strip().lower(), (address or "").strip().lower())


class ResultCache:
    """
    Three independently TTL'd caches keyed by (network, address).

    Last writer wins: recomputation for the same key is idempotent, so
    concurrent batch writes need no locking across addresses.
    """

    def __init__(
        self,
        history: CacheBackend,
        neighbors: CacheBackend,
        scores: CacheBackend,
    ) -> None:
        self.history = history
        self.neighbors = neighbors
        self.scores = scores

    @classmethod
    def in_memory(
        cls,
        *,
        tx_ttl_sec: float = DEFAULT_TX_TTL_SEC,
        neighbor_ttl_sec: float = DEFAULT_NEIGHBOR_TTL_SEC,
        score_ttl_sec: float = DEFAULT_SCORE_TTL_SEC,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> "ResultCache":
        return cls(
            history=MemoryTTLCache(tx_ttl_sec, max_entries, clock=clock, name="tx_history"),
            neighbors=MemoryTTLCache(neighbor_ttl_sec, max_entries, clock=clock, name="neighbor_graph"),
            scores=MemoryTTLCache(score_ttl_sec, max_entries, clock=clock, name="score"),
        )

    @classmethod
    def from_settings(cls, settings: Any, *, clock: Callable[[], float] = time.monotonic) -> "ResultCache":
        return cls.in_memory(
            tx_ttl_sec=settings.tx_ttl_sec,
            neighbor_ttl_sec=settings.neighbor_ttl_sec,
            score_ttl_sec=settings.score_ttl_sec,
            max_entries=settings.cache_max_entries,
            clock=clock,
        )

    @classmethod
    def disabled(cls) -> "ResultCache":
        return cls(history=NullCache(), neighbors=NullCache(), scores=NullCache())

    def get_history(self, network: str, address: str) -> list[Transaction] | None:
        return self.history.get(cache_key(network, address))

    def set_history(self, network: str, address: str, txs: list[Transaction]) -> None:
        self.history.set(cache_key(network, address), list(txs))

    def get_neighbors(self, network: str, address: str) -> NeighborGraph | None:
        return self.neighbors.get(cache_key(network, address))

    def set_neighbors(self, network: str, address: str, graph: NeighborGraph) -> None:
        self.neighbors.set(cache_key(network, address), graph)

    def get_score(self, network: str, address: str) -> ScoreResult | None:
        return self.scores.get(cache_key(network, address))

    def set_score(self, network: str, address: str, result: ScoreResult) -> None:
        self.scores.set(cache_key(network, address), result)

    def clear(self) -> None:
        for backend in (self.history, self.neighbors, self.scores):
            backend.clear()
