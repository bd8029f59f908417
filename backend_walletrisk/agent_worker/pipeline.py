"""
Single-address scoring pipeline.

address → validation → score cache → tx history (cache, then provider with
a bounded timeout) → features → rule engine → cached ScoreResult.

The list snapshot is taken once at the start of each call, so a concurrent
reload never changes lists mid-score. A provider failure, timeout, ok=False
or empty history never fails the call: features are computed from a
synthetic undated history and the result is marked degraded. Only an
empty ok=True history is cached; failures always go back to the provider.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import replace
from typing import Any, Callable

from backend_walletrisk.analysis_engine.features import EMPTY_FEATURES, extract_features
from backend_walletrisk.analysis_engine.graph import (
    DEFAULT_NEIGHBOR_LIMIT,
    MAX_NEIGHBOR_LIMIT,
    build_neighbor_graph,
)
from backend_walletrisk.analysis_engine.lists import ListRegistry
from backend_walletrisk.analysis_engine.models import (
    ListMembership,
    NeighborGraph,
    ScoreResult,
    Transaction,
)
from backend_walletrisk.analysis_engine.scorer import compute_risk_score
from backend_walletrisk.analysis_engine.weights import DEFAULT_WEIGHTS, WeightTable, load_weight_table
from backend_walletrisk.cache.result_cache import ResultCache
from backend_walletrisk.config.env import DEFAULT_NETWORK, SUPPORTED_NETWORKS
from backend_walletrisk.core.address import is_valid_address, normalize_address, validate_address
from backend_walletrisk.ingestion.list_source import FileListSource
from backend_walletrisk.ingestion.providers import ChainDataProvider, EtherscanProvider
from backend_walletrisk.walletrisk_logging import bind_address, get_logger

logger = get_logger(__name__)

DEFAULT_PROVIDER_TIMEOUT_SEC = 10.0


def synthetic_history(address: str) -> list[Transaction]:
    """One zero-value self-transfer at the epoch; undated, so it yields the unknown vector."""
    return [Transaction(from_addr=address, to_addr=address, value=0.0, timestamp_ms=0)]


def normalize_network(network: str | None, default: str = DEFAULT_NETWORK) -> str:
    value = (network or "").strip().lower()
    return value if value in SUPPORTED_NETWORKS else default


class ScoringPipeline:
    """
    Orchestrates one address score or neighbor graph.

    Collaborators are injected: provider (chain data), registry (lists),
    cache (ResultCache, or ResultCache.disabled()), weights (rule table).
    clock returns wall time in seconds and drives both feature timing and
    cached_at.
    """

    def __init__(
        self,
        provider: ChainDataProvider,
        registry: ListRegistry | None = None,
        cache: ResultCache | None = None,
        weights: WeightTable | None = None,
        *,
        provider_timeout_sec: float = DEFAULT_PROVIDER_TIMEOUT_SEC,
        neighbor_limit: int = DEFAULT_NEIGHBOR_LIMIT,
        neighbor_max_limit: int = MAX_NEIGHBOR_LIMIT,
        default_network: str = DEFAULT_NETWORK,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.provider = provider
        self.registry = registry or ListRegistry()
        self.cache = cache or ResultCache.in_memory()
        self.weights = weights or DEFAULT_WEIGHTS
        self.provider_timeout_sec = provider_timeout_sec
        self.neighbor_limit = neighbor_limit
        self.neighbor_max_limit = neighbor_max_limit
        self.default_network = normalize_network(default_network)
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Any) -> "ScoringPipeline":
        """Production wiring: Etherscan provider, file lists, in-memory caches."""
        registry = ListRegistry()
        if settings.lists_dir is not None:
            registry.reload_from_source(FileListSource(settings.lists_dir))
        provider = EtherscanProvider(
            settings.etherscan_api_key,
            base_url=settings.etherscan_base_url or None,
            timeout=settings.provider_timeout_sec,
        )
        return cls(
            provider,
            registry,
            ResultCache.from_settings(settings),
            load_weight_table(settings.weights_path),
            provider_timeout_sec=settings.provider_timeout_sec,
            neighbor_limit=settings.neighbor_limit,
            neighbor_max_limit=settings.neighbor_max_limit,
            default_network=settings.default_network,
        )

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    async def _history(self, address: str, network: str) -> tuple[list[Transaction], bool, bool]:
        """
        Return (transactions, degraded, cacheable). Never raises on provider trouble.

        An ok=True empty history is a real answer (a fresh address): the
        result is degraded but cacheable. Exceptions, timeouts and ok=False
        are neither cached nor cacheable.
        """
        cached = self.cache.get_history(network, address)
        if cached is not None:
            if not cached:
                return synthetic_history(address), True, True
            return cached, False, True

        try:
            result = await asyncio.wait_for(
                self.provider.fetch_history(address, network),
                timeout=self.provider_timeout_sec,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "provider_fetch_failed",
                address=address,
                network=network,
                error=f"timeout after {self.provider_timeout_sec}s",
            )
            return synthetic_history(address), True, False
        except Exception as e:
            logger.warning("provider_fetch_failed", address=address, network=network, error=str(e))
            return synthetic_history(address), True, False

        if not result.ok:
            logger.warning(
                "provider_fetch_failed",
                address=address,
                network=network,
                error=result.error or "provider returned ok=False",
            )
            return synthetic_history(address), True, False
        if not result.transactions:
            logger.info("provider_history_empty", address=address, network=network)
            self.cache.set_history(network, address, [])
            return synthetic_history(address), True, True

        txs = list(result.transactions)
        self.cache.set_history(network, address, txs)
        return txs, False, True

    async def score(self, address: str, network: str | None = None) -> ScoreResult:
        """
        Score one address.

        Raises:
            MalformedAddress: address fails format validation (before any
                provider or rule engine call).
        """
        address = validate_address(address)
        network = normalize_network(network, self.default_network)
        log = bind_address(address, network)

        cached = self.cache.get_score(network, address)
        if cached is not None:
            log.info("score_cache_hit", score=cached.score)
            return cached

        lists = self.registry.snapshot()
        txs, degraded, cacheable = await self._history(address, network)
        features = extract_features(txs, address, now_ms=self._now_ms(), lists=lists)
        result = compute_risk_score(
            features,
            lists.membership(address),
            self.weights,
            address=address,
            network=network,
            degraded=degraded,
        )
        if cacheable:
            result = replace(result, cached_at=self._clock())
            self.cache.set_score(network, address, result)

        log.info(
            "score_computed",
            score=result.score,
            label=result.label,
            degraded=degraded,
            list_version=lists.version,
        )
        return result

    def failed_result(self, address: str, network: str | None, error: str) -> ScoreResult:
        """
        Error-tagged degraded result for a slot that could not be scored.

        Built from the unknown feature vector, so the score is the base score
        unless the address is on a list (a sanctioned address still gets 100).
        """
        network = normalize_network(network, self.default_network)
        normalized = normalize_address(address)
        membership = ListMembership()
        if is_valid_address(normalized):
            membership = self.registry.membership(normalized)
        return compute_risk_score(
            EMPTY_FEATURES,
            membership,
            self.weights,
            address=normalized,
            network=network,
            degraded=True,
            error=error,
        )

    async def neighbors(
        self,
        address: str,
        network: str | None = None,
        limit: int | None = None,
    ) -> NeighborGraph:
        """
        Top-`limit` 1-hop counterparty graph.

        The cached graph is built at neighbor_max_limit and truncated per
        request, so any limit is served from one cache entry.

        Raises:
            MalformedAddress: address fails format validation.
        """
        address = validate_address(address)
        network = normalize_network(network, self.default_network)
        limit = self.neighbor_limit if limit is None else max(0, min(int(limit), self.neighbor_max_limit))

        graph = self.cache.get_neighbors(network, address)
        if graph is None:
            txs, _, cacheable = await self._history(address, network)
            graph = build_neighbor_graph(
                address,
                txs,
                self.neighbor_max_limit,
                max_limit=self.neighbor_max_limit,
            )
            if cacheable:
                self.cache.set_neighbors(network, address, graph)
        return graph.truncate(limit)
