"""
Pytest fixtures for WalletRisk tests: fixed clock, fake chain data provider,
list registry, pipeline and FastAPI TestClient. No network access.
"""

from __future__ import annotations

import asyncio

import pytest

from backend_walletrisk.core.exceptions import ProviderUnavailable
from backend_walletrisk.ingestion.providers import FetchResult
from backend_walletrisk.analysis_engine.models import normalize_transactions

# 2024-01-01T00:00:00Z; day-aligned so calendar-day features are predictable
FIXED_NOW_MS = 1_704_067_200_000
MS_PER_DAY = 86_400_000

WALLET = "0x" + "a" * 40
SANCTIONED = "0x" + "5" * 40
MIXER = "0x" + "6" * 40
SCAM = "0x" + "7" * 40


def counterparty(i: int) -> str:
    return "0x" + format(i + 1, "040x")


class FakeClock:
    """Callable clock in seconds; advance() moves it forward."""

    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProvider:
    """
    In-memory ChainDataProvider that records calls and concurrency.

    histories: address -> raw records. fail: addresses that raise
    ProviderUnavailable. not_ok: addresses answered with ok=False.
    """

    def __init__(self, histories=None, *, delay: float = 0.0, fail=(), not_ok=()) -> None:
        self.histories = dict(histories or {})
        self.delay = delay
        self.fail = set(fail)
        self.not_ok = set(not_ok)
        self.calls: list[tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch_history(self, address: str, network: str) -> FetchResult:
        self.calls.append((address, network))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if address in self.fail:
                raise ProviderUnavailable(f"boom for {address}")
            if address in self.not_ok:
                return FetchResult(ok=False, error="upstream said no")
            return FetchResult(ok=True, transactions=normalize_transactions(self.histories.get(address, [])))
        finally:
            self.in_flight -= 1


def steady_history(address: str, *, days: int = 30, n: int = 1000, parties: int = 10) -> list[dict]:
    """n transfers evenly spread over `days` days ending just before FIXED_NOW_MS, round-robin counterparties."""
    start = FIXED_NOW_MS - days * MS_PER_DAY
    step = days * MS_PER_DAY // n
    return [
        {
            "from": address if i % 2 == 0 else counterparty(i % parties),
            "to": counterparty(i % parties) if i % 2 == 0 else address,
            "value": 1.0,
            "timestamp_ms": start + i * step,
        }
        for i in range(n)
    ]


@pytest.fixture
def clock():
    return FakeClock(FIXED_NOW_MS / 1000)


@pytest.fixture
def list_blobs():
    return {
        "sanctioned": f"{SANCTIONED}\n",
        "mixer": f'["{MIXER}"]',
        "scam_cluster": SCAM,
    }


@pytest.fixture
def registry(list_blobs):
    from backend_walletrisk.analysis_engine.lists import ListRegistry

    return ListRegistry.from_blobs(list_blobs)


@pytest.fixture
def provider():
    return FakeProvider({WALLET: steady_history(WALLET)})


@pytest.fixture
def pipeline(provider, registry, clock):
    from backend_walletrisk.agent_worker.pipeline import ScoringPipeline
    from backend_walletrisk.cache.result_cache import ResultCache

    return ScoringPipeline(
        provider,
        registry,
        ResultCache.in_memory(clock=clock),
        clock=clock,
    )


@pytest.fixture
def client(pipeline):
    """FastAPI TestClient wired to the fake-provider pipeline."""
    from fastapi.testclient import TestClient

    from backend_walletrisk.api_server.server import create_app

    return TestClient(create_app(pipeline))
