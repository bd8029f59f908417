"""
Chain data providers: fetch the raw transaction history of one address.

The pipeline talks to a ChainDataProvider only through fetch_history; any
exception or ok=False result is turned into degraded scoring upstream.
EtherscanProvider covers Etherscan-compatible explorers (Etherscan,
Polygonscan, Arbiscan) via module=account&action=txlist.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from backend_walletrisk.analysis_engine.models import Transaction, normalize_transactions
from backend_walletrisk.config.env import get_etherscan_base_url
from backend_walletrisk.core.exceptions import ProviderUnavailable
from backend_walletrisk.walletrisk_logging import get_logger

logger = get_logger(__name__)

REQUEST_TIMEOUT = 10.0
MAX_RETRIES = 3
RETRY_BACKOFF = 0.5
MAX_RECORDS = 10_000
WEI_PER_ETH = 10**18

# Explorer replies with status "0" and this message for addresses with no history
NO_TRANSACTIONS_MESSAGE = "no transactions found"


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one history fetch. transactions are normalized records."""

    ok: bool
    transactions: list[Transaction] = field(default_factory=list)
    error: str | None = None


class ChainDataProvider(Protocol):
    async def fetch_history(self, address: str, network: str) -> FetchResult: ...


class StaticHistoryProvider:
    """In-memory provider keyed by address; unknown addresses get an empty history."""

    def __init__(self, histories: dict[str, list[Any]] | None = None) -> None:
        self._histories = {k.lower(): v for k, v in (histories or {}).items()}

    async def fetch_history(self, address: str, network: str) -> FetchResult:
        raw = self._histories.get(address.lower(), [])
        return FetchResult(ok=True, transactions=normalize_transactions(raw))


def _wei_to_eth(value: Any) -> float:
    try:
        return int(value) / WEI_PER_ETH
    except (TypeError, ValueError):
        return 0.0


def parse_txlist_payload(payload: Any) -> list[Transaction]:
    """
    Convert an explorer txlist JSON body into normalized transactions.

    Raises ProviderUnavailable when the body is not a recognizable txlist
    response (rate-limit notices and API errors come back as status "0").
    """
    if not isinstance(payload, dict):
        raise ProviderUnavailable("unexpected txlist payload type")
    status = str(payload.get("status", ""))
    message = str(payload.get("message", ""))
    result = payload.get("result")
    if status != "1":
        if message.strip().lower() == NO_TRANSACTIONS_MESSAGE:
            return []
        detail = result if isinstance(result, str) else message
        raise ProviderUnavailable(f"explorer error: {detail or 'unknown'}")
    if not isinstance(result, list):
        raise ProviderUnavailable("txlist result is not a list")
    records = []
    for item in result:
        if not isinstance(item, dict):
            continue
        if str(item.get("isError", "0")) == "1":
            continue
        records.append(
            {
                "from": item.get("from"),
                "to": item.get("to"),
                "value": _wei_to_eth(item.get("value")),
                "timeStamp": item.get("timeStamp"),
                "hash": item.get("hash"),
            }
        )
    return normalize_transactions(records)


class EtherscanProvider:
    """
    Etherscan-compatible txlist client on httpx.AsyncClient.

    Retries on HTTP 429 and transport errors with exponential backoff; any
    other failure raises ProviderUnavailable.
    """

    def __init__(
        self,
        api_key: str = "",
        *,
        base_url: str | None = None,
        timeout: float = REQUEST_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        retry_backoff: float = RETRY_BACKOFF,
        max_records: int = MAX_RECORDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/") if base_url else None
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_backoff = retry_backoff
        self.max_records = max_records
        self._transport = transport

    def _url(self, network: str) -> str:
        return self.base_url or get_etherscan_base_url(network)

    def _params(self, address: str) -> dict[str, Any]:
        params: dict[str, Any] = {
            "module": "account",
            "action": "txlist",
            "address": address,
            "startblock": 0,
            "endblock": 99_999_999,
            "page": 1,
            "offset": self.max_records,
            "sort": "asc",
        }
        if self.api_key:
            params["apikey"] = self.api_key
        return params

    async def _request_with_retry(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: dict[str, Any],
    ) -> httpx.Response:
        last_err: Exception | None = None
        for attempt in range(self.max_retries):
            try:
                r = await client.get(url, params=params)
                if r.status_code == 429:
                    last_err = ProviderUnavailable("rate limited (429)")
                    await asyncio.sleep(self.retry_backoff * (2 ** attempt))
                    continue
                return r
            except httpx.TransportError as e:
                last_err = e
                await asyncio.sleep(self.retry_backoff * (2 ** attempt))
        raise ProviderUnavailable(f"request failed after {self.max_retries} attempts: {last_err}")

    async def fetch_history(self, address: str, network: str) -> FetchResult:
        url = self._url(network)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            r = await self._request_with_retry(client, url, self._params(address))
        if r.status_code >= 400:
            raise ProviderUnavailable(f"explorer HTTP {r.status_code}")
        try:
            payload = r.json()
        except ValueError as e:
            raise ProviderUnavailable(f"invalid JSON from explorer: {e}") from e
        txs = parse_txlist_payload(payload)
        logger.debug(
            "provider_history_fetched",
            address=address,
            network=network,
            tx_count=len(txs),
        )
        return FetchResult(ok=True, transactions=txs)
