"""
Data models for analysis engine input and output.

Responsibilities:
- Normalized transaction records (built once at the input boundary).
- List membership flags, factor contributions, score results and the
  neighbor graph, used by the rule engine, the cache and API responses.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from backend_walletrisk.analysis_engine.features import FeatureVector

# Unix seconds below this are treated as invalid; above MS_THRESHOLD as milliseconds
MIN_UNIX_SECONDS = 1_000_000_000
MS_THRESHOLD = 100_000_000_000
MAX_TIMESTAMP_MS = 253_402_300_799_000  # 9999-12-31T23:59:59Z


def _field(raw: Any, *names: str) -> Any:
    """First non-empty value among names, from a dict or an object."""
    for name in names:
        if isinstance(raw, dict):
            value = raw.get(name)
        else:
            value = getattr(raw, name, None)
        if value not in (None, ""):
            return value
    return None


def parse_timestamp_ms(value: Any) -> int:
    """
    Convert seconds, milliseconds, numeric strings or ISO 8601 to epoch ms.
    Returns 0 ("undated") when the value cannot be interpreted.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, str):
        s = value.strip()
        try:
            value = float(s)
        except ValueError:
            try:
                value = datetime.fromisoformat(s.replace("Z", "+00:00"))
            except ValueError:
                return 0
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        try:
            value = value.timestamp()
        except (OverflowError, OSError, ValueError):
            return 0
    try:
        n = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(n) or n < MIN_UNIX_SECONDS:
        return 0
    ms = int(n * 1000) if n < MS_THRESHOLD else int(n)
    return ms if ms <= MAX_TIMESTAMP_MS else 0


def _parse_value(value: Any) -> float:
    try:
        n = float(value)
    except (TypeError, ValueError):
        return 0.0
    return n if math.isfinite(n) else 0.0


@dataclass(frozen=True)
class Transaction:
    """One normalized value transfer. Addresses lowercased; timestamp_ms 0 means undated."""

    from_addr: str
    to_addr: str
    value: float = 0.0
    timestamp_ms: int = 0
    tx_hash: str = ""

    @classmethod
    def from_raw(cls, raw: Any) -> "Transaction":
        """
        Build from a chain API record (dict or object).

        Accepts from/to or sender/receiver, timeStamp/timestamp/blockTime in
        seconds or ms, timestamp_ms, or ISO metadata.blockTimestamp.
        """
        if isinstance(raw, Transaction):
            return raw
        from_addr = _field(raw, "from_addr", "from", "sender") or ""
        to_addr = _field(raw, "to_addr", "to", "receiver") or ""
        ts_ms = parse_timestamp_ms(_field(raw, "timestamp_ms"))
        if not ts_ms:
            ts_ms = parse_timestamp_ms(_field(raw, "timestamp", "timeStamp", "blockTime"))
        if not ts_ms:
            metadata = _field(raw, "metadata")
            if metadata is not None:
                ts_ms = parse_timestamp_ms(_field(metadata, "blockTimestamp"))
        return cls(
            from_addr=str(from_addr).strip().lower(),
            to_addr=str(to_addr).strip().lower(),
            value=_parse_value(_field(raw, "value", "amount")),
            timestamp_ms=ts_ms,
            tx_hash=str(_field(raw, "tx_hash", "hash") or ""),
        )

    @property
    def is_dated(self) -> bool:
        return self.timestamp_ms > 0

    def counterparty_of(self, address: str) -> str | None:
        """Other side relative to address; None for self-transfers or unrelated txs."""
        if self.from_addr == address and self.to_addr and self.to_addr != address:
            return self.to_addr
        if self.to_addr == address and self.from_addr and self.from_addr != address:
            return self.from_addr
        return None

    def involves(self, address: str) -> bool:
        return self.from_addr == address or self.to_addr == address

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.from_addr,
            "to": self.to_addr,
            "value": self.value,
            "timestamp_ms": self.timestamp_ms,
            "hash": self.tx_hash,
        }


def normalize_transactions(raw_txs: Any) -> list[Transaction]:
    """Normalize a list of raw records; non-iterable input yields []."""
    if not raw_txs:
        return []
    try:
        return [Transaction.from_raw(r) for r in raw_txs if r is not None]
    except TypeError:
        return []


@dataclass(frozen=True)
class ListMembership:
    """Presence of one address in the curated lists."""

    sanctioned: bool = False
    mixer: bool = False
    scam_cluster: bool = False

    @property
    def any_hit(self) -> bool:
        return self.sanctioned or self.mixer or self.scam_cluster

    def to_dict(self) -> dict[str, bool]:
        return {
            "sanctioned": self.sanctioned,
            "mixer": self.mixer,
            "scamCluster": self.scam_cluster,
        }


@dataclass(frozen=True)
class FactorContribution:
    """
    Single explainable factor of the rule ensemble.

    impact is signed: positive raises risk, negative lowers it. details holds
    the bucket label and the raw metrics the factor looked at.
    """

    id: str
    label: str
    impact: int
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def bucket(self) -> str:
        return str(self.details.get("bucket", ""))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "impact": self.impact,
            "details": dict(self.details),
        }


def label_from_score(score: int) -> str:
    """Risk band for a 0–100 score."""
    if score >= 80:
        return "High"
    if score >= 60:
        return "Elevated"
    if score >= 40:
        return "Moderate"
    if score >= 20:
        return "Low"
    return "Minimal"


@dataclass(frozen=True)
class ScoreResult:
    """
    Final risk score and explanation for one address.

    Created once per scoring call and never mutated; the pipeline stamps
    cached_at by building a copy with dataclasses.replace.
    """

    address: str
    network: str
    score: int
    blocked: bool
    sanction_hits: int
    factors: tuple[FactorContribution, ...]
    reasons: tuple[str, ...]
    feats: "FeatureVector"
    base_score: int
    raw_contribution: int
    confidence: float
    version: str
    signals: dict[str, Any] = field(default_factory=dict)
    notes: tuple[str, ...] = ()
    degraded: bool = False
    error: str | None = None
    cached_at: float | None = None

    @property
    def label(self) -> str:
        return label_from_score(self.score)

    def explain(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "baseScore": self.base_score,
            "rawContribution": self.raw_contribution,
            "score": self.score,
            "confidence": self.confidence,
            "parts": {f.id: f.to_dict() for f in self.factors},
            "signals": dict(self.signals),
            "notes": list(self.notes),
        }

    def to_dict(self) -> dict[str, Any]:
        """HTTP response shape for GET /score."""
        return {
            "address": self.address,
            "network": self.network,
            "risk_score": self.score,
            "score": self.score,
            "label": self.label,
            "reasons": list(self.reasons),
            "block": self.blocked,
            "sanctionHits": self.sanction_hits,
            "feats": self.feats.to_dict(),
            "degraded": self.degraded,
            "error": self.error,
            "cachedAt": self.cached_at,
            "explain": self.explain(),
        }


@dataclass(frozen=True)
class NeighborLink:
    a: str
    b: str
    weight: int

    def to_dict(self) -> dict[str, Any]:
        return {"a": self.a, "b": self.b, "weight": self.weight}


@dataclass(frozen=True)
class NeighborGraph:
    """Bounded 1-hop counterparty graph; nodes[0] is always the center."""

    nodes: tuple[str, ...]
    links: tuple[NeighborLink, ...] = ()

    @property
    def center(self) -> str:
        return self.nodes[0]

    def truncate(self, limit: int) -> "NeighborGraph":
        """Keep the center and the first `limit` neighbors (already ranked)."""
        limit = max(0, int(limit))
        if len(self.links) <= limit:
            return self
        return NeighborGraph(nodes=self.nodes[: limit + 1], links=self.links[:limit])

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": list(self.nodes),
            "links": [link.to_dict() for link in self.links],
        }
