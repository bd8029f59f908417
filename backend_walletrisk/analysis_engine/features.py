"""
Behavioral feature extraction from address transaction history.

Converts a list of normalized transactions (for a given address) into a
FeatureVector: age, activity and burstiness, counterparty concentration,
dormancy, and list-derived neighbor ratios. No scoring logic; output is
suitable for the rule engine and API exposure.

Pure: no I/O, never raises. Callers pass now_ms for reproducible output.
"""

from __future__ import annotations

import math
import time
from collections import Counter
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Iterable

from backend_walletrisk.analysis_engine.models import Transaction, normalize_transactions
from backend_walletrisk.core.address import normalize_address

if TYPE_CHECKING:
    from backend_walletrisk.analysis_engine.lists import ListSnapshot

MS_PER_DAY = 86_400_000

DORMANT_MIN_AGE_DAYS = 180
DORMANT_MIN_IDLE_DAYS = 90
RESURRECTED_MAX_IDLE_DAYS = 14
RESURRECTED_MIN_AGE_DAYS = 60


def _clamp01(x: float) -> float:
    return 0.0 if x < 0 else 1.0 if x > 1 else x


@dataclass(frozen=True)
class FeatureVector:
    """
    Normalized behavioral description of one address.

    age_days == 0 is the explicit "unknown/new" marker used for empty
    histories; the rule engine treats it as neutral. All ratios are in [0, 1].
    """

    age_days: float = 0.0
    tx_count: int = 0
    active_days: int = 1
    tx_per_day: float = 0.0
    burst_score: float = 0.0
    unique_counterparties: int = 0
    top_counterparty_share: float = 0.0
    is_dormant: bool = False
    dormant_days: float = 0.0
    resurrected_recently: bool = False
    neighbor_count: int = 0
    sanctioned_neighbor_ratio: float = 0.0
    high_risk_neighbor_ratio: float = 0.0
    mixer_proximity: float = 0.0
    scam_platform_exposure: float = 0.0

    @property
    def is_unknown(self) -> bool:
        return self.tx_count == 0 and not self.age_days

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable camelCase view; non-finite numbers become None."""
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, float) and not math.isfinite(value):
                value = None
            out[_CAMEL[f.name]] = value
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FeatureVector":
        """
        Build from camelCase or snake_case keys. Missing keys take defaults;
        unknown keys are ignored. Values are kept as given so the rule engine
        can zero out factors whose inputs are malformed.
        """
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            if f.name in data:
                kwargs[f.name] = data[f.name]
            elif _CAMEL[f.name] in data:
                kwargs[f.name] = data[_CAMEL[f.name]]
        return cls(**kwargs)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


_CAMEL = {f.name: _camel(f.name) for f in fields(FeatureVector)}

EMPTY_FEATURES = FeatureVector()


def _utc_day(ts_ms: int) -> int:
    """Ordinal of the UTC calendar day containing ts_ms."""
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc).date().toordinal()


def dated_history(transactions: Iterable[Any], address: str) -> list[Transaction]:
    """Keep dated txs touching address, stably sorted by timestamp ascending."""
    txs = [
        tx
        for tx in normalize_transactions(transactions)
        if tx.is_dated and tx.involves(address)
    ]
    txs.sort(key=lambda tx: tx.timestamp_ms)
    return txs


def counterparty_counts(transactions: list[Transaction], address: str) -> Counter[str]:
    """
    Per-counterparty tx counts for address, in first-encountered order.

    Self-transfers are excluded. Shared with the neighbor graph builder so
    both see the same map.
    """
    counts: Counter[str] = Counter()
    for tx in transactions:
        other = tx.counterparty_of(address)
        if other:
            counts[other] += 1
    return counts


def _burst_score(day_counts: Counter[int], tx_count: int) -> float:
    """1 - mean/max daily count over the calendar span from first to last active day."""
    if not day_counts or tx_count <= 0:
        return 0.0
    span_days = max(day_counts) - min(day_counts) + 1
    mean_daily = tx_count / span_days
    max_daily = max(day_counts.values())
    if max_daily <= 0:
        return 0.0
    return _clamp01(1.0 - mean_daily / max_daily)


def _longest_gap_days(txs: list[Transaction]) -> float:
    longest = 0
    for prev, cur in zip(txs, txs[1:]):
        longest = max(longest, cur.timestamp_ms - prev.timestamp_ms)
    return float(longest // MS_PER_DAY)


def _list_ratios(
    counts: Counter[str],
    tx_count: int,
    lists: "ListSnapshot | None",
) -> tuple[float, float, float, float]:
    """(sanctioned_ratio, high_risk_ratio, mixer_proximity, scam_exposure)."""
    if lists is None or not counts:
        return 0.0, 0.0, 0.0, 0.0
    n = len(counts)
    sanctioned = sum(1 for a in counts if a in lists.sanctioned)
    listed = sum(1 for a in counts if lists.is_listed(a))
    mixer_txs = sum(c for a, c in counts.items() if a in lists.mixer)
    scam_txs = sum(c for a, c in counts.items() if a in lists.scam_cluster)
    denom = max(tx_count, 1)
    return (
        _clamp01(sanctioned / n),
        _clamp01(listed / n),
        _clamp01(mixer_txs / denom),
        _clamp01(scam_txs / denom),
    )


def extract_features(
    transactions: Iterable[Any],
    address: str,
    *,
    now_ms: int | None = None,
    lists: "ListSnapshot | None" = None,
) -> FeatureVector:
    """
    Convert an address's transaction history into a FeatureVector.

    Only dated transactions where the address is sender or receiver are
    counted. Time features use UTC calendar days; dormancy and resurrection
    compare days since the last transaction against the address age.

    Args:
        transactions: Raw or normalized records ({from, to, value, timestamp}).
        address: Subject address (normalized here).
        now_ms: Current time in epoch milliseconds; defaults to the wall clock.
        lists: Optional list snapshot for neighbor and exposure ratios.

    Returns:
        FeatureVector; the all-zero vector (age_days == 0) for empty input.
    """
    address = normalize_address(address)
    now_ms = int(time.time() * 1000) if now_ms is None else int(now_ms)
    txs = dated_history(transactions, address)
    if not txs:
        return EMPTY_FEATURES

    tx_count = len(txs)
    first_seen = txs[0].timestamp_ms
    last_seen = txs[-1].timestamp_ms
    age_days = max(0.0, (now_ms - first_seen) / MS_PER_DAY)
    days_since_last = max(0.0, (now_ms - last_seen) / MS_PER_DAY)

    day_counts: Counter[int] = Counter(_utc_day(tx.timestamp_ms) for tx in txs)
    active_days = max(1, len(day_counts))

    counts = counterparty_counts(txs, address)
    top_share = _clamp01(max(counts.values()) / tx_count) if counts else 0.0

    is_dormant = age_days > DORMANT_MIN_AGE_DAYS and days_since_last > DORMANT_MIN_IDLE_DAYS
    resurrected = (
        not is_dormant
        and days_since_last < RESURRECTED_MAX_IDLE_DAYS
        and age_days > RESURRECTED_MIN_AGE_DAYS
    )
    dormant_days = float(int(days_since_last)) if is_dormant else _longest_gap_days(txs)

    sanctioned_ratio, high_risk_ratio, mixer_proximity, scam_exposure = _list_ratios(
        counts, tx_count, lists
    )

    return FeatureVector(
        age_days=round(age_days, 4),
        tx_count=tx_count,
        active_days=active_days,
        tx_per_day=round(tx_count / active_days, 4),
        burst_score=round(_burst_score(day_counts, tx_count), 4),
        unique_counterparties=len(counts),
        top_counterparty_share=round(top_share, 4),
        is_dormant=is_dormant,
        dormant_days=dormant_days,
        resurrected_recently=resurrected,
        neighbor_count=len(counts),
        sanctioned_neighbor_ratio=round(sanctioned_ratio, 4),
        high_risk_neighbor_ratio=round(high_risk_ratio, 4),
        mixer_proximity=round(mixer_proximity, 4),
        scam_platform_exposure=round(scam_exposure, 4),
    )
