"""
Risk score computation: weighted rule ensemble with hard overrides.

Responsibilities:
- Map a FeatureVector and ListMembership into six independent factors
  (age, velocity, mix, neighbor, dormancy, external lists), each a discrete
  bucket with a fixed impact from the WeightTable.
- Sum impacts onto the base score, clamp to 0–100, then apply the list
  overrides: sanctioned forces the ceiling and blocks; mixer and scam
  cluster hits floor the score.
- Return an immutable, fully explained ScoreResult. Deterministic: no I/O,
  no clock, no randomness.

A factor whose inputs are missing, NaN or non-numeric contributes 0 with
bucket "unknown"; the engine never raises on a structurally valid vector.
"""

from __future__ import annotations

import math
from typing import Any, Callable

from backend_walletrisk.analysis_engine.features import FeatureVector
from backend_walletrisk.analysis_engine.models import (
    FactorContribution,
    ListMembership,
    ScoreResult,
)
from backend_walletrisk.analysis_engine.weights import DEFAULT_WEIGHTS, WeightTable
from backend_walletrisk.walletrisk_logging import get_logger

logger = get_logger(__name__)

FACTOR_AGE = "age"
FACTOR_VELOCITY = "velocity"
FACTOR_MIX = "mix"
FACTOR_NEIGHBOR = "neighbor"
FACTOR_DORMANCY = "dormant"
FACTOR_LISTS = "lists"

FACTOR_LABELS = {
    FACTOR_AGE: "Wallet age",
    FACTOR_VELOCITY: "Transaction velocity & bursts",
    FACTOR_MIX: "Counterparty mix & concentration",
    FACTOR_NEIGHBOR: "Neighbor & cluster risk",
    FACTOR_DORMANCY: "Dormancy & resurrection patterns",
    FACTOR_LISTS: "External fraud & platform signals",
}

BUCKET_UNKNOWN = "unknown"

REASON_SANCTIONED = "Sanctioned list match"
REASON_MIXER_AND_SCAM = "Mixer and scam-cluster list match (floor {floor})"
REASON_MIXER = "Mixer list match (floor {floor})"
REASON_SCAM = "Scam-cluster list match (floor {floor})"

NOTE_GRAPH_SIGNALS = "shortest-path and centrality signals are not computed"
NOTE_DEGRADED = "chain data unavailable; features derived from a synthetic empty history"


def _num(value: Any) -> float | None:
    """Finite float or None for missing / NaN / non-numeric values."""
    if value is None or isinstance(value, bool):
        return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    return n if math.isfinite(n) else None


def _flag(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    return None


def _factor(factor_id: str, impact: int, **details: Any) -> FactorContribution:
    return FactorContribution(
        id=factor_id,
        label=FACTOR_LABELS[factor_id],
        impact=int(impact),
        details=details,
    )


def _unknown(factor_id: str, **details: Any) -> FactorContribution:
    return _factor(factor_id, 0, bucket=BUCKET_UNKNOWN, **details)


def _age_factor(f: FeatureVector, m: ListMembership, w: WeightTable) -> FactorContribution:
    """Younger wallets carry more risk; age_days 0 is the unknown marker and is neutral."""
    age = _num(f.age_days)
    if age is None or age <= 0:
        return _unknown(FACTOR_AGE, ageDays=age)
    cfg = w.age
    if age < cfg.new_days:
        impact, bucket = cfg.new_impact, "new"
    elif age < cfg.young_days:
        impact, bucket = cfg.young_impact, "young"
    elif age < cfg.mature_days:
        impact, bucket = cfg.mature_impact, "mature"
    else:
        impact, bucket = cfg.old_impact, "old"
    return _factor(FACTOR_AGE, impact, bucket=bucket, ageDays=round(age, 2))


def _velocity_factor(f: FeatureVector, m: ListMembership, w: WeightTable) -> FactorContribution:
    """Activity intensity: tx per active day plus a weighted burst score."""
    tx_per_day = _num(f.tx_per_day)
    burst = _num(f.burst_score)
    if tx_per_day is None or burst is None:
        return _unknown(FACTOR_VELOCITY, txPerDay=tx_per_day, burstScore=burst)
    cfg = w.velocity
    intensity = tx_per_day + burst * cfg.burst_multiplier
    if intensity >= cfg.extreme_intensity:
        impact, bucket = cfg.extreme_impact, "extreme"
    elif intensity >= cfg.elevated_intensity:
        impact, bucket = cfg.elevated_impact, "elevated"
    elif intensity > cfg.mild_intensity:
        impact, bucket = cfg.mild_impact, "mild"
    else:
        impact, bucket = 0, "normal"
    return _factor(
        FACTOR_VELOCITY,
        impact,
        bucket=bucket,
        txPerDay=tx_per_day,
        burstScore=burst,
        intensity=round(intensity, 4),
    )


def _mix_factor(f: FeatureVector, m: ListMembership, w: WeightTable) -> FactorContribution:
    unique = _num(f.unique_counterparties)
    share = _num(f.top_counterparty_share)
    if unique is None or share is None:
        return _unknown(FACTOR_MIX, uniqueCounterparties=unique, topCounterpartyShare=share)
    cfg = w.mix
    if unique <= cfg.concentrated_max_unique and share >= cfg.concentrated_min_share:
        impact, bucket = cfg.concentrated_impact, "concentrated"
    elif unique <= cfg.moderate_max_unique and share >= cfg.moderate_min_share:
        impact, bucket = cfg.moderate_impact, "moderate"
    elif unique >= cfg.diversified_min_unique and share <= cfg.diversified_max_share:
        impact, bucket = cfg.diversified_impact, "diversified"
    else:
        impact, bucket = 0, "balanced"
    return _factor(
        FACTOR_MIX,
        impact,
        bucket=bucket,
        uniqueCounterparties=int(unique),
        topCounterpartyShare=share,
    )


def _neighbor_bucket(f: FeatureVector, w: WeightTable) -> tuple[str, int, dict[str, Any]]:
    count = _num(f.neighbor_count)
    sanctioned = _num(f.sanctioned_neighbor_ratio)
    high_risk = _num(f.high_risk_neighbor_ratio)
    details: dict[str, Any] = {
        "neighborCount": count,
        "sanctionedNeighborRatio": sanctioned,
        "highRiskNeighborRatio": high_risk,
    }
    if count is None or sanctioned is None or high_risk is None:
        return BUCKET_UNKNOWN, 0, details
    cfg = w.neighbor
    details["neighborCount"] = int(count)
    if count <= 0:
        return "none", 0, details
    if sanctioned >= cfg.high_sanctioned_ratio or high_risk >= cfg.high_risk_ratio:
        return "high", cfg.high_impact, details
    if sanctioned > 0 or high_risk >= cfg.mixed_risk_ratio:
        return "mixed cluster", cfg.mixed_impact, details
    if count >= cfg.wide_min_count:
        return "wide", cfg.wide_impact, details
    return "clean", 0, details


def _is_mixed_cluster(f: FeatureVector, w: WeightTable) -> bool:
    bucket, _, _ = _neighbor_bucket(f, w)
    return bucket in ("high", "mixed cluster")


def _neighbor_factor(f: FeatureVector, m: ListMembership, w: WeightTable) -> FactorContribution:
    bucket, impact, details = _neighbor_bucket(f, w)
    return _factor(
        FACTOR_NEIGHBOR,
        impact,
        bucket=bucket,
        mixedCluster=bucket in ("high", "mixed cluster"),
        **details,
    )


def _dormancy_factor(f: FeatureVector, m: ListMembership, w: WeightTable) -> FactorContribution:
    """Long silence after activity, or a sudden return after a long gap."""
    is_dormant = _flag(f.is_dormant)
    resurrected = _flag(f.resurrected_recently)
    dormant_days = _num(f.dormant_days)
    if is_dormant is None or resurrected is None or dormant_days is None:
        return _unknown(
            FACTOR_DORMANCY,
            isDormant=is_dormant,
            dormantDays=dormant_days,
            resurrectedRecently=resurrected,
        )
    cfg = w.dormancy
    if is_dormant and dormant_days >= cfg.dormant_min_days:
        impact, bucket = cfg.dormant_impact, "dormant"
    elif resurrected and dormant_days >= cfg.resurrected_min_gap_days:
        impact, bucket = cfg.resurrected_impact, "resurrected"
    elif is_dormant:
        impact, bucket = 0, "dormant (short)"
    else:
        impact, bucket = 0, "active"
    return _factor(
        FACTOR_DORMANCY,
        impact,
        bucket=bucket,
        isDormant=is_dormant,
        dormantDays=dormant_days,
        resurrectedRecently=resurrected,
    )


def _lists_factor(f: FeatureVector, m: ListMembership, w: WeightTable) -> FactorContribution:
    cfg = w.lists
    impact = 0
    hits: list[str] = []
    if m.sanctioned:
        impact += cfg.sanctioned_impact
        hits.append("sanctioned")
    if m.mixer:
        impact += cfg.mixer_impact
        hits.append("mixer")
    if m.scam_cluster:
        impact += cfg.scam_cluster_impact
        hits.append("scamCluster")
    details: dict[str, Any] = {"hits": hits}
    if m.mixer and m.scam_cluster:
        impact += cfg.mixer_scam_combo_bonus
        details["mixerScamCombo"] = True
    if m.mixer:
        mixer_prox = _num(f.mixer_proximity) or 0.0
        scam_expo = _num(f.scam_platform_exposure) or 0.0
        sketchy = (
            _is_mixed_cluster(f, w)
            or mixer_prox >= cfg.sketchy_mixer_proximity
            or scam_expo >= cfg.sketchy_scam_exposure
        )
        if sketchy:
            impact += cfg.mixer_sketchy_cluster_bonus
            details["mixerSketchyCluster"] = True
    details["bucket"] = "listed" if hits else "clear"
    return _factor(FACTOR_LISTS, impact, **details)


FactorRule = Callable[[FeatureVector, ListMembership, WeightTable], FactorContribution]

RULES: tuple[tuple[str, FactorRule], ...] = (
    (FACTOR_AGE, _age_factor),
    (FACTOR_VELOCITY, _velocity_factor),
    (FACTOR_MIX, _mix_factor),
    (FACTOR_NEIGHBOR, _neighbor_factor),
    (FACTOR_DORMANCY, _dormancy_factor),
    (FACTOR_LISTS, _lists_factor),
)


def _apply_overrides(
    score: int,
    membership: ListMembership,
    weights: WeightTable,
) -> tuple[int, bool, list[str]]:
    """Return (score, blocked, forced reasons) after the list overrides."""
    cfg = weights.overrides
    if membership.sanctioned:
        return cfg.sanctioned_score, True, [REASON_SANCTIONED]
    if membership.mixer and membership.scam_cluster:
        floor = cfg.mixer_and_scam_floor
        return max(score, floor), False, [REASON_MIXER_AND_SCAM.format(floor=floor)]
    if membership.mixer:
        floor = cfg.single_list_floor
        return max(score, floor), False, [REASON_MIXER.format(floor=floor)]
    if membership.scam_cluster:
        floor = cfg.single_list_floor
        return max(score, floor), False, [REASON_SCAM.format(floor=floor)]
    return score, False, []


def compute_risk_score(
    features: FeatureVector,
    membership: ListMembership | None = None,
    weights: WeightTable | None = None,
    *,
    address: str = "",
    network: str = "eth",
    degraded: bool = False,
    error: str | None = None,
) -> ScoreResult:
    """
    Score one address from its features and list membership.

    Starts at weights.base_score, adds every factor impact, clamps to 0–100
    and applies the list overrides. Factors in the result are ordered by
    descending absolute impact (ties keep the fixed rule order); reasons are
    the labels of nonzero factors followed by any forced-override reasons.

    Args:
        features: Feature vector (e.g. from extract_features).
        membership: List flags for the address; no hits when None.
        weights: Weight table; the canonical table when None.
        address: Normalized address, echoed in the result.
        network: Network name, echoed in the result.
        degraded: True when features come from a synthetic fallback history.
        error: Error tag for degraded batch slots.

    Returns:
        ScoreResult with cached_at unset.
    """
    membership = membership or ListMembership()
    weights = weights or DEFAULT_WEIGHTS

    factors: list[FactorContribution] = []
    for factor_id, rule in RULES:
        try:
            factors.append(rule(features, membership, weights))
        except Exception as e:
            logger.warning(
                "rule_factor_failed",
                factor=factor_id,
                address=address,
                error=str(e),
            )
            factors.append(_unknown(factor_id, error=str(e)))

    raw_contribution = sum(f.impact for f in factors)
    score = max(0, min(100, int(weights.base_score + raw_contribution)))
    score, blocked, forced_reasons = _apply_overrides(score, membership, weights)

    ordered = tuple(sorted(factors, key=lambda f: -abs(f.impact)))
    reasons = tuple([f.label for f in ordered if f.impact != 0] + forced_reasons)

    notes = [NOTE_GRAPH_SIGNALS]
    if degraded:
        notes.append(NOTE_DEGRADED)

    mixer_prox = _num(features.mixer_proximity) or 0.0
    scam_expo = _num(features.scam_platform_exposure) or 0.0
    signals = {
        **membership.to_dict(),
        "mixerProximity": mixer_prox > 0,
        "scamPlatform": scam_expo > 0,
    }

    return ScoreResult(
        address=address,
        network=network,
        score=score,
        blocked=blocked,
        sanction_hits=1 if membership.sanctioned else 0,
        factors=ordered,
        reasons=reasons,
        feats=features,
        base_score=weights.base_score,
        raw_contribution=raw_contribution,
        confidence=weights.confidence_degraded if degraded else weights.confidence_full,
        version=weights.version,
        signals=signals,
        notes=tuple(notes),
        degraded=degraded,
        error=error,
    )
