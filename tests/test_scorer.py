"""
Tests for the rule engine: score range, list overrides, factor buckets,
idempotence and malformed feature handling.
"""

from __future__ import annotations

import random

import pytest
from conftest import FIXED_NOW_MS, WALLET, steady_history

from backend_walletrisk.analysis_engine.features import EMPTY_FEATURES, FeatureVector, extract_features
from backend_walletrisk.analysis_engine.models import ListMembership, label_from_score
from backend_walletrisk.analysis_engine.scorer import (
    NOTE_DEGRADED,
    NOTE_GRAPH_SIGNALS,
    REASON_SANCTIONED,
    compute_risk_score,
)
from backend_walletrisk.analysis_engine.weights import WeightTable


def _parts(result) -> dict:
    return {f.id: f for f in result.factors}


def test_empty_features_score_base():
    """Unknown vector: every behavioral factor neutral, score is the base score."""
    result = compute_risk_score(EMPTY_FEATURES, address=WALLET)
    assert result.score == 15
    assert result.label == "Minimal"
    assert result.blocked is False
    assert _parts(result)["age"].impact == 0
    assert _parts(result)["age"].bucket == "unknown"
    assert result.reasons == ()
    assert NOTE_GRAPH_SIGNALS in result.notes


def test_sanctioned_forces_100_and_blocks():
    result = compute_risk_score(EMPTY_FEATURES, ListMembership(sanctioned=True), address=WALLET)
    assert result.score == 100
    assert result.blocked is True
    assert result.sanction_hits == 1
    assert REASON_SANCTIONED in result.reasons
    assert result.label == "High"


def test_sanctioned_overrides_negative_contributions():
    """An old, diversified wallet still gets exactly 100 when sanctioned."""
    weights = WeightTable.from_dict({"lists": {"sanctioned_impact": 0}})
    feats = FeatureVector(age_days=3000, tx_count=500, tx_per_day=1, unique_counterparties=50,
                          top_counterparty_share=0.05, neighbor_count=50)
    result = compute_risk_score(feats, ListMembership(sanctioned=True), weights)
    assert result.score == 100
    assert result.blocked is True


def test_mixer_and_scam_floors():
    mixer_only = compute_risk_score(EMPTY_FEATURES, ListMembership(mixer=True))
    both = compute_risk_score(EMPTY_FEATURES, ListMembership(mixer=True, scam_cluster=True))
    scam_only = compute_risk_score(EMPTY_FEATURES, ListMembership(scam_cluster=True))
    assert mixer_only.score >= 80
    assert scam_only.score >= 80
    assert both.score >= 90
    assert not both.blocked
    assert any("floor 90" in r for r in both.reasons)


def test_steady_history_scores_elevated_velocity():
    """1000 tx over 30 days, 10 counterparties: young (+15), elevated (+10), diversified (-2)."""
    feats = extract_features(steady_history(WALLET), WALLET, now_ms=FIXED_NOW_MS)
    result = compute_risk_score(feats, address=WALLET)
    parts = _parts(result)
    assert parts["velocity"].bucket == "elevated"
    assert parts["age"].bucket == "young"
    assert parts["mix"].bucket == "diversified"
    assert 15 < result.score < 80
    assert result.score == 38
    assert result.raw_contribution == 23


def test_factors_ordered_by_absolute_impact():
    feats = extract_features(steady_history(WALLET), WALLET, now_ms=FIXED_NOW_MS)
    result = compute_risk_score(feats)
    impacts = [abs(f.impact) for f in result.factors]
    assert impacts == sorted(impacts, reverse=True)
    assert [f.id for f in result.factors][:3] == ["age", "velocity", "mix"]
    assert result.reasons[0] == "Wallet age"


@pytest.mark.parametrize(
    "age_days,bucket,impact",
    [
        (3, "new", 25),
        (30, "young", 15),
        (365, "mature", 2),
        (1000, "old", -10),
    ],
)
def test_age_buckets(age_days, bucket, impact):
    part = _parts(compute_risk_score(FeatureVector(age_days=age_days)))["age"]
    assert part.bucket == bucket
    assert part.impact == impact


def test_age_monotonicity():
    """Older known wallets never score higher than younger ones, all else equal."""
    scores = [compute_risk_score(FeatureVector(age_days=d)).score for d in (1, 10, 200, 800)]
    assert scores == sorted(scores, reverse=True)


@pytest.mark.parametrize(
    "tx_per_day,burst,bucket",
    [
        (0, 0, "normal"),
        (2, 0, "mild"),
        (30, 0, "elevated"),
        (10, 1.0, "elevated"),
        (100, 0, "extreme"),
    ],
)
def test_velocity_buckets(tx_per_day, burst, bucket):
    feats = FeatureVector(tx_per_day=tx_per_day, burst_score=burst)
    assert _parts(compute_risk_score(feats))["velocity"].bucket == bucket


def test_neighbor_and_dormancy_buckets():
    risky = FeatureVector(neighbor_count=10, sanctioned_neighbor_ratio=0.3)
    dormant = FeatureVector(age_days=400, is_dormant=True, dormant_days=200)
    assert _parts(compute_risk_score(risky))["neighbor"].bucket == "high"
    assert _parts(compute_risk_score(risky))["neighbor"].impact == 20
    assert _parts(compute_risk_score(dormant))["dormant"].bucket == "dormant"


def test_short_dormancy_has_own_bucket_and_no_impact():
    feats = FeatureVector(age_days=400, is_dormant=True, dormant_days=120)
    part = _parts(compute_risk_score(feats))["dormant"]
    assert part.bucket == "dormant (short)"
    assert part.impact == 0
    assert part.details["isDormant"] is True


def test_mixer_with_sketchy_cluster_gets_bonus():
    feats = FeatureVector(neighbor_count=5, high_risk_neighbor_ratio=0.4)
    part = _parts(compute_risk_score(feats, ListMembership(mixer=True)))["lists"]
    assert part.impact == 35 + 10
    assert part.details["mixerSketchyCluster"] is True


def test_malformed_inputs_contribute_zero():
    feats = FeatureVector(age_days=float("nan"), tx_per_day="lots", burst_score=None)
    result = compute_risk_score(feats)
    parts = _parts(result)
    assert parts["age"].impact == 0 and parts["age"].bucket == "unknown"
    assert parts["velocity"].impact == 0 and parts["velocity"].bucket == "unknown"
    assert 0 <= result.score <= 100


def test_idempotent():
    feats = extract_features(steady_history(WALLET), WALLET, now_ms=FIXED_NOW_MS)
    m = ListMembership(mixer=True)
    assert compute_risk_score(feats, m, address=WALLET) == compute_risk_score(feats, m, address=WALLET)


def test_score_always_in_range():
    """Random vectors, memberships and aggressive weights never leave [0, 100]."""
    rng = random.Random(1234)
    heavy = WeightTable.from_dict({"base_score": 100, "lists": {"sanctioned_impact": 500}})
    light = WeightTable.from_dict({"base_score": 0, "age": {"old_impact": -90}})
    for _ in range(300):
        feats = FeatureVector(
            age_days=rng.choice([0, rng.uniform(0, 5000)]),
            tx_count=rng.randint(0, 10_000),
            tx_per_day=rng.uniform(0, 500),
            burst_score=rng.random(),
            unique_counterparties=rng.randint(0, 300),
            top_counterparty_share=rng.random(),
            is_dormant=rng.random() < 0.2,
            dormant_days=rng.uniform(0, 1000),
            resurrected_recently=rng.random() < 0.2,
            neighbor_count=rng.randint(0, 300),
            sanctioned_neighbor_ratio=rng.random(),
            high_risk_neighbor_ratio=rng.random(),
            mixer_proximity=rng.random(),
            scam_platform_exposure=rng.random(),
        )
        m = ListMembership(rng.random() < 0.1, rng.random() < 0.2, rng.random() < 0.2)
        for weights in (None, heavy, light):
            result = compute_risk_score(feats, m, weights)
            assert 0 <= result.score <= 100
            assert isinstance(result.score, int)


def test_degraded_result_carries_note_and_low_confidence():
    result = compute_risk_score(EMPTY_FEATURES, degraded=True)
    assert result.degraded is True
    assert result.confidence == 0.25
    assert NOTE_DEGRADED in result.notes


def test_explain_and_response_shape():
    result = compute_risk_score(EMPTY_FEATURES, ListMembership(mixer=True), address=WALLET, network="eth")
    data = result.to_dict()
    assert data["risk_score"] == data["score"] == result.score
    assert data["label"] == label_from_score(result.score)
    assert set(data["explain"]["parts"]) == {"age", "velocity", "mix", "neighbor", "dormant", "lists"}
    assert data["explain"]["signals"]["mixer"] is True
    assert data["explain"]["baseScore"] == 15
    assert data["explain"]["version"] == "RXL-V1.6.3"


@pytest.mark.parametrize(
    "score,label",
    [(0, "Minimal"), (19, "Minimal"), (20, "Low"), (40, "Moderate"), (60, "Elevated"), (80, "High"), (100, "High")],
)
def test_label_bands(score, label):
    assert label_from_score(score) == label
