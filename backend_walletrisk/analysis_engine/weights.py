"""
Weight table for the rule ensemble: base score, bucket thresholds, impacts
and override floors.

Externally configurable (JSON file or dict) so any historical ruleset can be
reproduced by substitution. The defaults are the canonical RXL-V1.6.3
values. Validated once at load time; the rule engine trusts it afterwards.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from backend_walletrisk.walletrisk_logging import get_logger

logger = get_logger(__name__)

CANONICAL_VERSION = "RXL-V1.6.3"


class _Section(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class AgeWeights(_Section):
    """ageDays buckets: < new_days, < young_days, < mature_days, else old."""

    new_days: float = Field(7.0, gt=0)
    young_days: float = Field(180.0, gt=0)
    mature_days: float = Field(730.0, gt=0)
    new_impact: int = 25
    young_impact: int = 15
    mature_impact: int = 2
    old_impact: int = -10

    @model_validator(mode="after")
    def _check_order(self) -> "AgeWeights":
        if not (self.new_days < self.young_days < self.mature_days):
            raise ValueError("age thresholds must be strictly increasing")
        if not (self.new_impact >= self.young_impact >= self.mature_impact >= self.old_impact):
            raise ValueError("age impacts must not increase with age")
        return self


class VelocityWeights(_Section):
    """intensity = txPerDay + burstScore * burst_multiplier."""

    burst_multiplier: float = Field(20.0, ge=0)
    extreme_intensity: float = Field(100.0, gt=0)
    elevated_intensity: float = Field(30.0, gt=0)
    mild_intensity: float = Field(0.0, ge=0)
    extreme_impact: int = 22
    elevated_impact: int = 10
    mild_impact: int = 4

    @model_validator(mode="after")
    def _check_order(self) -> "VelocityWeights":
        if not (self.mild_intensity < self.elevated_intensity < self.extreme_intensity):
            raise ValueError("velocity thresholds must be strictly increasing")
        return self


class MixWeights(_Section):
    concentrated_max_unique: int = Field(1, ge=0)
    concentrated_min_share: float = Field(0.9, ge=0, le=1)
    concentrated_impact: int = 14
    moderate_max_unique: int = Field(3, ge=0)
    moderate_min_share: float = Field(0.7, ge=0, le=1)
    moderate_impact: int = 9
    diversified_min_unique: int = Field(10, ge=0)
    diversified_max_share: float = Field(0.2, ge=0, le=1)
    diversified_impact: int = -2


class NeighborWeights(_Section):
    high_sanctioned_ratio: float = Field(0.2, ge=0, le=1)
    high_risk_ratio: float = Field(0.5, ge=0, le=1)
    high_impact: int = 20
    mixed_risk_ratio: float = Field(0.3, ge=0, le=1)
    mixed_impact: int = 5
    wide_min_count: int = Field(100, ge=1)
    wide_impact: int = 1


class DormancyWeights(_Section):
    dormant_min_days: float = Field(180.0, ge=0)
    dormant_impact: int = 6
    resurrected_min_gap_days: float = Field(90.0, ge=0)
    resurrected_impact: int = 8


class ListWeights(_Section):
    sanctioned_impact: int = 70
    mixer_impact: int = 35
    scam_cluster_impact: int = 25
    mixer_scam_combo_bonus: int = 10
    mixer_sketchy_cluster_bonus: int = 10
    sketchy_mixer_proximity: float = Field(0.5, ge=0, le=1)
    sketchy_scam_exposure: float = Field(0.4, ge=0, le=1)


class OverrideWeights(_Section):
    sanctioned_score: int = Field(100, ge=0, le=100)
    mixer_and_scam_floor: int = Field(90, ge=0, le=100)
    single_list_floor: int = Field(80, ge=0, le=100)


class WeightTable(_Section):
    """Complete, validated scoring configuration."""

    version: str = CANONICAL_VERSION
    base_score: int = Field(15, ge=0, le=100)
    confidence_full: float = Field(1.0, ge=0, le=1)
    confidence_degraded: float = Field(0.25, ge=0, le=1)
    age: AgeWeights = AgeWeights()
    velocity: VelocityWeights = VelocityWeights()
    mix: MixWeights = MixWeights()
    neighbor: NeighborWeights = NeighborWeights()
    dormancy: DormancyWeights = DormancyWeights()
    lists: ListWeights = ListWeights()
    overrides: OverrideWeights = OverrideWeights()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WeightTable":
        """Validate a (possibly partial) mapping; missing sections keep canonical values."""
        return cls.model_validate(data)

    @classmethod
    def from_json_file(cls, path: str | Path) -> "WeightTable":
        """Load and validate a JSON weight table. Raises ValueError on invalid content."""
        p = Path(path)
        with open(p, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"weight table must be a JSON object: {p}")
        return cls.from_dict(data)


DEFAULT_WEIGHTS = WeightTable()


def load_weight_table(path: str | Path | None) -> WeightTable:
    """
    Return the weight table at path, or the canonical table when path is None.

    A configured but unreadable or invalid file is an operator error and is
    raised, not silently replaced.
    """
    if path is None:
        return DEFAULT_WEIGHTS
    try:
        table = WeightTable.from_json_file(path)
    except (OSError, json.JSONDecodeError, ValidationError, ValueError) as e:
        logger.error("weight_table_load_failed", path=str(path), error=str(e))
        raise
    logger.info("weight_table_loaded", path=str(path), version=table.version)
    return table
