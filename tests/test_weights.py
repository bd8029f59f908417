"""
Tests for weight table validation and loading.
"""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from backend_walletrisk.analysis_engine.weights import DEFAULT_WEIGHTS, WeightTable, load_weight_table


def test_canonical_defaults():
    assert DEFAULT_WEIGHTS.version == "RXL-V1.6.3"
    assert DEFAULT_WEIGHTS.base_score == 15
    assert DEFAULT_WEIGHTS.lists.sanctioned_impact == 70
    assert DEFAULT_WEIGHTS.overrides.sanctioned_score == 100


def test_partial_override_keeps_other_values():
    table = WeightTable.from_dict({"version": "custom", "velocity": {"elevated_impact": 12}})
    assert table.version == "custom"
    assert table.velocity.elevated_impact == 12
    assert table.velocity.extreme_impact == 22
    assert table.age == DEFAULT_WEIGHTS.age


def test_unknown_keys_rejected():
    with pytest.raises(ValidationError):
        WeightTable.from_dict({"age": {"ancient_days": 5000}})


def test_thresholds_must_increase():
    with pytest.raises(ValidationError):
        WeightTable.from_dict({"age": {"new_days": 200, "young_days": 100}})


def test_table_is_immutable():
    with pytest.raises(ValidationError):
        DEFAULT_WEIGHTS.base_score = 50


def test_load_from_file(tmp_path):
    path = tmp_path / "weights.json"
    path.write_text(json.dumps({"version": "RXL-V1.5", "base_score": 10}))
    table = load_weight_table(path)
    assert table.version == "RXL-V1.5"
    assert table.base_score == 10


def test_load_none_returns_defaults():
    assert load_weight_table(None) is DEFAULT_WEIGHTS


def test_load_invalid_file_raises(tmp_path):
    path = tmp_path / "weights.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(ValueError):
        load_weight_table(path)
