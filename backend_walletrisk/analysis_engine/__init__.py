"""
Analysis engine: features, curated lists, rule-based risk scoring, neighbor graph.

Pure compute: no I/O here. Chain data arrives through ingestion providers and
orchestration lives in agent_worker.
"""

from backend_walletrisk.analysis_engine.features import (
    EMPTY_FEATURES,
    FeatureVector,
    extract_features,
)
from backend_walletrisk.analysis_engine.graph import build_neighbor_graph
from backend_walletrisk.analysis_engine.lists import (
    ListRegistry,
    ListSnapshot,
    parse_address_list_strict,
)
from backend_walletrisk.analysis_engine.models import (
    FactorContribution,
    ListMembership,
    NeighborGraph,
    NeighborLink,
    ScoreResult,
    Transaction,
    label_from_score,
)
from backend_walletrisk.analysis_engine.scorer import compute_risk_score
from backend_walletrisk.analysis_engine.weights import (
    DEFAULT_WEIGHTS,
    WeightTable,
    load_weight_table,
)

__all__ = [
    "DEFAULT_WEIGHTS",
    "EMPTY_FEATURES",
    "FactorContribution",
    "FeatureVector",
    "ListMembership",
    "ListRegistry",
    "ListSnapshot",
    "NeighborGraph",
    "NeighborLink",
    "ScoreResult",
    "Transaction",
    "WeightTable",
    "build_neighbor_graph",
    "compute_risk_score",
    "extract_features",
    "label_from_score",
    "load_weight_table",
    "parse_address_list_strict",
]
