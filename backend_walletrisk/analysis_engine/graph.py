"""
Neighbor graph: bounded 1-hop counterparty graph around one address.

Edges link the center to each counterparty; weight is the number of
transactions between the pair. Built from the same counterparty map as the
feature extractor, over the stably sorted transaction list, so repeated runs
on identical input give identical graphs. No multi-hop traversal.
"""

from __future__ import annotations

from typing import Any, Iterable

from backend_walletrisk.analysis_engine.features import counterparty_counts, dated_history
from backend_walletrisk.analysis_engine.models import NeighborGraph, NeighborLink
from backend_walletrisk.core.address import normalize_address
from backend_walletrisk.walletrisk_logging import get_logger

logger = get_logger(__name__)

DEFAULT_NEIGHBOR_LIMIT = 120
MAX_NEIGHBOR_LIMIT = 250


def build_neighbor_graph(
    address: str,
    transactions: Iterable[Any],
    limit: int = DEFAULT_NEIGHBOR_LIMIT,
    *,
    max_limit: int = MAX_NEIGHBOR_LIMIT,
) -> NeighborGraph:
    """
    Build the top-`limit` counterparty graph for address.

    Counterparties are ranked by transaction count, descending; ties keep
    first-encountered order in the timestamp-sorted history. The center is
    always nodes[0], so an address with no counterparties yields a valid
    single-node graph.

    Args:
        address: Center address (normalized here).
        transactions: Raw or normalized transaction records.
        limit: Max neighbors kept; negative values are treated as 0.
        max_limit: Upper clamp for limit.

    Returns:
        NeighborGraph with len(nodes) <= limit + 1.
    """
    center = normalize_address(address)
    limit = max(0, min(int(limit), max_limit))
    txs = dated_history(transactions, center)
    counts = counterparty_counts(txs, center)

    # sorted() is stable, so equal counts keep Counter insertion order
    ranked = sorted(counts.items(), key=lambda item: -item[1])[:limit]

    nodes = (center,) + tuple(addr for addr, _ in ranked)
    links = tuple(NeighborLink(a=center, b=addr, weight=count) for addr, count in ranked)
    if len(counts) > limit:
        logger.debug(
            "neighbor_graph_truncated",
            address=center,
            neighbors_total=len(counts),
            limit=limit,
        )
    return NeighborGraph(nodes=nodes, links=links)
