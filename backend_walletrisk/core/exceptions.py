"""
Application-level exceptions.

Expected data-quality conditions (provider outages, malformed list blobs,
failing batch items) are caught inside the pipeline and surface as degraded
results; only MalformedAddress reaches callers, before any scoring runs.
"""

from __future__ import annotations


class WalletRiskError(Exception):
    """Base class for all WalletRisk errors."""

    code = "walletrisk_error"


class MalformedAddress(WalletRiskError, ValueError):
    """Address fails basic format validation; rejected before the pipeline."""

    code = "malformed_address"

    def __init__(self, address: str) -> None:
        self.address = address
        shown = address if len(address) <= 48 else address[:45] + "..."
        super().__init__(f"Malformed address: {shown!r}")


class ProviderUnavailable(WalletRiskError):
    """Chain data fetch failed (transport error, timeout, bad payload)."""

    code = "provider_unavailable"


class ListParseError(WalletRiskError):
    """A raw address list blob could not be parsed."""

    code = "list_parse_error"


class BatchItemError(WalletRiskError):
    """Scoring one batch item failed; isolated to that item's slot."""

    code = "batch_item_error"

    def __init__(self, index: int, address: str, cause: BaseException) -> None:
        self.index = index
        self.address = address
        self.cause = cause
        super().__init__(f"batch item {index} ({address}) failed: {cause}")
