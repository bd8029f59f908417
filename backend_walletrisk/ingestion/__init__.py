"""
Ingestion: chain data providers and curated list sources.
"""

from backend_walletrisk.ingestion.list_source import (
    FileListSource,
    ListSource,
    StaticListSource,
)
from backend_walletrisk.ingestion.providers import (
    ChainDataProvider,
    EtherscanProvider,
    FetchResult,
    StaticHistoryProvider,
)

__all__ = [
    "ChainDataProvider",
    "EtherscanProvider",
    "FetchResult",
    "FileListSource",
    "ListSource",
    "StaticHistoryProvider",
    "StaticListSource",
]
