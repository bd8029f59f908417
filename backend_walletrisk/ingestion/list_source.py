"""
List sources: where the three curated address lists come from.

A source only returns raw blobs; parsing and fail-open handling live in
ListRegistry. FileListSource looks for <name>.json then <name>.txt in one
directory; a missing file yields None (empty list).
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Protocol

from backend_walletrisk.analysis_engine.lists import (
    LIST_MIXER,
    LIST_SANCTIONED,
    LIST_SCAM_CLUSTER,
)
from backend_walletrisk.walletrisk_logging import get_logger

logger = get_logger(__name__)

LIST_FILE_STEMS = {
    LIST_SANCTIONED: "sanctioned",
    LIST_MIXER: "mixers",
    LIST_SCAM_CLUSTER: "scam_clusters",
}
LIST_FILE_SUFFIXES = (".json", ".txt")


class ListSource(Protocol):
    def load(self) -> Mapping[str, str | bytes | None]: ...


class StaticListSource:
    """Blobs held in memory (tests, embedded deployments)."""

    def __init__(self, blobs: Mapping[str, str | bytes | None] | None = None) -> None:
        self._blobs = dict(blobs or {})

    def load(self) -> Mapping[str, str | bytes | None]:
        return {name: self._blobs.get(name) for name in LIST_FILE_STEMS}


class FileListSource:
    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _find(self, stem: str) -> Path | None:
        for suffix in LIST_FILE_SUFFIXES:
            path = self.directory / f"{stem}{suffix}"
            if path.is_file():
                return path
        return None

    def load(self) -> Mapping[str, bytes | None]:
        blobs: dict[str, bytes | None] = {}
        for name, stem in LIST_FILE_STEMS.items():
            path = self._find(stem)
            if path is None:
                logger.debug("list_file_missing", list=name, directory=str(self.directory))
                blobs[name] = None
                continue
            try:
                blobs[name] = path.read_bytes()
            except OSError as e:
                logger.warning("list_file_unreadable", list=name, path=str(path), error=str(e))
                blobs[name] = None
        return blobs
