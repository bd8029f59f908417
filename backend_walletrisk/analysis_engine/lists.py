"""
Curated address lists: sanctioned, mixer, scam cluster.

Parses raw list blobs (delimited hex strings or a JSON array) into immutable
snapshots of normalized addresses. The registry swaps the active snapshot
atomically on reload; scoring calls hold on to the snapshot they were given,
so they never observe a half-updated list.

A malformed blob fails open: that list becomes empty (possible false
negatives, never false positives) and a warning is logged.
"""

from __future__ import annotations

import json
import re
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Any, Mapping

from backend_walletrisk.analysis_engine.models import ListMembership
from backend_walletrisk.core.address import ADDRESS_LENGTH, HEX_BODY_RE, normalize_address
from backend_walletrisk.core.exceptions import ListParseError
from backend_walletrisk.walletrisk_logging import get_logger

logger = get_logger(__name__)

LIST_SANCTIONED = "sanctioned"
LIST_MIXER = "mixer"
LIST_SCAM_CLUSTER = "scam_cluster"
LIST_NAMES = (LIST_SANCTIONED, LIST_MIXER, LIST_SCAM_CLUSTER)

_SPLIT_RE = re.compile(r"[\s,;]+")


def _normalize_entry(raw: Any) -> str | None:
    """Normalized address, or None when too short or not hex."""
    address = normalize_address(raw)
    if len(address) < ADDRESS_LENGTH:
        return None
    if not HEX_BODY_RE.match(address[2:]):
        return None
    return address


def parse_address_list_strict(blob: str | bytes | None) -> frozenset[str]:
    """
    Parse one raw list blob; raises ListParseError on malformed JSON.

    Blobs starting with '[' or '{' are decoded as JSON and must be an array
    of strings (or of objects with an "address" key). Anything else has "#"
    comments removed and is split on whitespace, commas and semicolons.
    """
    if blob is None:
        return frozenset()
    if isinstance(blob, bytes):
        try:
            blob = blob.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ListParseError(f"list blob is not utf-8: {e}") from e
    text = blob.strip()
    if not text:
        return frozenset()

    if text[0] in "[{":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ListParseError(f"invalid JSON list: {e}") from e
        if not isinstance(data, list):
            raise ListParseError(f"JSON list must be an array, got {type(data).__name__}")
        items: list[Any] = []
        for item in data:
            if isinstance(item, dict):
                items.append(item.get("address"))
            else:
                items.append(item)
    else:
        # "#" starts a comment that runs to end of line
        uncommented = "\n".join(line.split("#", 1)[0] for line in text.splitlines())
        items = _SPLIT_RE.split(uncommented)

    out: set[str] = set()
    for item in items:
        address = _normalize_entry(item)
        if address:
            out.add(address)
    return frozenset(out)


@dataclass(frozen=True)
class ListSnapshot:
    """Immutable view of all three lists at one point in time."""

    sanctioned: frozenset[str] = frozenset()
    mixer: frozenset[str] = frozenset()
    scam_cluster: frozenset[str] = frozenset()
    loaded_at: float = 0.0
    version: int = 0
    parse_errors: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_blobs(
        cls,
        blobs: Mapping[str, str | bytes | None],
        *,
        version: int = 0,
        loaded_at: float | None = None,
    ) -> "ListSnapshot":
        parsed: dict[str, frozenset[str]] = {}
        errors: list[str] = []
        for name in LIST_NAMES:
            try:
                parsed[name] = parse_address_list_strict(blobs.get(name))
            except ListParseError as e:
                logger.warning("list_parse_failed", list_name=name, error=str(e))
                parsed[name] = frozenset()
                errors.append(name)
        return cls(
            sanctioned=parsed[LIST_SANCTIONED],
            mixer=parsed[LIST_MIXER],
            scam_cluster=parsed[LIST_SCAM_CLUSTER],
            loaded_at=time.time() if loaded_at is None else loaded_at,
            version=version,
            parse_errors=tuple(errors),
        )

    def is_sanctioned(self, address: str) -> bool:
        return normalize_address(address) in self.sanctioned

    def is_mixer(self, address: str) -> bool:
        return normalize_address(address) in self.mixer

    def is_scam_cluster(self, address: str) -> bool:
        return normalize_address(address) in self.scam_cluster

    def is_listed(self, address: str) -> bool:
        a = normalize_address(address)
        return a in self.sanctioned or a in self.mixer or a in self.scam_cluster

    def membership(self, address: str) -> ListMembership:
        a = normalize_address(address)
        return ListMembership(
            sanctioned=a in self.sanctioned,
            mixer=a in self.mixer,
            scam_cluster=a in self.scam_cluster,
        )

    def sizes(self) -> dict[str, int]:
        return {
            LIST_SANCTIONED: len(self.sanctioned),
            LIST_MIXER: len(self.mixer),
            LIST_SCAM_CLUSTER: len(self.scam_cluster),
        }


class ListRegistry:
    """
    Holder of the active ListSnapshot.

    Readers call snapshot() once per scoring operation and use that object
    throughout; reload() parses new blobs outside the lock and swaps the
    reference under it.
    """

    def __init__(self, snapshot: ListSnapshot | None = None) -> None:
        self._snapshot = snapshot or ListSnapshot()
        self._lock = threading.Lock()

    @classmethod
    def from_blobs(cls, blobs: Mapping[str, str | bytes | None]) -> "ListRegistry":
        registry = cls()
        registry.reload(blobs)
        return registry

    def snapshot(self) -> ListSnapshot:
        return self._snapshot

    def reload(self, blobs: Mapping[str, str | bytes | None]) -> ListSnapshot:
        """Parse blobs into a new snapshot and make it active. Returns the new snapshot."""
        parsed = ListSnapshot.from_blobs(blobs)
        with self._lock:
            new_snapshot = replace(parsed, version=self._snapshot.version + 1)
            self._snapshot = new_snapshot
        logger.info(
            "list_registry_reloaded",
            version=new_snapshot.version,
            parse_errors=list(new_snapshot.parse_errors),
            **new_snapshot.sizes(),
        )
        return new_snapshot

    def reload_from_source(self, source: Any) -> ListSnapshot:
        """Reload from a ListSource (anything with load() -> mapping of blobs)."""
        return self.reload(source.load())

    def membership(self, address: str) -> ListMembership:
        return self._snapshot.membership(address)
