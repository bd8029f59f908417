"""
Address normalization and validation (EVM hex addresses).
"""

from __future__ import annotations

import re

from backend_walletrisk.core.exceptions import MalformedAddress

ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")
HEX_BODY_RE = re.compile(r"^[0-9a-f]+$")
ADDRESS_LENGTH = 42


def normalize_address(raw: object) -> str:
    """Trim, strip quotes, lowercase and ensure a 0x prefix. Never raises; '' for empty input."""
    if raw is None:
        return ""
    s = str(raw).strip().strip("'\"").strip().lower()
    if not s:
        return ""
    if not s.startswith("0x"):
        s = "0x" + s
    return s


def is_valid_address(address: str) -> bool:
    return bool(ADDRESS_RE.match(address or ""))


def validate_address(raw: object) -> str:
    """Return the normalized address or raise MalformedAddress."""
    address = normalize_address(raw)
    if not is_valid_address(address):
        raise MalformedAddress(str(raw or ""))
    return address
