"""Checksum and summary statistics for flow payloads.

The checksum is SHA-256 over canonical JSON bytes (sorted keys, no
whitespace, UTF-8).  Creation and verification both go through
``canonical_bytes`` so a payload always hashes the same way regardless of
how the snapshot file itself was pretty-printed.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import Any

from nodered_mcp.backup.flow_types import FlowElement


@dataclass(frozen=True)
class FlowAnalysis:
    checksum: str
    flows_count: int
    nodes_count: int
    size: int


def canonical_bytes(payload: Any) -> bytes:
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")


def content_hash(payload: Any) -> str:
    """SHA-256 over canonical JSON bytes (sorted keys, no whitespace)."""
    return hashlib.sha256(canonical_bytes(payload)).hexdigest()


def analyze(payload: Any) -> FlowAnalysis:
    """Compute checksum, tab count, node count and canonical byte size.

    Counts come from the parsed FlowElement records; the hash covers the
    raw payload exactly as received.  Raises InvalidPayload if *payload* is
    not a list of objects.
    """
    elements = FlowElement.parse_many(payload)
    raw = canonical_bytes(payload)
    return FlowAnalysis(
        checksum=hashlib.sha256(raw).hexdigest(),
        flows_count=sum(1 for el in elements if el.is_tab),
        nodes_count=sum(1 for el in elements if el.is_node),
        size=len(raw),
    )


def verify(payload: Any, expected_checksum: str) -> bool:
    try:
        return content_hash(payload) == expected_checksum
    except (TypeError, ValueError):
        # Not JSON-serializable: cannot match anything we produced.
        return False
