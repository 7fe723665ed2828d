"""Envelope and metadata types shared by the tool layer and the MCP server."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class ToolDef:
    """Definition of a tool exposed to the MCP client.

    parameters follows JSON Schema format:
        {"type": "object", "properties": {...}, "required": [...]}
    """

    name: str
    description: str
    parameters: dict[str, Any]


@dataclass
class ToolResult:
    """Normalized envelope for every tool execution result.

    ok:        True if the tool completed without error.
    summary:   Compact, human-readable string for the model client.
               No raw JSON blobs.
    facts:     Structured key→value highlights extracted from the result
               (e.g. {"name": "daily", "flows_count": 3}).
    data:      Raw output of the underlying operation (metadata records,
               flow payloads, health reports).
    error:     Present when ok=False. Dict with keys:
                 type:    Error kind (``DuplicateName``, ``NotFound``, ...).
                 message: Human-readable summary.
                 detail:  Original exception message or API error body.
    """

    ok: bool
    summary: str
    facts: dict
    data: Any
    error: dict | None
