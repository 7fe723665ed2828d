"""Tool catalog for the Node-RED backup MCP server.

``TOOL_CATALOG`` is the single source of truth for tool metadata (name,
description, JSON schema).  The MCP server builds both ``list_tools`` and its
``call_tool`` dispatch table from it.

Adding a tool: append to ``TOOL_CATALOG`` and add the method to
``BackupMCPTools``.  Two files, nothing else.
"""

from __future__ import annotations

from typing import Any

from nodered_mcp.results import ToolDef


def _td(name: str, desc: str, props: dict[str, Any] | None = None, req: list[str] | None = None) -> ToolDef:
    return ToolDef(
        name=name,
        description=desc,
        parameters={"type": "object", "properties": props or {}, "required": req or []},
    )


def _str(description: str) -> dict:
    return {"type": "string", "description": description}


def _bool(description: str) -> dict:
    return {"type": "boolean", "description": description}


def _int(description: str, minimum: int | None = None) -> dict:
    schema: dict[str, Any] = {"type": "integer", "description": description}
    if minimum is not None:
        schema["minimum"] = minimum
    return schema


# ==================================================================
# TOOL_CATALOG — each entry: (method_name_on_BackupMCPTools, ToolDef)
# ==================================================================

TOOL_CATALOG: list[tuple[str, ToolDef]] = [
    # ── FLOWS (1) ─────────────────────────────────────────────────
    ("get_flows", _td("get-flows", "Retrieve the complete live flow configuration from Node-RED")),

    # ── BACKUPS (6) ───────────────────────────────────────────────
    ("backup_flows", _td("backup-flows", "Create a named backup of current Node-RED flows with optional reason", {
        "name": _str("Backup name/label (optional, auto-generated if not provided)"),
        "reason": _str("Optional reason/description for creating this backup"),
    })),
    ("list_backups", _td("list-backups", "List all available flow backups with details", {
        "detailed": _bool("Show detailed backup information"),
    })),
    ("get_backup_flows", _td("get-backup-flows", "Get the specific flows content from a backup by name",
                             {"name": _str("Backup name to retrieve flows from (required)")}, ["name"])),
    ("backup_health", _td("backup-health", "Check backup system health and provide recommendations")),
    ("reconcile_backups", _td(
        "reconcile-backups",
        "Adopt backup files missing from the index if they verify; remove the ones that don't",
        {"delete_invalid": _bool("Delete orphaned files that fail verification (default true)")},
    )),
    ("configure_backups", _td("configure-backups", "Change the archive's stored capacity and auto-cleanup settings", {
        "max_backups": _int("Maximum number of backups to keep", minimum=1),
        "auto_cleanup": _bool("Evict the oldest backups once capacity is exceeded"),
    })),
]
