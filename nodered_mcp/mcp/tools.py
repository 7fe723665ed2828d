"""Backup MCP tools — each method wraps a BackupService operation.

Every method returns a ``ToolResult`` envelope.  Archive failures
(``BackupError``) become ``ok=False`` results; nothing raised here reaches the
MCP server loop.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable

from nodered_mcp.backup import BackupError, BackupService
from nodered_mcp.client import NodeRedClient
from nodered_mcp.results import ToolResult

logger = logging.getLogger("nodered_mcp.mcp.tools")


def _ok(summary: str, data: Any, **facts: Any) -> ToolResult:
    return ToolResult(ok=True, summary=summary, facts=facts, data=data, error=None)


def _fail(prefix: str, kind: str, message: str, detail: str = "") -> ToolResult:
    return ToolResult(
        ok=False,
        summary=f"{prefix}: {message}",
        facts={},
        data=None,
        error={"type": kind, "message": message, "detail": detail},
    )


def _guarded(prefix: str) -> Callable:
    """Turn BackupError (and any unexpected exception) into a failed ToolResult."""

    def decorator(fn: Callable[..., Awaitable[ToolResult]]) -> Callable[..., Awaitable[ToolResult]]:
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> ToolResult:
            try:
                return await fn(*args, **kwargs)
            except BackupError as exc:
                logger.info("%s: %s (%s)", prefix, exc.message, exc.kind)
                return _fail(prefix, exc.kind, exc.message, exc.detail)
            except Exception as exc:
                logger.exception("%s: unexpected error", prefix)
                return _fail(prefix, "InternalError", str(exc))

        return wrapper

    return decorator


def _kb(size: int | None) -> int:
    return round((size or 0) / 1024)


class BackupMCPTools:
    """Node-RED backup tools returning ``ToolResult`` envelopes."""

    def __init__(self, service: BackupService, client: NodeRedClient | None = None) -> None:
        self._service = service
        self._client = client

    # ==================================================================
    # FLOWS (live)
    # ==================================================================

    async def get_flows(self) -> ToolResult:
        if self._client is None:
            return _fail("Failed to get flows", "IOFailure", "No Node-RED client configured")
        raw = await self._client.get_flows()
        if isinstance(raw, dict) and "error" in raw:
            return _fail("Failed to get flows", "IOFailure", str(raw["error"]), str(raw.get("detail", "")))
        count = len(raw) if isinstance(raw, list) else "?"
        return _ok(f"Fetched {count} flow elements", raw)

    # ==================================================================
    # BACKUPS
    # ==================================================================

    @_guarded("Backup failed")
    async def backup_flows(self, name: str | None = None, reason: str | None = None) -> ToolResult:
        meta = await self._service.create(name=name, reason=reason)
        summary = (
            f"Backup created: {meta['name']} at {meta['timestamp']} "
            f"({meta['flowsCount']} tabs, {meta['nodesCount']} nodes, {_kb(meta['size'])}KB) "
            f"Reason: {meta['reason']}"
        )
        return _ok(summary, meta, name=meta["name"], checksum=meta["checksum"])

    @_guarded("Failed to list backups")
    async def list_backups(self, detailed: bool = False) -> ToolResult:
        backups = await self._service.list(detailed=bool(detailed))
        if not backups:
            return _ok("No backups found. Create your first backup with backup-flows.", [], count=0)
        lines = [f"Found {len(backups)} backup(s):"]
        for i, b in enumerate(backups, 1):
            marker = " [LATEST]" if b["isLatest"] else ""
            line = f"{i}. {b['name']}{marker} | {b['timestamp']} | {b['reason']}"
            if detailed:
                line += f" ({b['flowsCount']} tabs, {b['nodesCount']} nodes, {_kb(b['size'])}KB)"
            lines.append(line)
        return _ok("\n".join(lines), backups, count=len(backups), latest=backups[0]["name"])

    @_guarded("Failed to get backup flows")
    async def get_backup_flows(self, name: str) -> ToolResult:
        record = await self._service.fetch(name)
        flows = record["flows"]
        return _ok(
            f"Fetched {len(flows)} flow elements from backup '{name}' (checksum verified)",
            flows,
            name=name,
            timestamp=record["metadata"].get("timestamp"),
        )

    @_guarded("Health check failed")
    async def backup_health(self) -> ToolResult:
        health = await self._service.health()
        status = "HEALTHY" if health["healthy"] else "ISSUES DETECTED"
        lines = [
            f"Overall Status: {status}",
            f"Total Backups: {health['count']}",
            f"Total Size: {_kb(health['total_size'])}KB",
        ]
        if health["latest_age"] is not None:
            lines.append(f"Latest Backup: {health['latest_age']}m ago")
        lines.append(f"Storage Location: {health['location']}")
        for i, issue in enumerate(health["issues"], 1):
            lines.append(f"{i}. {issue}")
        return _ok("\n".join(lines), health, healthy=health["healthy"])

    @_guarded("Reconcile failed")
    async def reconcile_backups(self, delete_invalid: bool = True) -> ToolResult:
        result = await self._service.reconcile(delete_invalid=delete_invalid)
        summary = f"Adopted {len(result['adopted'])} orphaned backup(s), removed {len(result['deleted'])}"
        return _ok(summary, result)

    @_guarded("Configure failed")
    async def configure_backups(
        self,
        max_backups: int | None = None,
        auto_cleanup: bool | None = None,
    ) -> ToolResult:
        result = await self._service.migrate_config(max_backups=max_backups, auto_cleanup=auto_cleanup)
        cfg = result["config"]
        summary = f"Archive config: maxBackups={cfg['maxBackups']}, autoCleanup={cfg['autoCleanup']}"
        if result["evicted"]:
            summary += f"; evicted {len(result['evicted'])} backup(s)"
        return _ok(summary, result)
