"""BackupService — create / list / fetch / health over a local flow archive.

Composes the archive pieces:

    flow source ──► integrity.analyze ──► SnapshotStore.write ──► BackupIndex.append/prune/save

and for retrieval:

    SnapshotStore.read ──► integrity.verify

Each call is independent; the only state shared between calls is the backup
directory itself.  Writes go snapshot file first, index second: a failure
writing the index can leave an orphaned snapshot file behind, which
``health()`` reports and ``reconcile()`` adopts or removes.

Concurrency: one writer per backup directory.  Two overlapping ``create``
calls can lose one index update (the snapshot file then shows up as an
orphan).  No lock is taken.
"""

from __future__ import annotations

import datetime
import logging
import os
import re
from typing import Any, Awaitable, Callable

from nodered_mcp.backup import integrity
from nodered_mcp.backup.errors import BackupError, Corrupted, InvalidName, IOFailure
from nodered_mcp.backup.index import BackupIndex, parse_timestamp, sort_newest_first
from nodered_mcp.backup.paths import METADATA_FILENAME, BackupPaths, resolve_paths, snapshot_filename
from nodered_mcp.backup.settings import BackupSettings
from nodered_mcp.backup.snapshots import SnapshotStore

logger = logging.getLogger(__name__)

FlowSource = Callable[[], Awaitable[Any]]

DEFAULT_REASON = "Manual backup"
AUTO_NAME_PREFIX = "backup_"

_NAME_RE = re.compile(r"^[A-Za-z0-9_-]{1,50}$")
_RESERVED_NAMES: frozenset[str] = frozenset({"latest", "current", "temp", "backup"})

# Health advisory thresholds.
_STALE_AFTER_MINUTES = 24 * 60
_CAPACITY_WARN_RATIO = 0.9
_SIZE_WARN_BYTES = 100 * 1024 * 1024


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def format_timestamp(ts: datetime.datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    ts = ts.astimezone(datetime.timezone.utc)
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def check_name(name: str) -> None:
    if not _NAME_RE.match(name):
        raise InvalidName(
            "Backup name must be 1-50 characters, letters/numbers/underscores/hyphens only",
            detail=repr(name),
        )
    if snapshot_filename(name).lower() == METADATA_FILENAME.lower():
        raise InvalidName(f"'{name}' is reserved for the archive index", detail=repr(name))


def make_backup_name(name: str | None, timestamp: str) -> str:
    """Validate a caller-supplied name, or derive ``backup_YYYYMMDD_HHMMSS`` from *timestamp*."""
    if name:
        check_name(name)
        if name.lower() in _RESERVED_NAMES:
            raise InvalidName(f"'{name}' is a reserved name")
        return name
    compact = re.sub(r"[-:.]", "", timestamp).replace("T", "_")[:15]
    return f"{AUTO_NAME_PREFIX}{compact}"


class BackupService:
    """Façade over one backup archive directory.

    Parameters
    ----------
    flow_source:
        Async callable returning the current flow configuration (a list of
        flow elements).  May return an ``{"error": ...}`` dict, which is
        reported as IOFailure.
    settings:
        Archive settings; ``max_backups``/``auto_cleanup`` seed a new index only.
    paths:
        Resolved archive locations.  Derived from *settings* and the process
        environment when omitted.
    clock:
        Returns the current UTC time; injectable for tests.
    """

    def __init__(
        self,
        flow_source: FlowSource,
        settings: BackupSettings | None = None,
        paths: BackupPaths | None = None,
        clock: Callable[[], datetime.datetime] = _utcnow,
    ) -> None:
        self._settings = settings or BackupSettings()
        self._paths = paths or resolve_paths(
            backup_path=self._settings.backup_path,
            user_dir=self._settings.user_dir,
            env=os.environ,
        )
        self._flow_source = flow_source
        self._clock = clock
        self.snapshots = SnapshotStore(self._paths)
        self.index = BackupIndex(
            self._paths,
            self.snapshots,
            max_backups=self._settings.max_backups,
            auto_cleanup=self._settings.auto_cleanup,
        )
        self._drift_warned = False

    @property
    def paths(self) -> BackupPaths:
        return self._paths

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _open(self) -> dict[str, Any]:
        """Ensure the archive exists and return the current index document."""
        self.index.ensure_initialized()
        doc = self.index.load()
        if not self._drift_warned and self.index.drifted(doc):
            self._drift_warned = True
            stored_max, stored_cleanup = self.index.stored_config(doc)
            logger.warning(
                "[BackupService] Archive config (maxBackups=%d, autoCleanup=%s) differs from "
                "runtime settings (maxBackups=%d, autoCleanup=%s); keeping stored values. "
                "Use configure-backups to migrate.",
                stored_max,
                stored_cleanup,
                self._settings.max_backups,
                self._settings.auto_cleanup,
            )
        return doc

    async def _fetch_flows(self) -> list[Any]:
        try:
            raw = await self._flow_source()
        except Exception as exc:
            raise IOFailure("Could not fetch current flows", detail=str(exc)) from exc
        if isinstance(raw, dict) and "error" in raw:
            raise IOFailure(
                f"Could not fetch current flows: {raw['error']}",
                detail=str(raw.get("detail", "")),
            )
        return raw

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def create(self, name: str | None = None, reason: str | None = None) -> dict[str, Any]:
        """Snapshot the current flows. Returns the new snapshot's metadata."""
        self._open()
        flows = await self._fetch_flows()

        timestamp = format_timestamp(self._clock())
        backup_name = make_backup_name(name, timestamp)
        analysis = integrity.analyze(flows)

        # Re-read after the await so the duplicate check sees the latest index.
        doc = self.index.load()
        self.index.ensure_unique(doc, backup_name)

        metadata = {
            "name": backup_name,
            "timestamp": timestamp,
            "reason": reason or DEFAULT_REASON,
            "checksum": analysis.checksum,
            "flowsCount": analysis.flows_count,
            "nodesCount": analysis.nodes_count,
            "size": analysis.size,
        }
        self.snapshots.write(backup_name, metadata, flows)

        self.index.append(doc, {**metadata, "filename": snapshot_filename(backup_name)})
        doc, _evicted = self.index.prune(doc)
        self.index.save(doc)

        logger.info(
            "[BackupService] Created backup '%s' (%d tabs, %d nodes, %d bytes)",
            backup_name,
            analysis.flows_count,
            analysis.nodes_count,
            analysis.size,
        )
        return metadata

    async def list(self, detailed: bool = False) -> list[dict[str, Any]]:
        doc = self._open()
        return self.index.list(doc, detailed=detailed)

    async def fetch(self, name: str) -> dict[str, Any]:
        """Return ``{"metadata", "flows"}`` for *name*, verified against its checksum."""
        self._open()
        check_name(name)
        record = self.snapshots.read(name)
        expected = record.metadata.get("checksum")
        if not isinstance(expected, str) or not integrity.verify(record.flows, expected):
            raise Corrupted("Backup file is corrupted: checksum mismatch", detail=name)
        return {"metadata": record.metadata, "flows": record.flows}

    async def health(self) -> dict[str, Any]:
        """Assess the archive without modifying it.

        Only corruption (or a failure to open the archive at all) makes the
        report unhealthy; staleness, capacity, size and orphan files are
        advisories.
        """
        report: dict[str, Any] = {
            "healthy": True,
            "count": 0,
            "total_size": 0,
            "latest_age": None,
            "location": str(self._paths.backup_dir),
            "corrupted": 0,
            "orphans": [],
            "issues": [],
        }

        try:
            doc = self._open()
        except BackupError as exc:
            logger.warning("[BackupService] Health check could not open archive: %s", exc)
            report["healthy"] = False
            report["issues"].append("Backup system initialization failed, check path permissions")
            return report

        entries = doc["backups"]
        report["count"] = len(entries)
        if not entries:
            report["healthy"] = False
            report["issues"].append("No backups found. Create your first backup immediately")
            return report

        corrupted = 0
        for entry in entries:
            name = entry.get("name", "")
            try:
                report["total_size"] += self.snapshots.size_of(name)
                record = self.snapshots.read(name)
                if not integrity.verify(record.flows, entry.get("checksum", "")):
                    corrupted += 1
            except BackupError as exc:
                logger.debug("[BackupService] Health: '%s' unreadable: %s", name, exc)
                corrupted += 1
        report["corrupted"] = corrupted

        latest = sort_newest_first(entries)[0]
        age = self._clock() - parse_timestamp(latest.get("timestamp"))
        report["latest_age"] = round(age.total_seconds() / 60)

        try:
            report["orphans"] = self._orphans(doc)
        except OSError as exc:
            logger.warning("[BackupService] Could not scan for orphaned files: %s", exc)

        max_backups, _ = self.index.stored_config(doc)
        if corrupted:
            report["healthy"] = False
            report["issues"].append(f"Found {corrupted} corrupted backup(s)")
        if report["latest_age"] > _STALE_AFTER_MINUTES:
            report["issues"].append(
                "Latest backup is over 24 hours old. Consider creating a new backup"
            )
        if report["count"] >= max_backups * _CAPACITY_WARN_RATIO:
            report["issues"].append(
                f"Backup count approaching limit ({report['count']}/{max_backups})"
            )
        if report["total_size"] > _SIZE_WARN_BYTES:
            report["issues"].append(
                "Backup files are using significant disk space. Consider cleanup"
            )
        if report["orphans"]:
            report["issues"].append(
                f"Found {len(report['orphans'])} backup file(s) missing from the index. "
                "Run reconcile-backups to adopt or remove them"
            )
        return report

    def _orphans(self, doc: dict[str, Any]) -> list[str]:
        indexed = {b.get("name") for b in doc["backups"]}
        return [n for n in self.snapshots.names_on_disk() if n not in indexed]

    async def reconcile(self, delete_invalid: bool = True) -> dict[str, list[str]]:
        """Adopt orphaned snapshot files that verify; delete the ones that don't.

        An orphan is a ``<name>.json`` in the backup directory with no index
        entry, typically left by a create whose index write failed.
        """
        doc = self._open()
        try:
            orphans = self._orphans(doc)
        except OSError as exc:
            raise IOFailure("Could not scan backup directory", detail=str(exc)) from exc

        adopted: list[str] = []
        deleted: list[str] = []
        for name in orphans:
            try:
                check_name(name)
                record = self.snapshots.read(name)
            except BackupError as exc:
                logger.warning("[BackupService] Orphan '%s' is unusable: %s", name, exc)
                record = None

            meta = record.metadata if record else {}
            valid = (
                record is not None
                and meta.get("name") == name
                and isinstance(meta.get("checksum"), str)
                and integrity.verify(record.flows, meta["checksum"])
            )
            if valid:
                self.index.append(doc, {**meta, "filename": snapshot_filename(name)})
                adopted.append(name)
                logger.info("[BackupService] Adopted orphaned backup '%s'", name)
            elif delete_invalid and self.snapshots.delete(name):
                deleted.append(name)
                logger.info("[BackupService] Removed invalid orphan '%s'", name)

        if adopted:
            doc, evicted = self.index.prune(doc)
            self.index.save(doc)
            evicted_names = {e["name"] for e in evicted}
            adopted = [n for n in adopted if n not in evicted_names]
        return {"adopted": adopted, "deleted": deleted}

    async def migrate_config(
        self,
        max_backups: int | None = None,
        auto_cleanup: bool | None = None,
    ) -> dict[str, Any]:
        """Rewrite the archive's stored capacity / auto-cleanup and prune to fit."""
        doc = self._open()
        self.index.migrate_config(doc, max_backups=max_backups, auto_cleanup=auto_cleanup)
        doc, evicted = self.index.prune(doc)
        self.index.save(doc)
        self._drift_warned = True
        logger.info("[BackupService] Archive config migrated to %s", doc["config"])
        return {"config": dict(doc["config"]), "evicted": [e["name"] for e in evicted]}
