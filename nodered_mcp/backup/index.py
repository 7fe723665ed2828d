"""BackupIndex — the single ``backup_metadata.json`` document for an archive.

Document layout::

    {
      "version": "1.0",
      "config": {"maxBackups": 10, "autoCleanup": true},
      "backups": [
        {"name", "timestamp", "reason", "checksum",
         "flowsCount", "nodesCount", "size", "filename"},
        ...
      ]
    }

Every mutation is a full read-modify-write of the document: callers
``load()``, apply ``append`` / ``prune`` / ``migrate_config`` to the returned
dict, then ``save()`` it.  There is no lock around that sequence; one writer
per backup directory is assumed.

``config`` is written once when the index is first created.  Later runs with
different settings do not overwrite it; ``migrate_config`` is the explicit
way to change it.
"""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any

from nodered_mcp.backup.errors import Corrupted, DuplicateName, InvalidConfig, IOFailure, NotFound
from nodered_mcp.backup.paths import BackupPaths
from nodered_mcp.backup.snapshots import SnapshotStore

logger = logging.getLogger(__name__)

INDEX_VERSION = "1.0"

# Fields hidden from list views unless detailed=True.
_DETAIL_FIELDS = ("flowsCount", "nodesCount", "size")

_EPOCH = datetime.datetime.min.replace(tzinfo=datetime.timezone.utc)


def parse_timestamp(value: Any) -> datetime.datetime:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed). Unparseable values sort oldest."""
    if not isinstance(value, str):
        return _EPOCH
    try:
        ts = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=datetime.timezone.utc)
    return ts


def sort_newest_first(entries: list[dict]) -> list[dict]:
    return sorted(entries, key=lambda e: parse_timestamp(e.get("timestamp")), reverse=True)


class BackupIndex:
    """Read/modify/write access to an archive's metadata document."""

    def __init__(
        self,
        paths: BackupPaths,
        snapshots: SnapshotStore,
        max_backups: int = 10,
        auto_cleanup: bool = True,
    ) -> None:
        self._paths = paths
        self._snapshots = snapshots
        self._max_backups = max_backups
        self._auto_cleanup = auto_cleanup

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def ensure_initialized(self) -> None:
        """Create the backup directory and a fresh index if absent. Idempotent."""
        try:
            self._paths.backup_dir.mkdir(parents=True, exist_ok=True)
            if self._paths.metadata_path.exists():
                return
            self.save(self.fresh_document())
        except OSError as exc:
            raise IOFailure(
                f"Could not initialize backup directory {self._paths.backup_dir}",
                detail=str(exc),
            ) from exc
        logger.info("[BackupIndex] Initialized new archive at %s", self._paths.backup_dir)

    def fresh_document(self) -> dict[str, Any]:
        return {
            "version": INDEX_VERSION,
            "config": {
                "maxBackups": self._max_backups,
                "autoCleanup": self._auto_cleanup,
            },
            "backups": [],
        }

    def load(self) -> dict[str, Any]:
        try:
            text = self._paths.metadata_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise IOFailure("Could not read backup index", detail=str(exc)) from exc
        try:
            doc = json.loads(text)
        except json.JSONDecodeError as exc:
            raise Corrupted("Backup index is not valid JSON", detail=str(exc)) from exc
        if not isinstance(doc, dict) or not isinstance(doc.get("backups"), list):
            raise Corrupted("Backup index is corrupted", detail="missing 'backups' list")
        doc.setdefault("config", {})
        doc["config"].setdefault("maxBackups", self._max_backups)
        doc["config"].setdefault("autoCleanup", self._auto_cleanup)
        return doc

    def save(self, doc: dict[str, Any]) -> None:
        try:
            self._paths.metadata_path.write_text(
                json.dumps(doc, indent=2, ensure_ascii=False), encoding="utf-8"
            )
        except OSError as exc:
            raise IOFailure("Could not write backup index", detail=str(exc)) from exc

    # ------------------------------------------------------------------
    # Mutations (in-memory; caller persists with save())
    # ------------------------------------------------------------------

    def ensure_unique(self, doc: dict[str, Any], name: str) -> None:
        # Case-folded: "Daily" and "daily" share one file on case-insensitive filesystems.
        folded = name.casefold()
        for b in doc["backups"]:
            existing = b.get("name")
            if isinstance(existing, str) and existing.casefold() == folded:
                raise DuplicateName(f"Backup '{name}' already exists", detail=existing)

    def append(self, doc: dict[str, Any], entry: dict[str, Any]) -> dict[str, Any]:
        self.ensure_unique(doc, entry["name"])
        doc["backups"].append(entry)
        return doc

    def prune(self, doc: dict[str, Any]) -> tuple[dict[str, Any], list[dict]]:
        """Evict the oldest entries past capacity when auto-cleanup is on.

        Returns ``(doc, evicted)``.  Backing files of evicted entries are
        deleted best-effort; a failed delete is logged and otherwise ignored.
        """
        config = doc["config"]
        capacity = int(config.get("maxBackups", self._max_backups))
        if not config.get("autoCleanup", self._auto_cleanup) or len(doc["backups"]) <= capacity:
            return doc, []

        ordered = sort_newest_first(doc["backups"])
        retained, evicted = ordered[:capacity], ordered[capacity:]
        for entry in evicted:
            if not self._snapshots.delete(entry["name"]):
                logger.warning(
                    "[BackupIndex] Evicted '%s' from index but its file could not be removed",
                    entry["name"],
                )
        doc["backups"] = retained
        logger.info(
            "[BackupIndex] Pruned %d backup(s) past capacity %d: %s",
            len(evicted),
            capacity,
            ", ".join(e["name"] for e in evicted),
        )
        return doc, evicted

    def migrate_config(
        self,
        doc: dict[str, Any],
        max_backups: int | None = None,
        auto_cleanup: bool | None = None,
    ) -> dict[str, Any]:
        if max_backups is not None:
            if max_backups < 1:
                raise InvalidConfig(f"max_backups must be a positive integer, got {max_backups}")
            doc["config"]["maxBackups"] = max_backups
        if auto_cleanup is not None:
            doc["config"]["autoCleanup"] = auto_cleanup
        return doc

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list(self, doc: dict[str, Any], detailed: bool = False) -> list[dict[str, Any]]:
        """Entries newest first; ``isLatest`` marks the first. Counts only when *detailed*."""
        views: list[dict[str, Any]] = []
        for i, entry in enumerate(sort_newest_first(doc["backups"])):
            view = {
                "name": entry.get("name"),
                "timestamp": entry.get("timestamp"),
                "reason": entry.get("reason"),
                "isLatest": i == 0,
            }
            if detailed:
                for key in _DETAIL_FIELDS:
                    view[key] = entry.get(key)
            views.append(view)
        return views

    def find_by_name(self, doc: dict[str, Any], name: str) -> dict[str, Any]:
        for entry in doc["backups"]:
            if entry.get("name") == name:
                return entry
        raise NotFound(f"Backup '{name}' not found")

    def stored_config(self, doc: dict[str, Any]) -> tuple[int, bool]:
        config = doc["config"]
        return int(config["maxBackups"]), bool(config["autoCleanup"])

    def drifted(self, doc: dict[str, Any]) -> bool:
        """True if runtime settings differ from the config stored in *doc*."""
        return self.stored_config(doc) != (self._max_backups, self._auto_cleanup)
