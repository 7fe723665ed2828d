"""SnapshotStore — one JSON file per backup, independent of the archive index.

File layout (``<backup_dir>/<name>.json``)::

    {"metadata": {name, timestamp, reason, checksum, flowsCount, nodesCount, size},
     "flows": [...]}

Name uniqueness is enforced by the index before ``write`` is called, so
``write`` simply overwrites.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from nodered_mcp.backup.errors import Corrupted, IOFailure, NotFound
from nodered_mcp.backup.paths import METADATA_FILENAME, BackupPaths

logger = logging.getLogger(__name__)


@dataclass
class SnapshotRecord:
    metadata: dict[str, Any]
    flows: list[Any]


class SnapshotStore:
    def __init__(self, paths: BackupPaths) -> None:
        self._paths = paths

    def write(self, name: str, metadata: dict[str, Any], flows: list[Any]) -> None:
        path = self._paths.snapshot_path(name)
        content = json.dumps({"metadata": metadata, "flows": flows}, indent=2, ensure_ascii=False)
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise IOFailure(f"Could not write backup file for '{name}'", detail=str(exc)) from exc
        logger.debug("[SnapshotStore] Wrote %s (%d bytes)", path.name, len(content))

    def read(self, name: str) -> SnapshotRecord:
        """Load a snapshot file.

        Raises NotFound if the file is absent, Corrupted if it is not valid
        JSON of the expected shape, IOFailure on any other access error.
        """
        path = self._paths.snapshot_path(name)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise NotFound(f"Backup '{name}' not found") from exc
        except UnicodeDecodeError as exc:
            raise Corrupted(f"Backup file for '{name}' is not valid UTF-8", detail=str(exc)) from exc
        except OSError as exc:
            raise IOFailure(f"Could not read backup file for '{name}'", detail=str(exc)) from exc

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise Corrupted(f"Backup file for '{name}' is not valid JSON", detail=str(exc)) from exc

        if (
            not isinstance(data, dict)
            or not isinstance(data.get("metadata"), dict)
            or not isinstance(data.get("flows"), list)
        ):
            raise Corrupted(
                f"Backup file for '{name}' is corrupted",
                detail="expected an object with 'metadata' and 'flows' keys",
            )
        return SnapshotRecord(metadata=data["metadata"], flows=data["flows"])

    def delete(self, name: str) -> bool:
        """Best-effort removal. Returns False instead of raising on failure."""
        path = self._paths.snapshot_path(name)
        try:
            path.unlink()
        except FileNotFoundError:
            return True
        except OSError as exc:
            logger.warning("[SnapshotStore] Could not delete %s: %s", path.name, exc)
            return False
        logger.debug("[SnapshotStore] Deleted %s", path.name)
        return True

    def size_of(self, name: str) -> int:
        """On-disk byte size of a snapshot file. Raises NotFound / IOFailure."""
        path = self._paths.snapshot_path(name)
        try:
            return path.stat().st_size
        except FileNotFoundError as exc:
            raise NotFound(f"Backup '{name}' not found") from exc
        except OSError as exc:
            raise IOFailure(f"Could not stat backup file for '{name}'", detail=str(exc)) from exc

    def names_on_disk(self) -> list[str]:
        """Names of every snapshot file in the backup directory (index file excluded)."""
        backup_dir = self._paths.backup_dir
        if not backup_dir.is_dir():
            return []
        return sorted(
            p.stem
            for p in backup_dir.glob("*.json")
            if p.is_file() and p.name != METADATA_FILENAME
        )
