"""Path resolution for the backup archive.

Pure functions of their inputs: no filesystem access, no side effects.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

BACKUP_DIRNAME = ".mcp-backups"
METADATA_FILENAME = "backup_metadata.json"
FLOWS_FILENAME = "flows.json"


@dataclass(frozen=True)
class BackupPaths:
    user_dir: Path
    backup_dir: Path
    metadata_path: Path
    flows_path: Path

    def snapshot_path(self, name: str) -> Path:
        return self.backup_dir / snapshot_filename(name)


def snapshot_filename(name: str) -> str:
    return f"{name}.json"


def resolve_paths(
    backup_path: Path | str | None = None,
    user_dir: Path | str | None = None,
    env: Mapping[str, str] | None = None,
    home: Path | None = None,
) -> BackupPaths:
    """Derive archive locations from configuration and environment.

    Precedence for the Node-RED user dir: ``NODE_RED_USER_DIR`` in *env*,
    then *user_dir*, then ``<home>/.node-red``.  The archive lives in a fixed
    ``.mcp-backups`` subdirectory of *backup_path*, or of the user dir when no
    override is given.  *env* and *home* default to empty / ``Path.home()``
    so callers can resolve deterministically in tests.
    """
    env = env or {}
    home = home if home is not None else Path.home()

    env_user_dir = env.get("NODE_RED_USER_DIR")
    if env_user_dir:
        resolved_user_dir = Path(env_user_dir)
    elif user_dir:
        resolved_user_dir = Path(user_dir)
    else:
        resolved_user_dir = home / ".node-red"

    base = Path(backup_path) if backup_path else resolved_user_dir
    backup_dir = base / BACKUP_DIRNAME

    return BackupPaths(
        user_dir=resolved_user_dir,
        backup_dir=backup_dir,
        metadata_path=backup_dir / METADATA_FILENAME,
        flows_path=resolved_user_dir / FLOWS_FILENAME,
    )
