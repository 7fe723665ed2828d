"""Local, checksum-verified, capacity-bounded archive of Node-RED flow snapshots."""

from nodered_mcp.backup.errors import (
    BackupError,
    Corrupted,
    DuplicateName,
    InvalidConfig,
    InvalidName,
    InvalidPayload,
    IOFailure,
    NotFound,
)
from nodered_mcp.backup.paths import BackupPaths, resolve_paths
from nodered_mcp.backup.service import BackupService
from nodered_mcp.backup.settings import BackupSettings

__all__ = [
    "BackupError",
    "BackupPaths",
    "BackupService",
    "BackupSettings",
    "Corrupted",
    "DuplicateName",
    "IOFailure",
    "InvalidConfig",
    "InvalidName",
    "InvalidPayload",
    "NotFound",
    "resolve_paths",
]
