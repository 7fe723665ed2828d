"""Error taxonomy for the flow backup archive.

Every failure the archive can report is a ``BackupError`` subclass whose
``kind`` is the short tag surfaced to tool callers.  Nothing here is fatal to
the host process: the tool layer turns each one into a failed ToolResult.
"""

from __future__ import annotations


class BackupError(Exception):
    """Base class for all backup archive failures."""

    kind: str = "BackupError"

    def __init__(self, message: str, detail: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class InvalidName(BackupError):
    """Backup name violates the allowed pattern or is a reserved word."""

    kind = "InvalidName"


class DuplicateName(BackupError):
    kind = "DuplicateName"


class NotFound(BackupError):
    kind = "NotFound"


class Corrupted(BackupError):
    """Snapshot file cannot be decoded, or its payload fails checksum verification."""

    kind = "Corrupted"


class InvalidPayload(BackupError):
    """Flow source returned something other than a list of flow elements."""

    kind = "InvalidPayload"


class IOFailure(BackupError):
    """Directory/file access denied, disk error, or flow source unreachable."""

    kind = "IOFailure"


class InvalidConfig(BackupError):
    """Archive configuration value out of range (e.g. a non-positive capacity)."""

    kind = "InvalidConfig"
