"""Backup archive settings (env-driven, pydantic-settings)."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackupSettings(BaseSettings):
    """Settings for the local flow backup archive.

    Automatically reads from environment variables (or a .env file).

    Environment variables:
      MCP_BACKUP_PATH          — Override directory for the archive
                                 (default: the Node-RED user dir)
      MCP_MAX_BACKUPS          — Archive capacity, >= 1 (default: 10)
      MCP_BACKUP_AUTO_CLEANUP  — Evict oldest snapshots past capacity (default: true)
      NODE_RED_USER_DIR        — Node-RED user directory (default: ~/.node-red)

    ``max_backups`` and ``auto_cleanup`` only seed a new archive index.  An
    existing index keeps its stored values until ``migrate_config`` is called.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    backup_path: Path | None = Field(default=None, validation_alias="MCP_BACKUP_PATH")
    max_backups: int = Field(default=10, validation_alias="MCP_MAX_BACKUPS")
    auto_cleanup: bool = Field(default=True, validation_alias="MCP_BACKUP_AUTO_CLEANUP")
    user_dir: Path | None = Field(default=None, validation_alias="NODE_RED_USER_DIR")

    @field_validator("backup_path", "user_dir", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: object) -> object:
        if v == "":
            return None
        return v

    @field_validator("max_backups")
    @classmethod
    def positive_capacity(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_backups must be a positive integer, got {v}")
        return v
