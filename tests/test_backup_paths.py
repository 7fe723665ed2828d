"""Path resolution and archive settings."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from nodered_mcp.backup.paths import resolve_paths
from nodered_mcp.backup.settings import BackupSettings


# ---------------------------------------------------------------------------
# resolve_paths
# ---------------------------------------------------------------------------


def test_defaults_to_home_node_red():
    p = resolve_paths(env={}, home=Path("/home/u"))
    assert p.user_dir == Path("/home/u/.node-red")
    assert p.backup_dir == Path("/home/u/.node-red/.mcp-backups")
    assert p.metadata_path == Path("/home/u/.node-red/.mcp-backups/backup_metadata.json")
    assert p.flows_path == Path("/home/u/.node-red/flows.json")


def test_backup_path_override():
    p = resolve_paths(backup_path="/srv/backups", env={}, home=Path("/home/u"))
    assert p.backup_dir == Path("/srv/backups/.mcp-backups")
    # live flow file still lives under the user dir
    assert p.flows_path == Path("/home/u/.node-red/flows.json")


def test_env_user_dir_beats_configured_user_dir():
    p = resolve_paths(user_dir="/opt/nr", env={"NODE_RED_USER_DIR": "/data"}, home=Path("/home/u"))
    assert p.user_dir == Path("/data")
    assert p.backup_dir == Path("/data/.mcp-backups")


def test_configured_user_dir():
    p = resolve_paths(user_dir="/opt/nr", env={}, home=Path("/home/u"))
    assert p.flows_path == Path("/opt/nr/flows.json")


def test_snapshot_path():
    p = resolve_paths(backup_path="/b", env={}, home=Path("/h"))
    assert p.snapshot_path("daily") == Path("/b/.mcp-backups/daily.json")


def test_resolution_is_pure(tmp_path):
    resolve_paths(backup_path=tmp_path / "nope", env={}, home=tmp_path)
    assert not (tmp_path / "nope").exists()


# ---------------------------------------------------------------------------
# BackupSettings
# ---------------------------------------------------------------------------


def test_settings_defaults():
    with patch.dict(os.environ, {}, clear=True):
        s = BackupSettings(_env_file=None)
        assert s.backup_path is None
        assert s.max_backups == 10
        assert s.auto_cleanup is True


def test_settings_from_env():
    env = {
        "MCP_BACKUP_PATH": "/srv/b",
        "MCP_MAX_BACKUPS": "3",
        "MCP_BACKUP_AUTO_CLEANUP": "false",
        "NODE_RED_USER_DIR": "/data",
    }
    with patch.dict(os.environ, env, clear=True):
        s = BackupSettings(_env_file=None)
        assert s.backup_path == Path("/srv/b")
        assert s.max_backups == 3
        assert s.auto_cleanup is False
        assert s.user_dir == Path("/data")


def test_settings_empty_path_is_unset():
    with patch.dict(os.environ, {"MCP_BACKUP_PATH": ""}, clear=True):
        assert BackupSettings(_env_file=None).backup_path is None


def test_settings_rejects_non_positive_capacity():
    with pytest.raises(ValidationError):
        BackupSettings(max_backups=0)
