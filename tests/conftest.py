"""Shared fixtures for backup archive tests."""

from __future__ import annotations

import datetime
import os
from unittest.mock import patch

import pytest

from nodered_mcp.backup import BackupService, BackupSettings, resolve_paths

SAMPLE_FLOWS = [
    {"id": "tab1", "type": "tab", "label": "Flow 1"},
    {"id": "tab2", "type": "tab", "label": "Flow 2"},
    {"id": "sf1", "type": "subflow", "name": "Helper"},
    {"id": "n1", "type": "inject", "z": "tab1", "wires": [["n2"]]},
    {"id": "n2", "type": "function", "z": "tab1", "func": "return msg;", "wires": [["n3"]]},
    {"id": "n3", "type": "debug", "z": "tab1", "wires": []},
    {"id": "n4", "type": "mqtt-broker", "broker": "localhost"},
]


class FakeClock:
    """Deterministic UTC clock; each call advances by *step*."""

    def __init__(self, start: datetime.datetime | None = None, step: datetime.timedelta | None = None):
        self.now = start or datetime.datetime(2026, 10, 18, 9, 0, 0, tzinfo=datetime.timezone.utc)
        self.step = step if step is not None else datetime.timedelta(minutes=1)

    def __call__(self) -> datetime.datetime:
        current = self.now
        self.now = self.now + self.step
        return current


class FlowSource:
    """Mutable stand-in for the Node-RED flow fetch."""

    def __init__(self, flows=None):
        self.flows = flows if flows is not None else [dict(f) for f in SAMPLE_FLOWS]
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return self.flows


@pytest.fixture(autouse=True)
def _isolated_env():
    """Keep host NODE_RED_* / MCP_* settings out of the tests."""
    keep = {k: v for k, v in os.environ.items() if not k.startswith(("NODE_RED_", "MCP_"))}
    with patch.dict(os.environ, keep, clear=True):
        yield


@pytest.fixture
def flow_source():
    return FlowSource()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_service(tmp_path, flow_source, clock):
    def _make(max_backups: int = 10, auto_cleanup: bool = True, source=None):
        settings = BackupSettings(max_backups=max_backups, auto_cleanup=auto_cleanup)
        paths = resolve_paths(backup_path=tmp_path, env={}, home=tmp_path)
        return BackupService(source or flow_source, settings, paths=paths, clock=clock)

    return _make


@pytest.fixture
def service(make_service):
    return make_service()
