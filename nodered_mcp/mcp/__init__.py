"""MCP tool surface for the flow backup archive."""

from nodered_mcp.mcp.server import create_server
from nodered_mcp.mcp.tools import BackupMCPTools

__all__ = ["BackupMCPTools", "create_server"]
