"""Node-RED Admin HTTP API client."""

from nodered_mcp.client.config import Settings
from nodered_mcp.client.nodered_client import NodeRedClient

__all__ = ["NodeRedClient", "Settings"]
