"""Node-RED MCP server with a checksum-verified local flow backup archive."""

__version__ = "0.3.0"
