"""Async Node-RED Admin API client using httpx."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from nodered_mcp.client.config import Settings

logger = logging.getLogger("nodered_mcp.client")


class NodeRedClient:
    """Thin async wrapper around the parts of the Node-RED Admin API we use."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._client = httpx.AsyncClient(
            base_url=settings.base_url,
            headers=settings.headers,
            timeout=httpx.Timeout(settings.timeout, connect=10.0),
        )

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _get(self, path: str) -> Any:
        try:
            r = await self._client.get(path)
            r.raise_for_status()
            return r.json()
        except httpx.HTTPStatusError as e:
            logger.error("GET %s -> %s", path, e.response.status_code)
            return {"error": f"HTTP {e.response.status_code}", "detail": e.response.text}
        except Exception as e:
            logger.error("GET %s failed: %s", path, e)
            return {"error": str(e)}

    # ==================================================================
    # FLOWS
    # ==================================================================

    async def get_flows(self) -> Any:
        """Return the active flow configuration as a list of flow elements.

        Tolerates the v2 ``{"rev": ..., "flows": [...]}`` response shape in
        case a proxy strips the API version header.
        """
        raw = await self._get("/flows")
        if isinstance(raw, dict) and isinstance(raw.get("flows"), list):
            return raw["flows"]
        return raw
