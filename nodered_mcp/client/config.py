"""Configuration for the Node-RED HTTP client."""

from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Settings:
    """Immutable settings loaded from environment variables."""

    api_token: str = field(default="", repr=False)
    api_endpoint: str = "http://localhost:1880"
    timeout: int = 30
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> Settings:
        api_token = os.getenv("NODE_RED_TOKEN", "")
        api_endpoint = os.getenv("NODE_RED_URL", "http://localhost:1880").rstrip("/")
        timeout = int(os.getenv("NODE_RED_TIMEOUT", "30"))
        log_level = os.getenv("NODE_RED_MCP_LOG_LEVEL", "WARNING").upper()
        return cls(
            api_token=api_token,
            api_endpoint=api_endpoint,
            timeout=timeout,
            log_level=log_level,
        )

    @property
    def base_url(self) -> str:
        return self.api_endpoint

    @property
    def headers(self) -> dict[str, str]:
        # v1 makes GET /flows return a bare array instead of {rev, flows}.
        h: dict[str, str] = {
            "Content-Type": "application/json",
            "Node-RED-API-Version": "v1",
        }
        if self.api_token:
            h["Authorization"] = f"Bearer {self.api_token}"
        return h
