"""Flow element record — the minimal common shape of a Node-RED flow entry.

Every element of a flow configuration carries a ``type`` discriminator
(``tab``, ``subflow``, ``inject``, ``function``, ...) and usually an ``id``
and a ``z`` reference to its parent tab/subflow.  Everything else is
type-specific and kept as open extra fields.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from nodered_mcp.backup.errors import InvalidPayload

TAB_TYPE = "tab"
SUBFLOW_TYPE = "subflow"


class FlowElement(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str | None = None
    id: str | None = None
    z: str | None = None

    @property
    def is_tab(self) -> bool:
        return self.type == TAB_TYPE

    @property
    def is_node(self) -> bool:
        """True for regular nodes: typed, and neither a tab nor a subflow definition."""
        return bool(self.type) and self.type not in (TAB_TYPE, SUBFLOW_TYPE)

    @classmethod
    def parse_many(cls, payload: Any) -> list[FlowElement]:
        """Validate a raw flow payload; raises InvalidPayload on a non-list or non-object element."""
        if not isinstance(payload, list):
            raise InvalidPayload(
                "Flow source does not contain a valid flows array",
                detail=f"got {type(payload).__name__}",
            )
        elements: list[FlowElement] = []
        for i, raw in enumerate(payload):
            if not isinstance(raw, dict):
                raise InvalidPayload(
                    f"Flow element #{i} is not an object",
                    detail=f"got {type(raw).__name__}",
                )
            try:
                elements.append(cls.model_validate(raw))
            except ValidationError as exc:
                raise InvalidPayload(f"Flow element #{i} is malformed", detail=str(exc)) from exc
        return elements
