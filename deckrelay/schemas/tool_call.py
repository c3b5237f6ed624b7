"""Tool Call Schemas — REST views over the relay's tool catalogue and audit log."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ToolSchema(BaseModel):
    """One tool as announced to the embed in REGISTER_TOOLS."""
    name: str
    description: str
    parameters: dict[str, Any]


class ToolCatalogResponse(BaseModel):
    tools: list[ToolSchema]
    count: int


class ToolCallOut(BaseModel):
    """Audit row — one answered tool call."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    request_id: str
    tool_name: str
    fingerprint: str | None
    tool_input: Any
    tool_output: Any
    error_code: str | None
    error_message: str | None
    coalesced: bool
    duration_ms: int
    created_at: datetime
