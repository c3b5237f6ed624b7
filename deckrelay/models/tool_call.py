"""ToolCall ORM — audit table for tool calls answered over the embed channel.

Invariants:
    - One row per TOOL_RESPONSE sent (coalesced callers each get a row, flagged coalesced)
    - Redeliveries suppressed by the deduplicator never produce a row

Design Decisions:
    - Logging table, not enforcement: observability only, no behavior depends on it
    - JSON columns for input/output: flexible schema for varied tool signatures
    - No foreign keys: the relay has no session aggregate
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from deckrelay.db.base import Base


class ToolCall(Base):
    """ToolCall log entry — observability for engine tool usage."""
    __tablename__ = "tool_calls"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    request_id: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    tool_name: Mapped[str] = mapped_column(String(100), nullable=False)
    fingerprint: Mapped[str | None] = mapped_column(Text, nullable=True)
    tool_input: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    tool_output: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    error_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    coalesced: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    duration_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        default=lambda: datetime.now(timezone.utc),
    )
