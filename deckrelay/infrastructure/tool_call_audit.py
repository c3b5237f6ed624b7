"""Tool Call Audit — persists one ToolCall row per answered tool call.

Invariants:
    - Called after the call settled; never influences the ToolResult
    - Errors propagate to the coordinator, which logs and drops them

Design Decisions:
    - One short session per record: the relay has no request-scoped DB session
      to batch into (ADR: calls settle independently)
"""

import logging

from deckrelay.infrastructure.database import DatabaseSessionManager
from deckrelay.models.tool_call import ToolCall
from deckrelay.services.tool_call_coordinator import ToolCallRecord

logger = logging.getLogger(__name__)


class ToolCallAudit:
    """Audit sink writing to the tool_calls table."""

    def __init__(self, manager: DatabaseSessionManager):
        self._manager = manager

    async def __call__(self, record: ToolCallRecord) -> None:
        async with self._manager.session() as db:
            db.add(ToolCall(
                request_id=record.request_id,
                tool_name=record.tool_name,
                fingerprint=record.fingerprint,
                tool_input=record.arguments,
                tool_output=record.result.result if record.result.success else None,
                error_code=record.error_code,
                error_message=record.result.error,
                coalesced=record.coalesced,
                duration_ms=record.duration_ms,
            ))
            await db.commit()

