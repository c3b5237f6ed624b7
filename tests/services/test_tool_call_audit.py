"""Tool Call Audit — tests for persisting settled tool calls.

Tests cover:
    - One ToolCall row per answered call
    - Failed calls store the error code and message, no output
    - Audit rows written through the live coordinator pipeline
"""

import pytest
from sqlalchemy import select

from deckrelay.core.domain_types import PhysicalId
from deckrelay.infrastructure.tool_call_audit import ToolCallAudit
from deckrelay.models.tool_call import ToolCall
from deckrelay.schemas.envelopes import ToolResult
from deckrelay.services.relay_runtime import build_runtime
from deckrelay.services.tool_call_coordinator import ToolCallRecord


async def _rows(test_db_manager) -> list[ToolCall]:
    async with test_db_manager.session() as db:
        result = await db.execute(select(ToolCall).order_by(ToolCall.created_at))
        return list(result.scalars().all())


@pytest.mark.asyncio
async def test_audit_writes_successful_call(test_db_manager):
    audit = ToolCallAudit(test_db_manager)
    await audit(ToolCallRecord(
        request_id="req-1",
        tool_name="get_slide",
        fingerprint='get_slide:{"index":0}',
        arguments={"index": 0},
        result=ToolResult(success=True, result={"index": 0, "shapes": []}),
        error_code=None,
        coalesced=False,
        duration_ms=4,
    ))

    [row] = await _rows(test_db_manager)
    assert row.request_id == "req-1"
    assert row.tool_input == {"index": 0}
    assert row.tool_output == {"index": 0, "shapes": []}
    assert row.error_code is None
    assert row.duration_ms == 4


@pytest.mark.asyncio
async def test_audit_writes_failed_call(test_db_manager):
    audit = ToolCallAudit(test_db_manager)
    await audit(ToolCallRecord(
        request_id="req-2",
        tool_name="make_coffee",
        fingerprint=None,
        arguments={},
        result=ToolResult(success=False, error='Unknown operation: "make_coffee"'),
        error_code="UNKNOWN_OPERATION",
        coalesced=False,
        duration_ms=0,
    ))

    [row] = await _rows(test_db_manager)
    assert row.tool_output is None
    assert row.error_code == "UNKNOWN_OPERATION"
    assert row.error_message == 'Unknown operation: "make_coffee"'


@pytest.mark.asyncio
async def test_pipeline_audits_each_physical_call(test_db_manager):
    relay = build_runtime(audit=ToolCallAudit(test_db_manager))
    try:
        await relay.coordinator.handle_tool_call(PhysicalId("a"), "add_slide", {})
        await relay.coordinator.handle_tool_call(
            PhysicalId("b"), "get_slide", {"index": 42},
        )
    finally:
        await relay.aclose()

    rows = {r.request_id: r for r in await _rows(test_db_manager)}
    assert set(rows) == {"a", "b"}
    assert rows["a"].tool_output == {"success": True, "newSlideCount": 2, "newSlideIndex": 1}
    assert rows["a"].fingerprint == "add_slide:{}"
    assert rows["b"].error_code == "VALIDATION_ERROR"
