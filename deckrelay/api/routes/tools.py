"""Tool Routes — the registered tool catalogue and the tool-call audit log.

Invariants:
    - GET /tools returns exactly the schemas sent in REGISTER_TOOLS
    - GET /tools/calls is read-only; rows are written by the audit sink only

Design Decisions:
    - Catalogue read from the registry on app.state, not from define_deck_tools:
      what is listed is what can be dispatched
"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from deckrelay.infrastructure.database import get_db
from deckrelay.models.tool_call import ToolCall
from deckrelay.schemas.tool_call import ToolCallOut, ToolCatalogResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/tools", tags=["tools"])


@router.get("", response_model=ToolCatalogResponse)
async def list_tools(request: Request):
    """Tools announced to the embed on READY."""
    schemas = request.app.state.relay.registry.schemas()
    return {"tools": schemas, "count": len(schemas)}


@router.get("/calls", response_model=list[ToolCallOut])
async def list_tool_calls(
    limit: int = Query(50, ge=1, le=500),
    tool_name: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    """Most recent audited tool calls, newest first."""
    query = select(ToolCall).order_by(ToolCall.created_at.desc()).limit(limit)
    if tool_name:
        query = query.where(ToolCall.tool_name == tool_name)
    rows = await db.execute(query)
    return rows.scalars().all()
