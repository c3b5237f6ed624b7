"""Embed Socket — the WebSocket channel between the chat embed and the relay.

Invariants:
    - A handshake whose Origin does not match settings.embed_origin is refused
      (close code 1008) before any message is read
    - One EmbedBridge per connection; all connections share the process runtime
      (same engine, queue, coalescer and deduplicator)
    - A malformed frame is logged and skipped; it never closes the connection
    - On disconnect, unsent responses are abandoned; queued units still run

Design Decisions:
    - Receive loop never awaits a tool call: the bridge starts calls in arrival
      order and sends each TOOL_RESPONSE from its own task
    - Origin checked twice (handshake and per message) so the bridge enforces the
      same rule when driven by another transport
"""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from deckrelay.config import get_settings
from deckrelay.core.domain_types import ANY_ORIGIN
from deckrelay.core.errors import OriginRejectedError
from deckrelay.services.embed_bridge import EmbedBridge

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/embed", tags=["embed"])


@router.websocket("/ws")
async def embed_websocket(websocket: WebSocket):
    settings = get_settings()
    origin = websocket.headers.get("origin")
    if settings.embed_origin != ANY_ORIGIN and origin != settings.embed_origin:
        error = OriginRejectedError(origin)
        logger.warning(error.message, extra={"error_code": error.code})
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    runtime = websocket.app.state.relay
    bridge = EmbedBridge(
        websocket.send_json,
        runtime.coordinator,
        runtime.deduplicator,
        runtime.registry,
        expected_origin=settings.embed_origin,
        token=settings.embed_auth_token,
        config=settings.embed_config,
    )

    await websocket.accept()
    logger.info(f"Embed connected from '{origin}'")

    try:
        while True:
            try:
                data = await websocket.receive_json()
            except ValueError as e:
                logger.warning(f"Dropped non-JSON frame: {e}")
                continue
            await bridge.handle_message(data, origin)
    except WebSocketDisconnect:
        logger.info(f"Embed disconnected ({bridge.pending_responses} responses pending)")
    finally:
        await bridge.close()
