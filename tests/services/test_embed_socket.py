"""Embed Socket — end-to-end tests over the WebSocket route with the real lifespan.

Tests cover:
    - Handshake from a foreign Origin is refused with 1008
    - READY → REGISTER_TOOLS over the socket
    - TOOL_CALL → TOOL_RESPONSE; a redelivered requestId is answered once
    - Non-JSON frames are skipped without closing the connection
"""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from deckrelay.config import get_settings
from deckrelay.main import app

WS_PATH = "/api/v1/embed/ws"


@pytest.fixture
def socket_client():
    with TestClient(app) as client:
        yield client


@pytest.fixture
def origin():
    return {"origin": get_settings().embed_origin}


def _tool_call(request_id: str, tool: str, args=None) -> dict:
    return {
        "type": "TOOL_CALL",
        "payload": {"requestId": request_id, "tool": tool, "args": args or {}},
    }


def test_foreign_origin_refused(socket_client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with socket_client.websocket_connect(
            WS_PATH, headers={"origin": "https://evil.example"},
        ) as ws:
            ws.receive_json()
    assert exc_info.value.code == 1008


def test_ready_registers_tools(socket_client, origin):
    with socket_client.websocket_connect(WS_PATH, headers=origin) as ws:
        ws.send_json({"type": "READY"})
        message = ws.receive_json()
    assert message["type"] == "REGISTER_TOOLS"
    assert len(message["payload"]["tools"]) == 18


def test_tool_call_round_trip_and_redelivery(socket_client, origin):
    with socket_client.websocket_connect(WS_PATH, headers=origin) as ws:
        ws.send_json(_tool_call("req-1", "add_slide"))
        ws.send_json(_tool_call("req-1", "add_slide"))
        ws.send_json(_tool_call("req-2", "get_presentation_info"))
        first = ws.receive_json()
        second = ws.receive_json()

    assert first["type"] == "TOOL_RESPONSE"
    assert first["payload"]["requestId"] == "req-1"
    assert first["payload"]["result"]["result"]["newSlideCount"] == 2
    # The redelivery produced no response and no second slide
    assert second["payload"]["requestId"] == "req-2"
    assert second["payload"]["result"]["result"]["slideCount"] == 2


def test_non_json_frame_skipped(socket_client, origin):
    with socket_client.websocket_connect(WS_PATH, headers=origin) as ws:
        ws.send_text("not json")
        ws.send_json({"type": "READY"})
        assert ws.receive_json()["type"] == "REGISTER_TOOLS"
