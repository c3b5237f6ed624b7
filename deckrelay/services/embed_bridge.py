"""Embed Bridge — owns one channel to the chat embed: parses envelopes, answers tool calls.

Invariants:
    - Messages from any origin other than the expected one are dropped (unless "*")
    - Unknown envelope tags are logged and ignored; malformed known envelopes are logged, never raised
    - A TOOL_CALL whose requestId was already admitted is dropped silently, for as long
      as its response is pending and for a full window after it is sent
    - Every admitted TOOL_CALL gets exactly one TOOL_RESPONSE keyed by its requestId
    - Tool calls are started in receive order; responses are sent as each settles,
      and the audit record is written only after the response has gone out
    - handle_message() never raises: a bad message must not kill the receive loop

Design Decisions:
    - Transport-agnostic: the bridge only needs an async `send(dict)`; the WebSocket
      route supplies it (ADR: transport is an external collaborator)
    - Deduplicator consulted first: an exact redelivery never even builds a fingerprint
    - Ready callbacks queue until READY: messages sent before the embed listens are lost
    - Cached auth token re-sent on REQUEST_TOKEN_REFRESH when no provider is configured
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from deckrelay.core.delivery_dedup import DeliveryDeduplicator
from deckrelay.core.domain_types import ANY_ORIGIN, PhysicalId
from deckrelay.core.errors import InvalidEnvelopeError
from deckrelay.schemas.envelopes import (
    ConversationChangedEnvelope, ErrorEnvelope, ReadyEnvelope,
    TokenRefreshEnvelope, ToolCallEnvelope, ToolResult,
    auth_message, config_message, new_conversation_message, parse_inbound,
    register_tools_message, toggle_visibility_message, tool_response_message,
)
from deckrelay.services.operation_registry import OperationRegistry
from deckrelay.services.tool_call_coordinator import PendingCall, ToolCallCoordinator

logger = logging.getLogger(__name__)

Send = Callable[[dict], Awaitable[None]]
TokenProvider = Callable[[], Awaitable[str | None]]


class EmbedBridge:
    """Relay-side endpoint of one embed channel."""

    def __init__(
        self,
        send: Send,
        coordinator: ToolCallCoordinator,
        deduplicator: DeliveryDeduplicator,
        registry: OperationRegistry,
        *,
        expected_origin: str = ANY_ORIGIN,
        token: str | None = None,
        token_provider: TokenProvider | None = None,
        config: dict | None = None,
        on_error: Callable[[str, str], None] | None = None,
        on_conversation_change: Callable[[str | None], None] | None = None,
    ):
        self._send = send
        self.coordinator = coordinator
        self.deduplicator = deduplicator
        self.registry = registry
        self.expected_origin = expected_origin
        self.cached_token = token
        self._token_provider = token_provider
        self._config = config
        self._on_error = on_error
        self._on_conversation_change = on_conversation_change
        self.is_ready = False
        self._ready_callbacks: list[Callable[[], Awaitable[None]]] = [
            self._announce,
        ]
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    # ─── Callbacks ───────────────────────────────────────────────

    async def on_ready(self, callback: Callable[[], Awaitable[None]]) -> None:
        """Run `callback` once the embed is READY (immediately if it already is)."""
        if self.is_ready:
            await callback()
        else:
            self._ready_callbacks.append(callback)

    # ─── Commands (relay -> embed) ───────────────────────────────

    async def set_auth(self, token: str) -> None:
        self.cached_token = token
        await self._post(auth_message(token))

    async def register_tools(self, tools: list[dict]) -> None:
        await self._post(register_tools_message(tools))

    async def set_config(self, config: dict) -> None:
        await self._post(config_message(config))

    async def toggle(self, visible: bool) -> None:
        await self._post(toggle_visibility_message(visible))

    async def new_conversation(self) -> None:
        await self._post(new_conversation_message())

    async def respond_to_tool_call(self, request_id: str, result: ToolResult) -> None:
        await self._post(tool_response_message(request_id, result))

    async def close(self) -> None:
        """Stop answering. Units already queued still run against the engine."""
        self._closed = True
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    async def drain(self) -> None:
        """Wait until every pending tool response has been sent."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def pending_responses(self) -> int:
        return len(self._tasks)

    # ─── Incoming message handler ────────────────────────────────

    async def handle_message(self, data: Any, origin: str | None = None) -> None:
        """Validate, parse and route one inbound message."""
        if self._closed:
            return
        if self.expected_origin != ANY_ORIGIN and origin != self.expected_origin:
            logger.warning(f"Dropped message from unexpected origin '{origin}'")
            return
        if not isinstance(data, dict) or not data.get("type"):
            return

        try:
            envelope = parse_inbound(data)
        except InvalidEnvelopeError as e:
            logger.warning(e.message, extra={"error_code": e.code})
            return
        if envelope is None:
            logger.info(f"Ignored unknown envelope type '{data.get('type')}'")
            return

        match envelope:
            case ReadyEnvelope():
                await self._handle_ready()
            case ToolCallEnvelope(payload=payload):
                self._handle_tool_call(
                    PhysicalId(payload.request_id), payload.tool, payload.args,
                )
            case TokenRefreshEnvelope():
                await self._handle_token_refresh()
            case ErrorEnvelope(payload=payload):
                logger.warning(
                    f"Embed error {payload.code}: {payload.message}",
                    extra={"error_code": payload.code},
                )
                if self._on_error:
                    self._notify(self._on_error, payload.code, payload.message)
            case ConversationChangedEnvelope(payload=payload):
                logger.info(f"Conversation changed to {payload.conversation_id}")
                if self._on_conversation_change:
                    self._notify(self._on_conversation_change, payload.conversation_id)

    async def _handle_ready(self) -> None:
        self.is_ready = True
        callbacks, self._ready_callbacks = self._ready_callbacks, []
        for callback in callbacks:
            try:
                await callback()
            except Exception as e:
                logger.error(f"Ready callback failed: {e}", exc_info=True)

    def _handle_tool_call(self, physical_id: PhysicalId, tool: str, args: Any) -> None:
        if not self.deduplicator.admit(physical_id, hold=True):
            return
        call = self.coordinator.begin(physical_id, tool, args)
        task = asyncio.create_task(
            self._respond(call), name=f"tool-response:{physical_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _respond(self, call: PendingCall) -> None:
        try:
            record = await self.coordinator.settle(call)
            await self.respond_to_tool_call(call.physical_id, record.result)
        finally:
            self.deduplicator.retain(call.physical_id)
        await self.coordinator.record(record)

    def _notify(self, callback: Callable[..., None], *args: Any) -> None:
        try:
            callback(*args)
        except Exception as e:
            logger.error(f"Embed notification callback failed: {e}", exc_info=True)

    async def _handle_token_refresh(self) -> None:
        if self._token_provider is not None:
            try:
                token = await self._token_provider()
            except Exception as e:
                logger.error(f"Token refresh failed: {e}")
                return
            if token:
                await self.set_auth(token)
        elif self.cached_token:
            await self.set_auth(self.cached_token)

    async def _announce(self) -> None:
        """Default READY behaviour: tools first, then auth, then config."""
        await self.register_tools(self.registry.schemas())
        if self.cached_token:
            await self.set_auth(self.cached_token)
        if self._config:
            await self.set_config(self._config)

    async def _post(self, message: dict) -> None:
        try:
            await self._send(message)
        except Exception as e:
            logger.warning(f"Failed to send {message.get('type')} to embed: {e}")
