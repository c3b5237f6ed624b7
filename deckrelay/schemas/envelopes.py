"""Envelope Schemas — the closed set of messages exchanged with the chat embed.

Invariants:
    - Wire shape is {"type": <TAG>, "payload": {...}}; payload omitted for READY / NEW_CONVERSATION
    - Inbound kinds form a discriminated union on `type`, so parsing is exhaustive
    - Unknown tags parse to None (tolerate protocol evolution); known tags with a
      malformed payload raise InvalidEnvelopeError
    - A TOOL_RESPONSE result is {success: true, result} or {success: false, error: str}

Design Decisions:
    - Pydantic discriminated union over dict.get("type") switches: one validation
      step, typed payloads everywhere downstream
    - Wire names are camelCase (requestId, conversationId); Python fields are snake_case via aliases
"""

from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator,
)

from deckrelay.core.domain_types import InboundType, OutboundType
from deckrelay.core.errors import InvalidEnvelopeError


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# ─── Inbound (embed -> relay) ────────────────────────────────────

class ToolCallPayload(_Frozen):
    request_id: str = Field(alias="requestId", min_length=1)
    tool: str = Field(min_length=1)
    args: Any = None


class ErrorPayload(_Frozen):
    code: str = "UNKNOWN"
    message: str = ""


class ConversationChangedPayload(_Frozen):
    conversation_id: str | None = Field(default=None, alias="conversationId")


class ReadyEnvelope(_Frozen):
    type: Literal["READY"]


class ToolCallEnvelope(_Frozen):
    type: Literal["TOOL_CALL"]
    payload: ToolCallPayload


class TokenRefreshEnvelope(_Frozen):
    type: Literal["REQUEST_TOKEN_REFRESH"]


class ErrorEnvelope(_Frozen):
    type: Literal["ERROR"]
    payload: ErrorPayload = Field(default_factory=ErrorPayload)

    @field_validator("payload", mode="before")
    @classmethod
    def null_payload_is_empty(cls, v):
        return {} if v is None else v


class ConversationChangedEnvelope(_Frozen):
    type: Literal["CONVERSATION_CHANGED"]
    payload: ConversationChangedPayload = Field(
        default_factory=ConversationChangedPayload,
    )

    @field_validator("payload", mode="before")
    @classmethod
    def null_payload_is_empty(cls, v):
        return {} if v is None else v


InboundEnvelope = Annotated[
    Union[
        ReadyEnvelope,
        ToolCallEnvelope,
        TokenRefreshEnvelope,
        ErrorEnvelope,
        ConversationChangedEnvelope,
    ],
    Field(discriminator="type"),
]

_INBOUND_ADAPTER = TypeAdapter(InboundEnvelope)
_KNOWN_INBOUND = frozenset(t.value for t in InboundType)


def parse_inbound(data: dict) -> InboundEnvelope | None:
    """Parse one inbound message. None for tags this relay does not know."""
    tag = data.get("type")
    if not isinstance(tag, str) or tag not in _KNOWN_INBOUND:
        return None
    try:
        return _INBOUND_ADAPTER.validate_python(data)
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidEnvelopeError(details, tag) from e


# ─── Outbound (relay -> embed) ───────────────────────────────────

class ToolResult(BaseModel):
    """Outcome of one tool call as reported to the embed."""
    success: bool
    result: Any = None
    error: str | None = None

    def to_payload(self) -> dict:
        if self.success:
            return {"success": True, "result": self.result}
        return {"success": False, "error": self.error or ""}


def _envelope(kind: OutboundType, payload: Any = None) -> dict:
    message: dict[str, Any] = {"type": kind.value}
    if payload is not None:
        message["payload"] = payload
    return message


def auth_message(token: str) -> dict:
    return _envelope(OutboundType.AUTH, {"token": token})


def register_tools_message(tools: list[dict]) -> dict:
    return _envelope(OutboundType.REGISTER_TOOLS, {"tools": tools})


def config_message(config: dict) -> dict:
    return _envelope(OutboundType.CONFIG, config)


def toggle_visibility_message(visible: bool) -> dict:
    return _envelope(OutboundType.TOGGLE_VISIBILITY, {"visible": visible})


def new_conversation_message() -> dict:
    return _envelope(OutboundType.NEW_CONVERSATION)


def tool_response_message(request_id: str, result: ToolResult) -> dict:
    return _envelope(
        OutboundType.TOOL_RESPONSE,
        {"requestId": request_id, "result": result.to_payload()},
    )
