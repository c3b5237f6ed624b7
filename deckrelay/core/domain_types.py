"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - PhysicalId is transport-assigned and reused on redelivery
    - Fingerprint is derived from (operation, arguments), never supplied by the caller
    - Envelope kinds encoded as Enums; no raw string matching outside schemas/

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (ADR: envelopes are JSON)
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

PhysicalId = NewType("PhysicalId", str)
Fingerprint = NewType("Fingerprint", str)


# ─── Constants ───────────────────────────────────────────────────

DEFAULT_DEDUP_WINDOW_SECONDS = 30.0
ANY_ORIGIN = "*"


# ─── Enums ───────────────────────────────────────────────────────

class InboundType(str, Enum):
    """Envelope kinds sent by the embed."""
    READY = "READY"
    TOOL_CALL = "TOOL_CALL"
    REQUEST_TOKEN_REFRESH = "REQUEST_TOKEN_REFRESH"
    ERROR = "ERROR"
    CONVERSATION_CHANGED = "CONVERSATION_CHANGED"


class OutboundType(str, Enum):
    """Envelope kinds sent to the embed."""
    AUTH = "AUTH"
    REGISTER_TOOLS = "REGISTER_TOOLS"
    CONFIG = "CONFIG"
    TOGGLE_VISIBILITY = "TOGGLE_VISIBILITY"
    NEW_CONVERSATION = "NEW_CONVERSATION"
    TOOL_RESPONSE = "TOOL_RESPONSE"


class ShapeKind(str, Enum):
    """Shape kinds held by the deck engine."""
    TEXT_BOX = "TextBox"
    TABLE = "Table"
    TITLE = "Title"
