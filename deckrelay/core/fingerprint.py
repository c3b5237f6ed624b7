"""Fingerprint — deterministic key for recognizing logically-identical tool calls.

Invariants:
    - Equal (operation, arguments) always produce the same fingerprint
    - Object key order never affects the fingerprint (sort_keys)
    - Structurally different arguments never share a fingerprint: 1 vs "1" vs true stay distinct
    - Non-JSON arguments are rejected, never stringified into a lossy key

Design Decisions:
    - Compact JSON over hashing: keys stay readable in logs, collisions impossible
    - Not a security boundary; only used to coalesce in-flight calls
"""

import json
from typing import Any

from deckrelay.core.domain_types import Fingerprint
from deckrelay.core.errors import ToolValidationError, ErrorContext


def canonicalize(operation: str, arguments: Any) -> Fingerprint:
    """Build the coalescing key for one tool call."""
    try:
        body = json.dumps(
            arguments,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        raise ToolValidationError(
            f"Arguments for '{operation}' are not JSON-serializable: {e}",
            field="args",
            context=ErrorContext(tool_name=operation),
        ) from e
    return Fingerprint(f"{operation}:{body}")
