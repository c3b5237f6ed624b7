"""Tool Arguments — typed accessors over the raw `args` object of a TOOL_CALL.

Invariants:
    - Missing required arguments raise ToolValidationError naming the field
    - Numbers accept int or float but never bool
    - Optional accessors return the default only when the key is absent or null
"""

from deckrelay.core.errors import ToolValidationError


def require_str(args: dict, key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str):
        raise ToolValidationError(f"{key} must be a string", field=key)
    return value


def require_int(args: dict, key: str) -> int:
    value = args.get(key)
    if value is None:
        raise ToolValidationError(f"{key} is required", field=key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ToolValidationError(f"{key} must be an integer", field=key)
    return value


def optional_number(args: dict, key: str, default: float | None = None) -> float | None:
    value = args.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ToolValidationError(f"{key} must be a number", field=key)
    return value
