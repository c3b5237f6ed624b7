"""Deck Engine — the single-writer presentation engine behind the serial queue.

Invariants:
    - execute() routes operation -> handler through one explicit dict
    - Unknown operations raise UnknownOperationError; bad arguments raise ToolValidationError
    - Any other handler failure is wrapped in EngineOperationError (original kept as __cause__)
    - At most one operation is inside the engine at a time; a second entrant raises
      ConcurrencyError instead of interleaving with the first

Design Decisions:
    - Explicit dict over getattr: every mapping visible in one place
      (ADR: ExMA no convention-over-config)
    - Re-entry guard is a tripwire, not a lock: admission is the serial queue's job,
      the guard makes a serialization bug loud instead of silently corrupting the deck
    - sync_delay models the engine's own round trip (a suspension point per operation)
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Protocol

from deckrelay.core.deck_state import DeckState, new_deck
from deckrelay.core.errors import (
    ConcurrencyError, EngineOperationError, ErrorContext, RelayError,
    ToolValidationError, UnknownOperationError,
)
from deckrelay.services.handle_shapes import ShapeHandlers
from deckrelay.services.handle_slides import SlideHandlers

logger = logging.getLogger(__name__)

Handler = Callable[[dict], Awaitable[dict]]


class Engine(Protocol):
    """Structural contract the dispatcher consumes."""
    def operations(self) -> frozenset[str]: ...
    async def execute(self, operation: str, arguments: Any) -> dict: ...


class DeckEngine:
    """In-memory presentation engine. Explicit registration, no auto-discovery."""

    def __init__(self, state: DeckState | None = None, sync_delay: float = 0.0):
        self.state = state or new_deck()
        self.sync_delay = sync_delay
        self.executed = 0
        self._active: str | None = None
        slides = SlideHandlers(self.state)
        shapes = ShapeHandlers(self.state)

        # ADR: every mapping explicit; adding a tool requires editing this dict
        self._handlers: dict[str, Handler] = {
            # Presentation & slides (11 tools)
            "get_presentation_info": slides.get_presentation_info,
            "list_slides": slides.list_slides,
            "get_slide": slides.get_slide,
            "get_selected_slide": slides.get_selected_slide,
            "add_slide": slides.add_slide,
            "delete_slide": slides.delete_slide,
            "move_slide": slides.move_slide,
            "duplicate_slide": slides.duplicate_slide,
            "set_slide_title": slides.set_slide_title,
            "apply_background_color": slides.apply_background_color,
            "set_layout": slides.set_layout,

            # Shapes (7 tools)
            "get_shapes": shapes.get_shapes,
            "add_text_box": shapes.add_text_box,
            "set_shape_text": shapes.set_shape_text,
            "delete_shape": shapes.delete_shape,
            "add_table": shapes.add_table,
            "set_table_data": shapes.set_table_data,
            "set_shape_position": shapes.set_shape_position,
        }

    def operations(self) -> frozenset[str]:
        return frozenset(self._handlers)

    async def execute(self, operation: str, arguments: Any) -> dict:
        """Run one operation against the deck."""
        handler = self._handlers.get(operation)
        if handler is None:
            raise UnknownOperationError(operation)
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ToolValidationError(
                f"Arguments for '{operation}' must be an object",
                field="args", context=ErrorContext(tool_name=operation),
            )
        if self._active is not None:
            raise ConcurrencyError(
                f"'{operation}' entered the engine while '{self._active}' was still running",
                context=ErrorContext(tool_name=operation),
            )

        self._active = operation
        try:
            await asyncio.sleep(self.sync_delay)
            result = await handler(arguments)
        except RelayError as e:
            e.context.tool_name = e.context.tool_name or operation
            raise
        except Exception as e:
            logger.error(
                f"Engine operation '{operation}' failed: {e}",
                extra={"tool_name": operation},
            )
            raise EngineOperationError(
                operation, str(e), ErrorContext(tool_name=operation),
            ) from e
        finally:
            self._active = None
            self.executed += 1
        return result
