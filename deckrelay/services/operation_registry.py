"""Operation Registry — maps operation names to handlers; the seam the queue calls through.

Invariants:
    - Built once at startup from a static schema table; no registration afterwards
    - Every registered schema has a matching engine operation (ValueError otherwise)
    - resolve() of an unknown name raises UnknownOperationError; never retried, never queued
    - dispatch() is the only path from the queue to the engine

Design Decisions:
    - Handlers are engine.execute bound to one name: the registry decides WHAT may run,
      the engine decides HOW (ADR: engine is an external collaborator behind one method)
    - Schemas kept beside handlers so REGISTER_TOOLS and dispatch can never disagree
"""

import functools
import logging
from typing import Any, Awaitable, Callable

from deckrelay.core.errors import UnknownOperationError
from deckrelay.services.deck_engine import Engine

logger = logging.getLogger(__name__)

OperationHandler = Callable[[Any], Awaitable[Any]]


class OperationRegistry:
    """Static name -> handler table with the schemas announced to the embed."""

    def __init__(self, engine: Engine, schemas: list[dict]):
        supported = engine.operations()
        self._schemas: list[dict] = []
        self._handlers: dict[str, OperationHandler] = {}
        for schema in schemas:
            name = schema["name"]
            if name not in supported:
                raise ValueError(f"Engine has no operation for tool '{name}'")
            if name in self._handlers:
                raise ValueError(f"Tool '{name}' registered twice")
            self._handlers[name] = functools.partial(engine.execute, name)
            self._schemas.append({
                "name": name,
                "description": schema.get("description", ""),
                "parameters": schema.get(
                    "parameters", {"type": "object", "properties": {}},
                ),
            })
        logger.info(f"Operation registry built with {len(self._handlers)} tools")

    def resolve(self, name: str) -> OperationHandler:
        handler = self._handlers.get(name)
        if handler is None:
            raise UnknownOperationError(name)
        return handler

    def dispatch(self, name: str, arguments: Any) -> Awaitable[Any]:
        """Resolve and invoke. Unknown names raise before anything is awaited."""
        return self.resolve(name)(arguments)

    def schemas(self) -> list[dict]:
        return [dict(schema) for schema in self._schemas]

    def names(self) -> list[str]:
        return list(self._handlers)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)
