"""Relay Runtime — the process-wide set of components shared by every embed channel.

Invariants:
    - Exactly one engine, one serial queue and one coalescer per process
    - One deduplicator shared by all channels: a message delivered to two listeners
      is admitted once
    - Only the registry (through the queue) holds a path to the engine

Design Decisions:
    - Built in the FastAPI lifespan and stored on app.state (ADR: no global import side effects)
    - Plain dataclass container over a DI framework: the wiring fits on one screen
"""

import logging
from dataclasses import dataclass

from deckrelay.core.delivery_dedup import DeliveryDeduplicator
from deckrelay.core.domain_types import DEFAULT_DEDUP_WINDOW_SECONDS
from deckrelay.services.call_coalescer import CallCoalescer
from deckrelay.services.deck_engine import DeckEngine
from deckrelay.services.define_deck_tools import ALL_TOOLS
from deckrelay.services.operation_registry import OperationRegistry
from deckrelay.services.serial_queue import SerialExecutionQueue
from deckrelay.services.tool_call_coordinator import AuditSink, ToolCallCoordinator

logger = logging.getLogger(__name__)


@dataclass
class RelayRuntime:
    engine: DeckEngine
    registry: OperationRegistry
    queue: SerialExecutionQueue
    coalescer: CallCoalescer
    deduplicator: DeliveryDeduplicator
    coordinator: ToolCallCoordinator

    async def aclose(self) -> None:
        await self.queue.aclose()

    def stats(self) -> dict:
        return {
            "queue_depth": self.queue.depth,
            "queue_busy": self.queue.busy,
            "completed": self.queue.completed,
            "failed": self.queue.failed,
            "in_flight": len(self.coalescer),
            "coalesced": self.coalescer.coalesced_count,
            "tracked_deliveries": len(self.deduplicator),
        }


def build_runtime(
    engine: DeckEngine | None = None,
    dedup_window_seconds: float = DEFAULT_DEDUP_WINDOW_SECONDS,
    audit: AuditSink | None = None,
    tools: list[dict] | None = None,
) -> RelayRuntime:
    engine = engine or DeckEngine()
    registry = OperationRegistry(engine, tools if tools is not None else ALL_TOOLS)
    queue = SerialExecutionQueue()
    coalescer = CallCoalescer()
    runtime = RelayRuntime(
        engine=engine,
        registry=registry,
        queue=queue,
        coalescer=coalescer,
        deduplicator=DeliveryDeduplicator(dedup_window_seconds),
        coordinator=ToolCallCoordinator(registry, queue, coalescer, audit),
    )
    logger.info(
        f"Relay runtime ready ({len(registry)} tools, "
        f"dedup window {dedup_window_seconds}s)",
    )
    return runtime
