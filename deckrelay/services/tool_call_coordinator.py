"""Tool Call Coordinator — composes fingerprinting, coalescing, and the serial queue.

Invariants:
    - begin() never suspends: fingerprint, coalesce and submit happen in the caller's
      step, so queue order equals the order calls reach begin()
    - Unknown operations fail before fingerprinting and are never queued
    - Coalescing wraps a serialized unit: run(fp, () -> submit(() -> dispatch(op, args)))
    - Each caller gets its own ToolResult even when several share one execution
    - Operation failures become ToolResult(success=False); nothing is retried here

Design Decisions:
    - begin()/settle()/record() split: the transport starts calls in arrival order,
      awaits each result independently and sends the response before auditing
      (ADR: receive loop never blocks on a tool call; audit never delays a response)
    - finish() = settle() + record() for callers without a transport of their own
    - Each call awaits its own coalescer view through asyncio.shield: a caller that
      gives up never cancels the execution other callers are waiting on
    - Audit is observability only: failures are logged, never surfaced (ADR: same as
      tool-call logging, never crashes the call path)
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from deckrelay.core.domain_types import Fingerprint, PhysicalId
from deckrelay.core.errors import RelayError, UnknownOperationError
from deckrelay.core.fingerprint import canonicalize
from deckrelay.schemas.envelopes import ToolResult
from deckrelay.services.call_coalescer import CallCoalescer
from deckrelay.services.operation_registry import OperationRegistry
from deckrelay.services.serial_queue import SerialExecutionQueue

logger = logging.getLogger(__name__)


@dataclass
class PendingCall:
    """One physical tool call between begin() and finish()."""
    physical_id: PhysicalId
    operation: str
    arguments: Any
    future: asyncio.Future
    fingerprint: Fingerprint | None = None
    coalesced: bool = False
    started_at: float = field(default_factory=time.monotonic)


@dataclass
class ToolCallRecord:
    """What the audit sink receives once a call has settled."""
    request_id: str
    tool_name: str
    fingerprint: str | None
    arguments: Any
    result: ToolResult
    error_code: str | None
    coalesced: bool
    duration_ms: int


AuditSink = Callable[[ToolCallRecord], Awaitable[None]]


class ToolCallCoordinator:
    """The orchestrating call between the transport and the engine."""

    def __init__(
        self,
        registry: OperationRegistry,
        queue: SerialExecutionQueue,
        coalescer: CallCoalescer,
        audit: AuditSink | None = None,
    ):
        self.registry = registry
        self.queue = queue
        self.coalescer = coalescer
        self._audit = audit

    async def handle_tool_call(
        self, physical_id: PhysicalId, operation: str, arguments: Any,
    ) -> ToolResult:
        return await self.finish(self.begin(physical_id, operation, arguments))

    def begin(
        self, physical_id: PhysicalId, operation: str, arguments: Any,
    ) -> PendingCall:
        """Start (or join) the execution for one call without suspending."""
        if operation not in self.registry:
            return PendingCall(
                physical_id, operation, arguments,
                _failed(UnknownOperationError(operation)),
            )

        try:
            fingerprint = canonicalize(operation, arguments)
            coalesced = self.coalescer.is_in_flight(fingerprint)
            future = self.coalescer.run(
                fingerprint,
                lambda: self.queue.submit(
                    lambda: self.registry.dispatch(operation, arguments),
                ),
            )
        except Exception as e:
            # Bad arguments or a closed queue: nothing was registered
            return PendingCall(physical_id, operation, arguments, _failed(e))

        logger.info(
            f"Tool call '{operation}' {'joined in-flight execution' if coalesced else 'queued'}",
            extra={
                "request_id": physical_id,
                "tool_name": operation,
                "coalesced": coalesced,
                "queue_depth": self.queue.depth,
            },
        )
        return PendingCall(
            physical_id, operation, arguments, future,
            fingerprint=fingerprint, coalesced=coalesced,
        )

    async def finish(self, call: PendingCall) -> ToolResult:
        """Wait for the call's result, audit it, and return it."""
        record = await self.settle(call)
        await self.record(record)
        return record.result

    async def settle(self, call: PendingCall) -> ToolCallRecord:
        """Wait for the call's execution and turn it into a ToolResult (no audit)."""
        error_code = None
        try:
            value = await asyncio.shield(call.future)
            result = ToolResult(success=True, result=value)
        except asyncio.CancelledError:
            if not call.future.cancelled():
                raise
            error_code = "CANCELLED"
            result = ToolResult(
                success=False, error="Tool call was cancelled before it completed",
            )
        except RelayError as e:
            error_code = e.code
            result = ToolResult(success=False, error=e.to_tool_error())
        except Exception as e:
            error_code = "INTERNAL_ERROR"
            result = ToolResult(success=False, error=str(e) or type(e).__name__)

        duration_ms = int((time.monotonic() - call.started_at) * 1000)
        if not result.success:
            logger.warning(
                f"Tool call '{call.operation}' failed: {result.error}",
                extra={
                    "request_id": call.physical_id,
                    "tool_name": call.operation,
                    "error_code": error_code,
                    "duration_ms": duration_ms,
                },
            )
        return ToolCallRecord(
            request_id=call.physical_id,
            tool_name=call.operation,
            fingerprint=call.fingerprint,
            arguments=call.arguments,
            result=result,
            error_code=error_code,
            coalesced=call.coalesced,
            duration_ms=duration_ms,
        )

    async def record(self, record: ToolCallRecord) -> None:
        """Hand a settled call to the audit sink. Never raises."""
        if self._audit is None:
            return
        try:
            await self._audit(record)
        except Exception as e:
            logger.warning(
                f"Failed to audit tool call '{record.tool_name}': {e}",
                extra={"request_id": record.request_id},
            )


def _failed(error: Exception) -> asyncio.Future:
    future = asyncio.get_running_loop().create_future()
    future.set_exception(error)
    return future
