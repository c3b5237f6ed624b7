"""Serial Execution Queue — FIFO admission point that runs one unit of work at a time.

Invariants:
    - Units start in submission order; unit N starts only after unit N-1 has settled
    - The engine never sees two units in flight from this queue
    - A unit's failure reaches its own caller's future unchanged and nothing else:
      the worker records it as an outcome and moves on to the next entry
    - No priority, no reordering, no cancellation: a dequeued unit always runs,
      even if its caller stopped waiting (callers cancel cooperatively inside the unit)

Design Decisions:
    - Actor over promise chaining: one worker task owns the FIFO (asyncio.Queue), so the
      "execution chain" cannot be left stuck by one unit's failure
    - UnitOutcome result type: the worker chains on "settled", never on "succeeded"
    - Worker started lazily on the running loop: the queue can be built before the
      event loop exists (FastAPI lifespan, tests)
    - submit() is synchronous: enqueue order is fixed the moment the caller submits,
      before any suspension point
"""

import asyncio
import itertools
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

Unit = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class QueueEntry:
    """One pending unit; knows nothing about request ids or fingerprints."""
    unit: Unit
    future: asyncio.Future
    enqueued_at: float
    sequence: int


@dataclass(frozen=True)
class UnitOutcome:
    """Settled result of one unit — exactly one of value/error is meaningful."""
    ok: bool
    value: Any = None
    error: BaseException | None = None


class SerialExecutionQueue:
    """Runs submitted async units strictly one at a time, in FIFO order."""

    def __init__(self, name: str = "engine"):
        self.name = name
        self.completed = 0
        self.failed = 0
        self._queue: asyncio.Queue[QueueEntry] | None = None
        self._worker: asyncio.Task | None = None
        self._sequence = itertools.count(1)
        self._current: QueueEntry | None = None
        self._closed = False

    # ─── Public API ──────────────────────────────────────────────

    def submit(self, unit: Unit) -> asyncio.Future:
        """Enqueue `unit`; the returned future settles with its result or error."""
        if self._closed:
            raise RuntimeError(f"Serial queue '{self.name}' is closed")
        loop = asyncio.get_running_loop()
        queue = self._ensure_worker(loop)
        entry = QueueEntry(
            unit=unit,
            future=loop.create_future(),
            enqueued_at=time.monotonic(),
            sequence=next(self._sequence),
        )
        queue.put_nowait(entry)
        logger.debug(
            f"Queued unit #{entry.sequence} on '{self.name}'",
            extra={"queue_depth": queue.qsize()},
        )
        return entry.future

    @property
    def depth(self) -> int:
        """Units waiting to start (the running unit is not counted)."""
        return self._queue.qsize() if self._queue else 0

    @property
    def busy(self) -> bool:
        return self._current is not None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def closed(self) -> bool:
        return self._closed

    async def join(self) -> None:
        """Wait until every unit submitted so far has settled."""
        if self._queue is not None:
            await self._queue.join()

    async def aclose(self) -> None:
        """Stop the worker. Units not yet started have their futures cancelled."""
        self._closed = True
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        if self._queue is not None:
            while not self._queue.empty():
                entry = self._queue.get_nowait()
                entry.future.cancel()
                self._queue.task_done()
        logger.info(
            f"Serial queue '{self.name}' closed "
            f"(completed={self.completed}, failed={self.failed})",
        )

    # ─── Worker ──────────────────────────────────────────────────

    def _ensure_worker(self, loop: asyncio.AbstractEventLoop) -> asyncio.Queue:
        if self._queue is None:
            self._queue = asyncio.Queue()
        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(
                self._drain(), name=f"serial-queue:{self.name}",
            )
        return self._queue

    async def _drain(self) -> None:
        assert self._queue is not None
        while True:
            entry = await self._queue.get()
            self._current = entry
            try:
                outcome = await self._execute(entry)
                self._resolve(entry, outcome)
            except asyncio.CancelledError:
                # Shutdown while a unit was running
                if not entry.future.done():
                    entry.future.cancel()
                raise
            finally:
                self._current = None
                self._queue.task_done()

    async def _execute(self, entry: QueueEntry) -> UnitOutcome:
        """Run one unit to settlement. Never raises except on cancellation."""
        started = time.monotonic()
        try:
            value = await entry.unit()
        except asyncio.CancelledError as e:
            task = asyncio.current_task()
            if self._closed or (task is not None and task.cancelling()):
                raise
            # The unit cancelled itself; the worker carries on
            self.failed += 1
            return UnitOutcome(ok=False, error=e)
        except Exception as e:
            self.failed += 1
            logger.warning(
                f"Unit #{entry.sequence} on '{self.name}' failed: {e}",
                extra={"duration_ms": _elapsed_ms(started)},
            )
            return UnitOutcome(ok=False, error=e)
        self.completed += 1
        logger.debug(
            f"Unit #{entry.sequence} on '{self.name}' completed",
            extra={
                "duration_ms": _elapsed_ms(started),
                "queue_depth": self.depth,
            },
        )
        return UnitOutcome(ok=True, value=value)

    @staticmethod
    def _resolve(entry: QueueEntry, outcome: UnitOutcome) -> None:
        # Caller may have cancelled its future; the unit still ran
        if entry.future.done():
            return
        if outcome.ok:
            entry.future.set_result(outcome.value)
        elif isinstance(outcome.error, asyncio.CancelledError):
            entry.future.cancel()
        else:
            entry.future.set_exception(outcome.error)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
