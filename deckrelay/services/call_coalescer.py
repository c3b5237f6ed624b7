"""Call Coalescer — attaches identical concurrent tool calls to one in-flight execution.

Invariants:
    - At most one producer invocation is in flight per fingerprint
    - A second arrival while the first is unsettled joins that execution; the producer
      is not called again
    - The registry holds the producer's own future and nothing a caller can cancel:
      each caller gets a private view, so timing out or cancelling a view never ends
      the entry early
    - Entry removal runs before any view settles, so an arrival after settlement
      always starts a fresh execution (no memoization)
    - A done entry is never attached to, even if its removal has not run yet

Design Decisions:
    - Synchronous run(): check-and-register has no await in between, so it is atomic
      on the event loop without a lock (ADR: single-threaded cooperative scheduling)
    - Per-caller views via asyncio.shield: callers may race their view against a
      timer (asyncio.wait_for) without cancelling the shared execution
    - False negatives acceptable, false positives never: matching is exact fingerprint
      equality, nothing fuzzier
"""

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable

from deckrelay.core.domain_types import Fingerprint

logger = logging.getLogger(__name__)

Producer = Callable[[], Awaitable[Any]]


class CallCoalescer:
    """Registry of in-flight executions keyed by fingerprint."""

    def __init__(self):
        self.coalesced_count = 0
        self._in_flight: dict[str, asyncio.Future] = {}

    def run(self, fingerprint: Fingerprint, producer: Producer) -> asyncio.Future:
        """Return a caller view of the execution for `fingerprint`, starting `producer` if none is live."""
        pending = self._in_flight.get(fingerprint)
        if pending is not None and not pending.done():
            self.coalesced_count += 1
            logger.info(
                "Coalesced duplicate in-flight call",
                extra={"fingerprint": fingerprint},
            )
            return asyncio.shield(pending)

        pending = asyncio.ensure_future(producer())
        self._in_flight[fingerprint] = pending
        # Registered before any view, so removal precedes every caller's wake-up
        pending.add_done_callback(functools.partial(self._settle, fingerprint))
        return asyncio.shield(pending)

    def is_in_flight(self, fingerprint: Fingerprint) -> bool:
        pending = self._in_flight.get(fingerprint)
        return pending is not None and not pending.done()

    def in_flight(self) -> list[str]:
        return [key for key, fut in self._in_flight.items() if not fut.done()]

    def __len__(self) -> int:
        return len(self.in_flight())

    def _settle(self, fingerprint: str, pending: asyncio.Future) -> None:
        if self._in_flight.get(fingerprint) is pending:
            del self._in_flight[fingerprint]
