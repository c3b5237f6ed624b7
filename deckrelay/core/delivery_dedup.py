"""Delivery Deduplicator — bounded-lifetime set of physical request ids already admitted.

Invariants:
    - admit() returns True exactly once per physical id within the retention window
    - Check-and-insert is one synchronous step (no await), so atomic on the event loop
    - Expired records are swept lazily on every admit(); memory is bounded by arrival rate x window
    - A redelivery arriving after its record expired is treated as a new request
    - A held id never expires; retain() releases the hold and starts its window

Design Decisions:
    - deque of (expiry, id) over a heap: the window is constant per instance and the
      clock is monotonic, so insertion order IS expiry order and the sweep pops from the left
    - admit(hold=True) pins the id with an infinite expiry and no deque entry, so an
      execution that outlasts the window is still protected while its response is pending
    - retain() re-stamps a record after the response is sent: the id stays protected
      for a full window after settlement, not just after arrival
    - Re-stamped ids leave a stale deque entry; the sweep skips entries whose expiry
      no longer matches the live record
    - Transport-layer only: two distinct requests for the same operation are the
      coalescer's concern, not this gate's
"""

import logging
import math
import time
from collections import deque
from typing import Callable

from deckrelay.core.domain_types import PhysicalId, DEFAULT_DEDUP_WINDOW_SECONDS

logger = logging.getLogger(__name__)


class DeliveryDeduplicator:
    """Remembers admitted physical ids for `window_seconds`."""

    def __init__(
        self,
        window_seconds: float = DEFAULT_DEDUP_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self.window_seconds = window_seconds
        self._clock = clock
        self._expiry_by_id: dict[str, float] = {}
        self._order: deque[tuple[float, str]] = deque()

    def admit(self, physical_id: PhysicalId, *, hold: bool = False) -> bool:
        """True if the id is new (and record it), False if it is a redelivery.

        With hold=True the record does not expire until retain() is called.
        """
        now = self._clock()
        self._sweep(now)
        if physical_id in self._expiry_by_id:
            logger.info(
                "Duplicate delivery suppressed",
                extra={"request_id": physical_id},
            )
            return False
        if hold:
            self._expiry_by_id[physical_id] = math.inf
        else:
            self._stamp(physical_id, now)
        return True

    def retain(self, physical_id: PhysicalId) -> None:
        """Release any hold and extend the id's record to a full window from now."""
        now = self._clock()
        self._sweep(now)
        self._stamp(physical_id, now)

    def __contains__(self, physical_id: object) -> bool:
        expiry = self._expiry_by_id.get(physical_id)  # type: ignore[arg-type]
        return expiry is not None and expiry > self._clock()

    def __len__(self) -> int:
        self._sweep(self._clock())
        return len(self._expiry_by_id)

    def _stamp(self, physical_id: str, now: float) -> None:
        expiry = now + self.window_seconds
        self._expiry_by_id[physical_id] = expiry
        self._order.append((expiry, physical_id))

    def _sweep(self, now: float) -> None:
        while self._order and self._order[0][0] <= now:
            expiry, physical_id = self._order.popleft()
            # Only the newest stamp for an id evicts it
            if self._expiry_by_id.get(physical_id) == expiry:
                del self._expiry_by_id[physical_id]
