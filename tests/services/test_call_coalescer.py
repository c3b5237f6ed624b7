"""Call Coalescer — tests for sharing one in-flight execution per fingerprint.

Tests cover:
    - Concurrent identical calls invoke the producer once and share the outcome
    - Failures are shared exactly like successes
    - A call arriving after settlement starts a fresh execution (no memoization)
    - Different fingerprints never share
    - A producer that raises synchronously registers nothing
    - A caller timing out on its view leaves the execution registered and running
"""

import asyncio

import pytest

from deckrelay.core.domain_types import Fingerprint
from deckrelay.services.call_coalescer import CallCoalescer

FP = Fingerprint('set_table_data:{"row":0}')


class GatedProducer:
    """Producer whose executions finish only when the test opens the gate."""

    def __init__(self, result="ok", error: Exception | None = None):
        self.calls = 0
        self.gate = asyncio.Event()
        self._result = result
        self._error = error

    def __call__(self):
        self.calls += 1
        return self._run()

    async def _run(self):
        await self.gate.wait()
        if self._error is not None:
            raise self._error
        return self._result


@pytest.mark.asyncio
async def test_identical_concurrent_calls_share_one_execution():
    coalescer = CallCoalescer()
    producer = GatedProducer(result={"success": True})

    first = coalescer.run(FP, producer)
    second = coalescer.run(FP, producer)
    third = coalescer.run(FP, producer)

    assert producer.calls == 1
    assert first is not second
    assert coalescer.coalesced_count == 2

    producer.gate.set()
    results = await asyncio.gather(first, second, third)
    assert results == [{"success": True}] * 3


@pytest.mark.asyncio
async def test_failure_is_shared_by_every_caller():
    coalescer = CallCoalescer()
    producer = GatedProducer(error=ValueError("cell locked"))

    futures = [coalescer.run(FP, producer) for _ in range(3)]
    producer.gate.set()
    outcomes = await asyncio.gather(*futures, return_exceptions=True)

    assert producer.calls == 1
    assert all(isinstance(o, ValueError) for o in outcomes)
    assert outcomes[0] is outcomes[1] is outcomes[2]


@pytest.mark.asyncio
async def test_entry_removed_at_settlement():
    coalescer = CallCoalescer()
    producer = GatedProducer()

    future = coalescer.run(FP, producer)
    assert coalescer.is_in_flight(FP)
    assert coalescer.in_flight() == [FP]
    producer.gate.set()
    await future

    assert not coalescer.is_in_flight(FP)
    assert len(coalescer) == 0


@pytest.mark.asyncio
async def test_call_after_settlement_executes_again():
    coalescer = CallCoalescer()
    producer = GatedProducer()
    producer.gate.set()

    await coalescer.run(FP, producer)
    await coalescer.run(FP, producer)

    assert producer.calls == 2
    assert coalescer.coalesced_count == 0


@pytest.mark.asyncio
async def test_entry_removed_after_failure_too():
    coalescer = CallCoalescer()
    producer = GatedProducer(error=RuntimeError("x"))
    producer.gate.set()

    with pytest.raises(RuntimeError):
        await coalescer.run(FP, producer)
    assert not coalescer.is_in_flight(FP)

    retry = GatedProducer(result="second")
    retry.gate.set()
    assert await coalescer.run(FP, retry) == "second"


@pytest.mark.asyncio
async def test_different_fingerprints_do_not_share():
    coalescer = CallCoalescer()
    producer = GatedProducer()

    a = coalescer.run(Fingerprint("op:1"), producer)
    b = coalescer.run(Fingerprint("op:2"), producer)

    assert a is not b
    assert producer.calls == 2
    producer.gate.set()
    await asyncio.gather(a, b)


@pytest.mark.asyncio
async def test_producer_cancellation_cancels_every_view():
    coalescer = CallCoalescer()
    loop = asyncio.get_running_loop()
    underlying = loop.create_future()

    first = coalescer.run(FP, lambda: underlying)
    second = coalescer.run(FP, lambda: underlying)
    underlying.cancel()
    await asyncio.sleep(0)

    assert first.cancelled() and second.cancelled()
    assert not coalescer.is_in_flight(FP)


@pytest.mark.asyncio
async def test_cancelling_one_waiter_spares_the_others():
    coalescer = CallCoalescer()
    producer = GatedProducer(result="kept")

    impatient = coalescer.run(FP, producer)
    patient = coalescer.run(FP, producer)
    impatient.cancel()
    await asyncio.sleep(0)

    assert coalescer.is_in_flight(FP)
    producer.gate.set()
    assert await patient == "kept"
    assert impatient.cancelled()
    assert producer.calls == 1


@pytest.mark.asyncio
async def test_timed_out_caller_does_not_start_second_execution():
    coalescer = CallCoalescer()
    producer = GatedProducer(result="slow")

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(coalescer.run(FP, producer), timeout=0.01)

    assert coalescer.is_in_flight(FP)
    late = coalescer.run(FP, producer)
    assert producer.calls == 1
    assert coalescer.coalesced_count == 1

    producer.gate.set()
    assert await late == "slow"
    assert not coalescer.is_in_flight(FP)


@pytest.mark.asyncio
async def test_synchronous_producer_error_registers_nothing():
    coalescer = CallCoalescer()

    def producer():
        raise RuntimeError("queue closed")

    with pytest.raises(RuntimeError, match="queue closed"):
        coalescer.run(FP, producer)
    assert len(coalescer) == 0
