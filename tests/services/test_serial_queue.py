"""Serial Execution Queue — tests for FIFO, one-at-a-time execution.

Tests cover:
    - Units start in submission order and never overlap
    - Unit N starts only after unit N-1 has settled
    - A failing unit rejects only its own future; the next unit still runs
    - A caller that stops waiting does not stop its unit
    - join() waits for everything submitted so far
    - aclose() cancels units that have not run; submit() afterwards is refused
"""

import asyncio

import pytest

from deckrelay.services.serial_queue import SerialExecutionQueue


@pytest.fixture
async def queue():
    q = SerialExecutionQueue(name="test")
    yield q
    await q.aclose()


def _recording_unit(events: list, name: str, steps: int = 3):
    async def unit():
        events.append(f"start:{name}")
        for _ in range(steps):
            await asyncio.sleep(0)
        events.append(f"end:{name}")
        return name
    return unit


@pytest.mark.asyncio
async def test_units_run_in_submission_order_without_overlap(queue):
    events: list[str] = []
    futures = [queue.submit(_recording_unit(events, str(i))) for i in range(5)]
    results = await asyncio.gather(*futures)
    assert results == ["0", "1", "2", "3", "4"]
    assert events == [
        e for i in range(5) for e in (f"start:{i}", f"end:{i}")
    ]


@pytest.mark.asyncio
async def test_at_most_one_unit_active(queue):
    active = 0
    peak = 0

    async def unit():
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.001)
        active -= 1

    await asyncio.gather(*(queue.submit(unit) for _ in range(10)))
    assert peak == 1
    assert queue.completed == 10


@pytest.mark.asyncio
async def test_failure_rejects_only_its_own_future(queue):
    events: list[str] = []

    async def broken():
        events.append("broken")
        raise ValueError("engine said no")

    first = queue.submit(broken)
    second = queue.submit(_recording_unit(events, "next"))

    with pytest.raises(ValueError, match="engine said no"):
        await first
    assert await second == "next"
    assert events == ["broken", "start:next", "end:next"]
    assert queue.failed == 1
    assert queue.completed == 1


@pytest.mark.asyncio
async def test_worker_survives_many_failures(queue):
    async def broken():
        raise RuntimeError("x")

    async def ok():
        return "ok"

    failures = [queue.submit(broken) for _ in range(3)]
    last = queue.submit(ok)
    outcomes = await asyncio.gather(*failures, return_exceptions=True)
    assert all(isinstance(o, RuntimeError) for o in outcomes)
    assert await last == "ok"
    assert queue.running


@pytest.mark.asyncio
async def test_unit_cancelling_itself_does_not_stop_the_worker(queue):
    async def gives_up():
        raise asyncio.CancelledError()

    async def ok():
        return 42

    first = queue.submit(gives_up)
    second = queue.submit(ok)
    assert await second == 42
    assert first.cancelled()
    assert queue.running


@pytest.mark.asyncio
async def test_abandoned_caller_does_not_cancel_unit(queue):
    ran = asyncio.Event()

    async def unit():
        await asyncio.sleep(0)
        ran.set()
        return "done"

    future = queue.submit(unit)
    future.cancel()
    await queue.join()
    assert ran.is_set()
    assert queue.completed == 1


@pytest.mark.asyncio
async def test_depth_and_busy_reflect_backlog(queue):
    gate = asyncio.Event()

    async def blocked():
        await gate.wait()

    async def quick():
        return None

    assert queue.depth == 0
    assert not queue.busy
    queue.submit(blocked)
    queue.submit(quick)
    queue.submit(quick)
    await asyncio.sleep(0)
    assert queue.busy
    assert queue.depth == 2
    gate.set()
    await queue.join()
    assert queue.depth == 0
    assert not queue.busy


@pytest.mark.asyncio
async def test_join_waits_for_all_submitted_units(queue):
    done: list[int] = []

    def unit_for(i: int):
        async def unit():
            await asyncio.sleep(0)
            done.append(i)
        return unit

    for i in range(4):
        queue.submit(unit_for(i))
    await queue.join()
    assert done == [0, 1, 2, 3]


@pytest.mark.asyncio
async def test_worker_starts_lazily():
    q = SerialExecutionQueue()
    assert not q.running

    async def unit():
        return 1

    assert await q.submit(unit) == 1
    assert q.running
    await q.aclose()


@pytest.mark.asyncio
async def test_aclose_cancels_running_and_pending_units():
    q = SerialExecutionQueue()
    gate = asyncio.Event()

    async def blocked():
        await gate.wait()

    running = q.submit(blocked)
    pending = q.submit(blocked)
    await asyncio.sleep(0)
    await q.aclose()

    assert running.cancelled()
    assert pending.cancelled()
    assert q.closed
    assert not q.running


@pytest.mark.asyncio
async def test_submit_after_close_is_refused():
    q = SerialExecutionQueue(name="closed")
    await q.aclose()

    async def unit():
        return None

    with pytest.raises(RuntimeError, match="closed"):
        q.submit(unit)
