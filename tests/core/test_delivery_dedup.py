"""Delivery Deduplicator — tests for the bounded-lifetime admission gate.

Tests cover:
    - First delivery admitted, redelivery within the window dropped
    - Records expire after the window; a late redelivery is admitted again
    - retain() extends protection to a full window from now
    - Stale deque entries left by retain() never evict the live record
    - Held ids never expire until retain() releases them
    - Window must be strictly positive
"""

import pytest

from deckrelay.core.delivery_dedup import DeliveryDeduplicator
from deckrelay.core.domain_types import PhysicalId


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def dedup(clock):
    return DeliveryDeduplicator(window_seconds=30.0, clock=clock)


def test_first_delivery_admitted_redelivery_dropped(dedup):
    rid = PhysicalId("req-1")
    assert dedup.admit(rid) is True
    assert dedup.admit(rid) is False
    assert dedup.admit(rid) is False


def test_distinct_ids_are_independent(dedup):
    assert dedup.admit(PhysicalId("req-1")) is True
    assert dedup.admit(PhysicalId("req-2")) is True
    assert len(dedup) == 2


def test_redelivery_just_inside_window_is_dropped(dedup, clock):
    dedup.admit(PhysicalId("req-1"))
    clock.now = 29.9
    assert dedup.admit(PhysicalId("req-1")) is False


def test_record_expires_after_window(dedup, clock):
    dedup.admit(PhysicalId("req-1"))
    clock.now = 30.0
    assert "req-1" not in dedup
    assert dedup.admit(PhysicalId("req-1")) is True


def test_expired_records_are_swept(dedup, clock):
    for i in range(5):
        dedup.admit(PhysicalId(f"req-{i}"))
    clock.now = 31.0
    dedup.admit(PhysicalId("late"))
    assert len(dedup) == 1
    assert "late" in dedup


def test_retain_extends_protection_from_now(dedup, clock):
    dedup.admit(PhysicalId("slow"))
    clock.now = 20.0
    dedup.retain(PhysicalId("slow"))
    clock.now = 40.0
    # Original stamp (30.0) has passed; the retained one (50.0) still holds
    assert dedup.admit(PhysicalId("slow")) is False
    clock.now = 50.0
    assert dedup.admit(PhysicalId("slow")) is True


def test_stale_entry_does_not_evict_retained_record(dedup, clock):
    dedup.admit(PhysicalId("a"))
    clock.now = 10.0
    dedup.retain(PhysicalId("a"))
    clock.now = 35.0
    assert len(dedup) == 1
    assert "a" in dedup


def test_contains_does_not_admit(dedup):
    assert "req-1" not in dedup
    assert dedup.admit(PhysicalId("req-1")) is True


def test_window_is_configurable(clock):
    dedup = DeliveryDeduplicator(window_seconds=5.0, clock=clock)
    dedup.admit(PhysicalId("req-1"))
    clock.now = 5.0
    assert dedup.admit(PhysicalId("req-1")) is True


@pytest.mark.parametrize("window", [0, -1.0])
def test_non_positive_window_rejected(window):
    with pytest.raises(ValueError):
        DeliveryDeduplicator(window_seconds=window)


def test_held_id_outlives_the_window(dedup, clock):
    dedup.admit(PhysicalId("req-1"), hold=True)
    clock.now = 120.0
    assert "req-1" in dedup
    assert dedup.admit(PhysicalId("req-1")) is False


def test_retain_releases_hold_into_a_normal_window(dedup, clock):
    dedup.admit(PhysicalId("req-1"), hold=True)
    clock.now = 100.0
    dedup.retain(PhysicalId("req-1"))
    clock.now = 129.9
    assert dedup.admit(PhysicalId("req-1")) is False
    clock.now = 130.0
    assert dedup.admit(PhysicalId("req-1")) is True


def test_held_id_does_not_block_sweep_of_later_ids(dedup, clock):
    dedup.admit(PhysicalId("held"), hold=True)
    dedup.admit(PhysicalId("plain"))
    clock.now = 31.0
    assert len(dedup) == 1
    assert "plain" not in dedup
