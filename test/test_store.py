import threading
import time
from datetime import UTC, datetime, timedelta

import pytest

from shipment_tracker.errors import (
    DuplicateTrackingIdError,
    Failure,
    FailureKind,
    Result,
    ShipmentNotFoundError,
)
from shipment_tracker.models import Shipment
from shipment_tracker.shipment_state import ShipmentStatus, validate_transition

NOW = datetime(2026, 1, 1, tzinfo=UTC)


def _shipment(tracking_id: str) -> Shipment:
    return Shipment.new(tracking_id, "Tokyo", "Singapore", NOW + timedelta(days=7), NOW)


def test_insert_and_get(store):
    s = _shipment("DHL100001")
    store.insert(s)
    assert store.get("DHL100001") is s
    assert store.contains("DHL100001")
    assert len(store) == 1


def test_insert_duplicate_raises(store):
    store.insert(_shipment("DHL100001"))
    with pytest.raises(DuplicateTrackingIdError):
        store.insert(_shipment("DHL100001"))
    assert len(store) == 1


def test_get_missing_raises(store):
    with pytest.raises(ShipmentNotFoundError):
        store.get("DHL999999")
    assert not store.contains("DHL999999")


def test_list_keeps_insertion_order(store):
    ids = ["DHL500000", "DHL100000", "DHL900000"]
    for i in ids:
        store.insert(_shipment(i))
    assert [s.tracking_id for s in store.list()] == ids
    # restartable
    assert [s.tracking_id for s in store.list()] == ids


def test_mutate_commits_on_success(store):
    store.insert(_shipment("DHL100001"))
    result = store.mutate(
        "DHL100001",
        lambda s: Result.success(s.with_milestone(ShipmentStatus.PICKED_UP, "Tokyo Airport", NOW)),
    )
    assert result.ok
    assert store.get("DHL100001").current_status == ShipmentStatus.PICKED_UP
    assert len(store.get("DHL100001").milestones) == 2


def test_mutate_leaves_state_on_failure(store):
    original = _shipment("DHL100001")
    store.insert(original)
    failure = Failure(kind=FailureKind.DISALLOWED_TRANSITION, message="no")
    result = store.mutate("DHL100001", lambda s: Result.fail(failure))
    assert result.failure is failure
    assert store.get("DHL100001") is original


def test_mutate_missing_raises(store):
    with pytest.raises(ShipmentNotFoundError):
        store.mutate("DHL000000", lambda s: Result.success(s))


def test_mutate_after_clear_during_update(store):
    store.insert(_shipment("DHL100001"))

    def clear_then_change(s):
        store.clear()
        return Result.success(s.with_milestone(ShipmentStatus.PICKED_UP, "x", NOW))

    with pytest.raises(ShipmentNotFoundError):
        store.mutate("DHL100001", clear_then_change)
    assert len(store) == 0


def test_stale_update_does_not_overwrite_recreated_shipment(store):
    store.insert(_shipment("DHL100001"))
    replacement = Shipment.new("DHL100001", "Oslo", "Bergen", NOW + timedelta(days=3), NOW)

    def reset_and_recreate(s):
        store.clear()
        store.insert(replacement)
        return Result.success(s.with_milestone(ShipmentStatus.PICKED_UP, "Tokyo Airport", NOW))

    with pytest.raises(ShipmentNotFoundError):
        store.mutate("DHL100001", reset_and_recreate)
    assert store.get("DHL100001") is replacement
    assert store.get("DHL100001").origin == "Oslo"


def test_clear_drops_idle_key_locks(store):
    store.insert(_shipment("DHL100001"))
    store.insert(_shipment("DHL100002"))
    for tid in ("DHL100001", "DHL100002"):
        store.mutate(tid, lambda s: Result.success(s))
    assert len(store._key_locks) == 2
    store.clear()
    assert store._key_locks == {}


def test_update_waiting_across_clear_uses_fresh_lock(store):
    store.insert(_shipment("DHL100001"))
    inside = threading.Event()
    release = threading.Event()
    results = []

    def hold(s):
        inside.set()
        release.wait(timeout=5)
        return Result.success(s.with_milestone(ShipmentStatus.PICKED_UP, "Dock", NOW))

    def waiting_update():
        results.append(store.mutate(
            "DHL100001",
            lambda s: Result.success(s.with_milestone(ShipmentStatus.PICKED_UP, "Gate", NOW)),
        ))

    holder = threading.Thread(target=lambda: results.append(_mutate_or_error(store, "DHL100001", hold)))
    holder.start()
    assert inside.wait(timeout=5)
    store.clear()
    # held lock survives the clear until its update finishes
    assert "DHL100001" in store._key_locks
    replacement = Shipment.new("DHL100001", "Oslo", "Bergen", NOW + timedelta(days=3), NOW)
    store.insert(replacement)
    waiter = threading.Thread(target=waiting_update)
    waiter.start()
    release.set()
    holder.join()
    waiter.join()

    final = store.get("DHL100001")
    assert final.origin == "Oslo"
    assert [m.location for m in final.milestones] == ["Oslo", "Gate"]


def _mutate_or_error(store, tracking_id, fn):
    try:
        return store.mutate(tracking_id, fn)
    except ShipmentNotFoundError as e:
        return e


def test_clear(store):
    store.insert(_shipment("DHL100001"))
    store.insert(_shipment("DHL100002"))
    store.clear()
    assert len(store) == 0
    assert store.list() == []


def test_concurrent_same_key_updates_are_serialized(store):
    """Only one of many racing Created -> PickedUp updates may win."""
    store.insert(_shipment("DHL100001"))
    workers = 16
    barrier = threading.Barrier(workers)
    results = []
    results_lock = threading.Lock()

    def slow_pickup(s):
        rejection = validate_transition(s.current_status, ShipmentStatus.PICKED_UP)
        if rejection is not None:
            return Result.fail(rejection)
        # widen the window between check and commit
        time.sleep(0.01)
        return Result.success(s.with_milestone(ShipmentStatus.PICKED_UP, "Dock", NOW))

    def run():
        barrier.wait()
        r = store.mutate("DHL100001", slow_pickup)
        with results_lock:
            results.append(r)

    threads = [threading.Thread(target=run) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(r.ok for r in results) == 1
    assert all(r.failure.kind == FailureKind.NO_OP_TRANSITION for r in results if not r.ok)
    final = store.get("DHL100001")
    assert len(final.milestones) == 2
    assert final.current_status == final.milestones[-1].status == ShipmentStatus.PICKED_UP


def test_different_keys_do_not_block_each_other(store):
    store.insert(_shipment("DHL100001"))
    store.insert(_shipment("DHL100002"))
    inside = threading.Event()
    release = threading.Event()

    def hold(s):
        inside.set()
        release.wait(timeout=5)
        return Result.success(s)

    t = threading.Thread(target=store.mutate, args=("DHL100001", hold))
    t.start()
    assert inside.wait(timeout=5)
    # runs while DHL100001 is locked
    result = store.mutate(
        "DHL100002",
        lambda s: Result.success(s.with_milestone(ShipmentStatus.PICKED_UP, "x", NOW)),
    )
    release.set()
    t.join()
    assert result.ok
