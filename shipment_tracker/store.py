"""
In-memory shipment store: tracking_id -> Shipment, in insertion order.
Updates go through mutate(): lock the shipment's key, load it, apply the change, commit.
The per-key lock plays the role of SELECT ... FOR UPDATE, so two updates on one shipment
can never both act on the same prior state.
"""
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from shipment_tracker.errors import DuplicateTrackingIdError, Result, ShipmentNotFoundError
from shipment_tracker.models import Shipment


class ShipmentStore:
    def __init__(self) -> None:
        # dicts keep insertion order, which is the listing order
        self._shipments: dict[str, Shipment] = {}
        self._lock = threading.RLock()
        self._key_locks: dict[str, threading.Lock] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._shipments)

    @contextmanager
    def exclusive(self) -> Iterator["ShipmentStore"]:
        """Hold the store-wide lock, e.g. to check a key is unused and insert it as one step."""
        with self._lock:
            yield self

    def insert(self, shipment: Shipment) -> None:
        with self._lock:
            if shipment.tracking_id in self._shipments:
                raise DuplicateTrackingIdError(shipment.tracking_id)
            self._shipments[shipment.tracking_id] = shipment

    def get(self, tracking_id: str) -> Shipment:
        with self._lock:
            try:
                return self._shipments[tracking_id]
            except KeyError:
                raise ShipmentNotFoundError(tracking_id) from None

    def contains(self, tracking_id: str) -> bool:
        with self._lock:
            return tracking_id in self._shipments

    def list(self) -> list[Shipment]:
        with self._lock:
            return list(self._shipments.values())

    def _acquire_key_lock(self, tracking_id: str) -> threading.Lock:
        """Acquire the lock registered for tracking_id, retrying if clear() dropped it meanwhile."""
        while True:
            with self._lock:
                lock = self._key_locks.get(tracking_id)
                if lock is None:
                    lock = self._key_locks[tracking_id] = threading.Lock()
            lock.acquire()
            with self._lock:
                if self._key_locks.get(tracking_id) is lock:
                    return lock
            lock.release()

    def mutate(self, tracking_id: str, fn: Callable[[Shipment], Result[Shipment]]) -> Result[Shipment]:
        """
        Apply fn to the current shipment under that shipment's lock.
        The returned snapshot is committed only when the result is ok and the stored
        shipment is still the one fn was given; a failed result leaves it untouched.
        Raises ShipmentNotFoundError if absent, or if it was cleared while fn ran.
        """
        if not self.contains(tracking_id):
            raise ShipmentNotFoundError(tracking_id)
        lock = self._acquire_key_lock(tracking_id)
        try:
            current = self.get(tracking_id)
            result = fn(current)
            if result.ok:
                with self._lock:
                    if self._shipments.get(tracking_id) is not current:
                        raise ShipmentNotFoundError(tracking_id)
                    self._shipments[tracking_id] = result.value
            return result
        finally:
            lock.release()

    def clear(self) -> None:
        with self._lock:
            self._shipments.clear()
            # a held lock stays registered until its mutate finishes
            self._key_locks = {k: lock for k, lock in self._key_locks.items() if lock.locked()}
