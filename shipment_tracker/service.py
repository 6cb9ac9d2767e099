"""
ShipmentService: the entry point for callers outside the core.
create: generate an unused tracking code and insert, under the store-wide lock.
update_status: validate the transition and append the milestone inside store.mutate().
Business-rule outcomes come back as Result values, never as raised exceptions.
"""
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from shipment_tracker.errors import Failure, Result, ShipmentTrackerError
from shipment_tracker.metrics import (
    shipment_status_updates_total,
    shipment_transitions_rejected_total,
    shipments_created_total,
    shipments_stored,
)
from shipment_tracker.models import Shipment
from shipment_tracker.shipment_state import ShipmentStatus, validate_transition
from shipment_tracker.store import ShipmentStore
from shipment_tracker.tracking_codes import TrackingCodeGenerator

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(UTC)


class ShipmentService:
    def __init__(
        self,
        store: ShipmentStore,
        generator: TrackingCodeGenerator | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._generator = generator or TrackingCodeGenerator()
        self._clock = clock

    def create(self, origin: str, destination: str, estimated_delivery_date: datetime) -> Result[Shipment]:
        try:
            with self._store.exclusive() as store:
                tracking_id = self._generator.generate(store.contains)
                shipment = Shipment.new(tracking_id, origin, destination, estimated_delivery_date, self._clock())
                store.insert(shipment)
                shipments_stored.set(len(store))
        except ShipmentTrackerError as e:
            logger.error("Failed to create shipment %s -> %s: %s", origin, destination, e)
            return Result.fail(e.to_failure())
        shipments_created_total.inc()
        logger.info("Created shipment tracking_id=%s (%s -> %s)", tracking_id, origin, destination)
        return Result.success(shipment)

    def get_by_tracking_id(self, tracking_id: str) -> Result[Shipment]:
        try:
            return Result.success(self._store.get(tracking_id))
        except ShipmentTrackerError as e:
            logger.warning("Lookup failed: %s", e)
            return Result.fail(e.to_failure())

    def update_status(self, tracking_id: str, new_status: ShipmentStatus, location: str) -> Result[Shipment]:
        def apply(current: Shipment) -> Result[Shipment]:
            rejection = validate_transition(current.current_status, new_status)
            if rejection is not None:
                return Result.fail(rejection)
            return Result.success(current.with_milestone(new_status, location, self._clock()))

        try:
            result = self._store.mutate(tracking_id, apply)
        except ShipmentTrackerError as e:
            logger.warning("Status update for tracking_id=%s failed: %s", tracking_id, e)
            return Result.fail(e.to_failure())

        if not result.ok:
            self._record_rejection(tracking_id, result.failure)
            return result
        shipment_status_updates_total.labels(status=new_status.value).inc()
        logger.info("tracking_id=%s -> %s at %s", tracking_id, new_status.value, location)
        return result

    def list_all(self) -> list[Shipment]:
        return self._store.list()

    def reset(self) -> None:
        self._store.clear()
        shipments_stored.set(len(self._store))
        logger.info("Shipment store cleared")

    def _record_rejection(self, tracking_id: str, failure: Failure) -> None:
        shipment_transitions_rejected_total.labels(
            reason=failure.kind.value,
            current_status=failure.current_status or "",
            requested_status=failure.requested_status or "",
        ).inc()
        logger.warning("Rejected transition for tracking_id=%s: %s", tracking_id, failure.message)
