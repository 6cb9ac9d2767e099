"""
Shipment aggregate and its milestones. Both are immutable: an update produces a new
Shipment snapshot, so a rejected or interrupted update can never leave half-applied state.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime

from shipment_tracker.shipment_state import INITIAL_STATUS, ShipmentStatus


@dataclass(frozen=True)
class Milestone:
    status: ShipmentStatus
    location: str
    timestamp: datetime


@dataclass(frozen=True)
class Shipment:
    tracking_id: str
    origin: str
    destination: str
    estimated_delivery_date: datetime
    current_status: ShipmentStatus
    milestones: tuple[Milestone, ...] = field(default_factory=tuple)

    @classmethod
    def new(cls, tracking_id: str, origin: str, destination: str, estimated_delivery_date: datetime, now: datetime) -> "Shipment":
        first = Milestone(status=INITIAL_STATUS, location=origin, timestamp=now)
        return cls(
            tracking_id=tracking_id,
            origin=origin,
            destination=destination,
            estimated_delivery_date=estimated_delivery_date,
            current_status=INITIAL_STATUS,
            milestones=(first,),
        )

    @property
    def last_milestone(self) -> Milestone:
        return self.milestones[-1]

    def with_milestone(self, status: ShipmentStatus, location: str, now: datetime) -> "Shipment":
        """Copy with one more milestone appended and current_status moved to it."""
        # keep timestamps non-decreasing even if the clock steps back
        timestamp = max(now, self.last_milestone.timestamp)
        milestone = Milestone(status=status, location=location, timestamp=timestamp)
        return replace(self, current_status=status, milestones=self.milestones + (milestone,))
