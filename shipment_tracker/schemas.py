"""
Request/response bodies for the HTTP routes. Field shape is checked here so the core
only has to judge lifecycle legality and existence.
"""
from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator

from shipment_tracker.models import Milestone, Shipment
from shipment_tracker.shipment_state import ShipmentStatus

PLACE_PATTERN = r"^[a-zA-Z\s\-]*$"


def _place(description: str):
    return Field(..., min_length=2, max_length=100, pattern=PLACE_PATTERN, description=description)


class CreateShipmentBody(BaseModel):
    origin: str = _place("Where the shipment starts")
    destination: str = _place("Where the shipment is going")
    estimated_delivery_date: datetime = Field(..., description="Must be in the future")

    @field_validator("estimated_delivery_date")
    @classmethod
    def must_be_future(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        if value <= datetime.now(UTC):
            raise ValueError("Estimated Delivery Date must be in the future")
        return value


class UpdateStatusBody(BaseModel):
    status: ShipmentStatus = Field(..., description="Requested lifecycle status")
    location: str = _place("Where the status change happened")


class MilestoneOut(BaseModel):
    status: ShipmentStatus
    location: str
    timestamp: datetime

    @classmethod
    def from_milestone(cls, milestone: Milestone) -> "MilestoneOut":
        return cls(status=milestone.status, location=milestone.location, timestamp=milestone.timestamp)


class ShipmentOut(BaseModel):
    tracking_id: str
    origin: str
    destination: str
    estimated_delivery_date: datetime
    current_status: ShipmentStatus
    milestones: list[MilestoneOut]

    @classmethod
    def from_shipment(cls, shipment: Shipment) -> "ShipmentOut":
        return cls(
            tracking_id=shipment.tracking_id,
            origin=shipment.origin,
            destination=shipment.destination,
            estimated_delivery_date=shipment.estimated_delivery_date,
            current_status=shipment.current_status,
            milestones=[MilestoneOut.from_milestone(m) for m in shipment.milestones],
        )
