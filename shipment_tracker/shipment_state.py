"""
Shipment lifecycle state machine. Valid transitions enforce business rules.
"""
from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType

from shipment_tracker.errors import Failure, FailureKind


class ShipmentStatus(str, Enum):
    CREATED = "Created"
    PICKED_UP = "PickedUp"
    IN_TRANSIT = "InTransit"
    ARRIVED_AT_FACILITY = "ArrivedAtFacility"
    OUT_FOR_DELIVERY = "OutForDelivery"
    DELIVERED = "Delivered"
    DELAYED = "Delayed"
    EXCEPTION = "Exception"


INITIAL_STATUS = ShipmentStatus.CREATED
TERMINAL_STATUS = ShipmentStatus.DELIVERED

# Current status -> allowed next statuses
VALID_TRANSITIONS: Mapping[ShipmentStatus, frozenset[ShipmentStatus]] = MappingProxyType({
    ShipmentStatus.CREATED: frozenset({ShipmentStatus.PICKED_UP}),
    ShipmentStatus.PICKED_UP: frozenset({ShipmentStatus.IN_TRANSIT}),
    ShipmentStatus.IN_TRANSIT: frozenset({
        ShipmentStatus.ARRIVED_AT_FACILITY,
        ShipmentStatus.DELAYED,
        ShipmentStatus.EXCEPTION,
    }),
    ShipmentStatus.ARRIVED_AT_FACILITY: frozenset({
        ShipmentStatus.OUT_FOR_DELIVERY,
        ShipmentStatus.DELAYED,
        ShipmentStatus.EXCEPTION,
    }),
    ShipmentStatus.OUT_FOR_DELIVERY: frozenset({
        ShipmentStatus.DELIVERED,
        ShipmentStatus.DELAYED,
        ShipmentStatus.EXCEPTION,
    }),
    ShipmentStatus.DELAYED: frozenset({ShipmentStatus.IN_TRANSIT, ShipmentStatus.OUT_FOR_DELIVERY}),
    ShipmentStatus.EXCEPTION: frozenset({ShipmentStatus.IN_TRANSIT}),
    ShipmentStatus.DELIVERED: frozenset(),  # terminal
})


def _rejection(kind: FailureKind, current: ShipmentStatus, requested: ShipmentStatus, reason: str) -> Failure:
    return Failure(
        kind=kind,
        message=f"Cannot transition from {current.value} to {requested.value}. {reason}",
        current_status=current.value,
        requested_status=requested.value,
    )


def validate_transition(
    current: ShipmentStatus,
    requested: ShipmentStatus,
    transitions: Mapping[ShipmentStatus, frozenset[ShipmentStatus]] = VALID_TRANSITIONS,
) -> Failure | None:
    """None if `requested` may follow `current`, otherwise the Failure describing why not."""
    if current == TERMINAL_STATUS:
        return _rejection(
            FailureKind.TERMINAL_STATE, current, requested,
            f"{TERMINAL_STATUS.value} is a terminal state. No further updates are allowed.",
        )
    if current == requested:
        return _rejection(
            FailureKind.NO_OP_TRANSITION, current, requested,
            "Status is already set to this value.",
        )
    if current not in transitions:
        return _rejection(
            FailureKind.UNRECOGNIZED_STATE, current, requested,
            f"Current status {current.value} is not recognized.",
        )
    if requested not in transitions[current]:
        return _rejection(
            FailureKind.DISALLOWED_TRANSITION, current, requested,
            "This transition is not allowed in the shipment lifecycle.",
        )
    return None


def allowed_transitions(current: ShipmentStatus) -> frozenset[ShipmentStatus]:
    return VALID_TRANSITIONS.get(current, frozenset())
