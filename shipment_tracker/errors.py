"""
Failure taxonomy for the shipment core.
Store and code generator raise the exceptions below; ShipmentService turns them into
Failure values so callers branch on `Result.failure.kind` instead of exception types.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class FailureKind(str, Enum):
    NOT_FOUND = "not_found"
    TERMINAL_STATE = "terminal_state"
    NO_OP_TRANSITION = "no_op_transition"
    DISALLOWED_TRANSITION = "disallowed_transition"
    UNRECOGNIZED_STATE = "unrecognized_state"
    DUPLICATE_KEY = "duplicate_key"
    EXHAUSTED_ATTEMPTS = "exhausted_attempts"


TRANSITION_FAILURES = frozenset({
    FailureKind.TERMINAL_STATE,
    FailureKind.NO_OP_TRANSITION,
    FailureKind.DISALLOWED_TRANSITION,
    FailureKind.UNRECOGNIZED_STATE,
})


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str
    current_status: str | None = None
    requested_status: str | None = None

    @property
    def is_invalid_transition(self) -> bool:
        return self.kind in TRANSITION_FAILURES


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a Failure, never both."""
    value: T | None = None
    failure: Failure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, failure: Failure) -> "Result[T]":
        return cls(failure=failure)


class ShipmentTrackerError(Exception):
    """Base for errors raised inside the core before they become Failures."""
    kind: FailureKind

    def to_failure(self) -> Failure:
        return Failure(kind=self.kind, message=str(self))


class ShipmentNotFoundError(ShipmentTrackerError):
    kind = FailureKind.NOT_FOUND

    def __init__(self, tracking_id: str):
        self.tracking_id = tracking_id
        super().__init__(f"Shipment not found: {tracking_id}")


class DuplicateTrackingIdError(ShipmentTrackerError):
    kind = FailureKind.DUPLICATE_KEY

    def __init__(self, tracking_id: str):
        self.tracking_id = tracking_id
        super().__init__(f"Tracking id already assigned: {tracking_id}")


class TrackingCodeExhaustedError(ShipmentTrackerError):
    kind = FailureKind.EXHAUSTED_ATTEMPTS

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not generate an unused tracking code after {attempts} attempts")
