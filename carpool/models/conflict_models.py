from enum import Enum
from typing import Optional

from sqlmodel import SQLModel


class ConflictType(str, Enum):
    CAPACITY = "capacity"
    SCHEDULE = "schedule"
    PREFERENCE = "preference"
    AVAILABILITY = "availability"

    @property
    def label(self) -> str:
        return _CONFLICT_LABELS[self]

    @property
    def blocking(self) -> bool:
        return self in (ConflictType.CAPACITY, ConflictType.AVAILABILITY)


_CONFLICT_LABELS = {
    ConflictType.CAPACITY: "Vehicle capacity exceeded",
    ConflictType.SCHEDULE: "Schedule clash",
    ConflictType.PREFERENCE: "Preference not honoured",
    ConflictType.AVAILABILITY: "Vehicle unavailable",
}


class Conflict(SQLModel):
    """A detected feasibility or preference violation on a trip. Never raised."""

    type: ConflictType
    message: str
    details: Optional[str] = None
    trip_id: Optional[int] = None
    rider_id: Optional[int] = None
    vehicle_id: Optional[int] = None


class TripValidationResult(SQLModel):
    is_valid: bool
    conflicts: list[Conflict]
    summary: str
