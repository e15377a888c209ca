from typing import List

from carpool.models.conflict_models import Conflict


class CapacityExceeded(ValueError):
    """More riders than the vehicle has seats. Raised before any search work."""

    def __init__(self, rider_count: int, capacity: int):
        self.rider_count = rider_count
        self.capacity = capacity
        super().__init__(
            f"Rider count ({rider_count}) exceeds vehicle capacity ({capacity})"
        )


class RecordNotFound(LookupError):
    def __init__(self, kind: str, record_id: int):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found: {record_id}")


class BlockingConflicts(ValueError):
    """The assembled trip carries a capacity or availability conflict."""

    def __init__(self, conflicts: List[Conflict]):
        self.conflicts = conflicts
        super().__init__("Trip contains blocking conflicts")


class TripWithoutVehicle(ValueError):
    """A saved trip whose vehicle is gone; it can be read but not re-planned."""

    def __init__(self, trip_id: int):
        self.trip_id = trip_id
        super().__init__(f"Trip {trip_id} has no vehicle")
