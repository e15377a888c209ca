from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, List, Optional

from sqlmodel import Field, Relationship, SQLModel

from .rider_models import Rider, RiderPublic
from .vehicle_models import Vehicle, VehiclePublic

# ============= TRIP TABLES =============
class TripRider(SQLModel, table=True):
    """Link row: one rider on one trip, at its pickup position."""

    __tablename__: ClassVar[str] = "trip_riders"

    trip_id: Optional[int] = Field(default=None, foreign_key="trips.id", primary_key=True)
    rider_id: Optional[int] = Field(default=None, foreign_key="riders.id", primary_key=True)
    pickup_order: int = Field(ge=0)

    trip: Optional["Trip"] = Relationship(back_populates="rider_links")
    rider: Optional[Rider] = Relationship(back_populates="trip_links")


class Trip(SQLModel, table=True):
    __tablename__: ClassVar[str] = "trips"

    id: Optional[int] = Field(default=None, primary_key=True)
    vehicle_id: Optional[int] = Field(default=None, foreign_key="vehicles.id", index=True)

    total_distance_km: float = Field(default=0.0, ge=0)
    total_duration_minutes: float = Field(default=0.0, ge=0)
    route_polyline: Optional[str] = Field(default=None)
    optimized: bool = False

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    vehicle: Optional[Vehicle] = Relationship(back_populates="trips")
    rider_links: List[TripRider] = Relationship(
        back_populates="trip",
        sa_relationship_kwargs={
            "order_by": "TripRider.pickup_order",
            "cascade": "all, delete-orphan",
        },
    )


# ============= IN-MEMORY TRIP =============
@dataclass
class TripPlan:
    """A vehicle plus riders in pickup order, as handed to validation and storage.

    `id` stays None until the trip has been saved.
    """

    vehicle: Optional[Vehicle]
    riders: List[Rider] = field(default_factory=list)
    total_distance_km: float = 0.0
    total_duration_minutes: float = 0.0
    optimized: bool = False
    route_polyline: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def vehicle_id(self) -> Optional[int]:
        return self.vehicle.id if self.vehicle is not None else None

    def occupancy_rate(self) -> float:
        """Share of seats taken, in percent."""
        if self.vehicle is None or self.vehicle.capacity == 0:
            return 0.0
        return len(self.riders) * 100.0 / self.vehicle.capacity

    def seats_left(self) -> int:
        if self.vehicle is None:
            return 0
        return self.vehicle.capacity - len(self.riders)

    def average_distance_per_rider(self) -> float:
        if not self.riders:
            return 0.0
        return self.total_distance_km / len(self.riders)

    def average_duration_per_rider(self) -> float:
        if not self.riders:
            return 0.0
        return self.total_duration_minutes / len(self.riders)


# ============= RESPONSE MODELS =============
class TripPublic(SQLModel):
    id: Optional[int]
    vehicle_id: Optional[int]
    vehicle: Optional[VehiclePublic] = None
    riders: list[RiderPublic]
    total_distance_km: float
    total_duration_minutes: float
    route_polyline: Optional[str] = None
    optimized: bool
    occupancy_rate: float
    seats_left: int
    average_distance_per_rider: float
    average_duration_per_rider: float
    created_at: Optional[datetime] = None

    @classmethod
    def from_plan(cls, plan: TripPlan) -> "TripPublic":
        return cls(
            id=plan.id,
            vehicle_id=plan.vehicle_id,
            vehicle=VehiclePublic.model_validate(plan.vehicle) if plan.vehicle is not None else None,
            riders=[RiderPublic.model_validate(r) for r in plan.riders],
            total_distance_km=round(plan.total_distance_km, 3),
            total_duration_minutes=round(plan.total_duration_minutes, 2),
            route_polyline=plan.route_polyline,
            optimized=plan.optimized,
            occupancy_rate=round(plan.occupancy_rate(), 1),
            seats_left=plan.seats_left(),
            average_distance_per_rider=round(plan.average_distance_per_rider(), 3),
            average_duration_per_rider=round(plan.average_duration_per_rider(), 2),
            created_at=plan.created_at,
        )


class TripsPublic(SQLModel):
    data: list[TripPublic]
    count: int
