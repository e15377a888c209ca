from datetime import time
from typing import TYPE_CHECKING, ClassVar, List, Optional

from pydantic import model_validator
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from .trip_models import Trip


# ============= VEHICLE MODELS =============
class VehicleBase(SQLModel):
    registration: str = Field(max_length=20, index=True)
    driver_name: Optional[str] = Field(default=None, max_length=255)
    capacity: int = Field(ge=0, description="Passenger seats, driver excluded")

    # Daily availability window
    available_from: Optional[time] = None
    available_to: Optional[time] = None
    available: bool = True

    @model_validator(mode="after")
    def check_window_pair(self) -> "VehicleBase":
        if (self.available_from is None) != (self.available_to is None):
            raise ValueError("available_from and available_to must be given together")
        return self

    @property
    def has_window(self) -> bool:
        return self.available_from is not None and self.available_to is not None

    def available_at(self, moment: time) -> bool:
        if not self.available:
            return False
        if not self.has_window:
            return True
        return self.available_from <= moment <= self.available_to


class VehicleCreate(VehicleBase):
    pass


class Vehicle(VehicleBase, table=True):
    __tablename__: ClassVar[str] = "vehicles"

    id: Optional[int] = Field(default=None, primary_key=True)

    trips: List["Trip"] = Relationship(back_populates="vehicle")

    def __repr__(self) -> str:
        return f"Vehicle(id={self.id}, registration={self.registration!r}, capacity={self.capacity})"


class VehiclePublic(VehicleBase):
    id: int


class VehiclesPublic(SQLModel):
    data: list[VehiclePublic]
    count: int
