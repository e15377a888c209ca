import json
import logging
from datetime import time
from typing import TYPE_CHECKING, ClassVar, List, Optional

from pydantic import model_validator
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from .trip_models import TripRider

logger = logging.getLogger(__name__)

# Key inside the JSON preference blob that marks strict group-only travel
GROUP_PRIORITY_KEY = "priority"


# ============= RIDER MODELS =============
class RiderBase(SQLModel):
    name: str = Field(max_length=255)
    pickup_address: str = Field(max_length=500)
    dropoff_address: str = Field(max_length=500)

    # Pickup and drop-off times of day
    pickup_time: Optional[time] = None
    dropoff_time: Optional[time] = None

    # Pickup point coordinates
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    # JSON blob, e.g. {"avoid": ["stop 1"], "priority": true}
    preferences: Optional[str] = Field(default=None, max_length=1000)
    group_name: Optional[str] = Field(default=None, max_length=255, index=True)

    @model_validator(mode="after")
    def check_coordinates_pair(self) -> "RiderBase":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        return self

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def schedule_compatible(self, other: "RiderBase") -> bool:
        """True when both time windows overlap; undefined times are compatible."""
        if (
            self.pickup_time is None
            or self.dropoff_time is None
            or other.pickup_time is None
            or other.dropoff_time is None
        ):
            return True
        return not (self.dropoff_time < other.pickup_time) and not (
            other.dropoff_time < self.pickup_time
        )

    def same_group(self, other: "RiderBase") -> bool:
        return self.group_name is not None and self.group_name == other.group_name

    def wants_own_group_only(self) -> bool:
        """Read the group priority flag out of the preference blob."""
        if not self.preferences:
            return False
        try:
            data = json.loads(self.preferences)
        except json.JSONDecodeError:
            logger.warning(f"Unreadable preferences for rider {self.name!r}: {self.preferences!r}")
            return False
        if not isinstance(data, dict):
            return False
        return data.get(GROUP_PRIORITY_KEY) is True


class RiderCreate(RiderBase):
    pass


class Rider(RiderBase, table=True):
    __tablename__: ClassVar[str] = "riders"

    id: Optional[int] = Field(default=None, primary_key=True)

    trip_links: List["TripRider"] = Relationship(
        back_populates="rider",
        sa_relationship_kwargs={"cascade": "all, delete"},
    )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Rider):
            return NotImplemented
        if self.id is None or other.id is None:
            return self is other
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id) if self.id is not None else id(self)

    def __repr__(self) -> str:
        return f"Rider(id={self.id}, name={self.name!r})"


class RiderPublic(RiderBase):
    id: int


class RidersPublic(SQLModel):
    data: list[RiderPublic]
    count: int
