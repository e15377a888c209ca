import random
import string
from datetime import time
from typing import Optional

from sqlmodel import Session

from carpool import crud
from carpool.models.rider_models import Rider, RiderCreate
from carpool.models.vehicle_models import Vehicle, VehicleCreate


def random_lower_string() -> str:
    return "".join(random.choices(string.ascii_lowercase, k=32))


def random_registration() -> str:
    return "".join(random.choices(string.ascii_uppercase + string.digits, k=8))


def make_rider(
    name: str,
    rider_id: Optional[int] = None,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    pickup: Optional[time] = None,
    dropoff: Optional[time] = None,
    group_name: Optional[str] = None,
    preferences: Optional[str] = None,
) -> Rider:
    """Unsaved rider for service-level tests."""
    return Rider(
        id=rider_id,
        name=name,
        pickup_address=f"{name} pickup",
        dropoff_address=f"{name} dropoff",
        latitude=latitude,
        longitude=longitude,
        pickup_time=pickup,
        dropoff_time=dropoff,
        group_name=group_name,
        preferences=preferences,
    )


def make_vehicle(
    capacity: int,
    vehicle_id: Optional[int] = 1,
    available: bool = True,
    available_from: Optional[time] = None,
    available_to: Optional[time] = None,
) -> Vehicle:
    return Vehicle(
        id=vehicle_id,
        registration=random_registration(),
        capacity=capacity,
        available=available,
        available_from=available_from,
        available_to=available_to,
    )


def line_of_riders(count: int) -> list[Rider]:
    """Riders spaced 0.01 degrees apart along one meridian."""
    return [
        make_rider(f"Rider {i}", rider_id=i + 1, latitude=48.85 + 0.01 * i, longitude=2.35)
        for i in range(count)
    ]


def create_random_rider(db: Session, **overrides) -> Rider:
    payload = {
        "name": random_lower_string()[:12],
        "pickup_address": "1 Main Street",
        "dropoff_address": "2 Office Park",
        "latitude": 48.85 + random.random() * 0.1,
        "longitude": 2.35 + random.random() * 0.1,
    }
    payload.update(overrides)
    return crud.create_rider(session=db, rider_create=RiderCreate(**payload))


def create_random_vehicle(db: Session, capacity: int = 4, **overrides) -> Vehicle:
    payload = {"registration": random_registration(), "capacity": capacity}
    payload.update(overrides)
    return crud.create_vehicle(session=db, vehicle_create=VehicleCreate(**payload))
