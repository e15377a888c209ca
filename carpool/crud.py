from datetime import datetime
from typing import List, Optional

from sqlmodel import Session, col, func, select

from carpool.models.rider_models import Rider, RiderCreate
from carpool.models.trip_models import Trip, TripPlan, TripRider
from carpool.models.vehicle_models import Vehicle, VehicleCreate


# ============= RIDER CRUD =============
def create_rider(*, session: Session, rider_create: RiderCreate) -> Rider:
    db_rider = Rider.model_validate(rider_create)
    session.add(db_rider)
    session.commit()
    session.refresh(db_rider)
    return db_rider


def get_rider(*, session: Session, rider_id: int) -> Optional[Rider]:
    return session.get(Rider, rider_id)


def get_riders(
    *,
    session: Session,
    skip: int = 0,
    limit: int = 100,
    group_name: Optional[str] = None,
) -> tuple[list[Rider], int]:
    """Riders ordered by name, optionally restricted to one group."""
    base_query = select(Rider)
    count_query = select(func.count()).select_from(Rider)
    if group_name:
        base_query = base_query.where(Rider.group_name == group_name)
        count_query = count_query.where(Rider.group_name == group_name)

    riders = session.exec(base_query.order_by(Rider.name).offset(skip).limit(limit)).all()
    count = session.exec(count_query).one()
    return list(riders), count


def delete_rider(*, session: Session, rider_id: int) -> bool:
    rider = session.get(Rider, rider_id)
    if not rider:
        return False
    session.delete(rider)
    session.commit()
    return True


# ============= VEHICLE CRUD =============
def create_vehicle(*, session: Session, vehicle_create: VehicleCreate) -> Vehicle:
    db_vehicle = Vehicle.model_validate(vehicle_create)
    session.add(db_vehicle)
    session.commit()
    session.refresh(db_vehicle)
    return db_vehicle


def get_vehicle(*, session: Session, vehicle_id: int) -> Optional[Vehicle]:
    return session.get(Vehicle, vehicle_id)


def get_vehicles(
    *,
    session: Session,
    skip: int = 0,
    limit: int = 100,
    available_only: bool = False,
) -> tuple[list[Vehicle], int]:
    base_query = select(Vehicle)
    count_query = select(func.count()).select_from(Vehicle)
    if available_only:
        base_query = base_query.where(Vehicle.available == True)  # noqa: E712
        count_query = count_query.where(Vehicle.available == True)  # noqa: E712

    vehicles = session.exec(base_query.order_by(Vehicle.id).offset(skip).limit(limit)).all()
    count = session.exec(count_query).one()
    return list(vehicles), count


def delete_vehicle(*, session: Session, vehicle_id: int) -> bool:
    vehicle = session.get(Vehicle, vehicle_id)
    if not vehicle:
        return False
    session.delete(vehicle)
    session.commit()
    return True


# ============= TRIP CRUD =============
def save_trip(*, session: Session, plan: TripPlan) -> TripPlan:
    """Insert or update a trip and its pickup order in one transaction.

    Assigns `plan.id` on first save.
    """
    if plan.id is not None:
        db_trip = session.get(Trip, plan.id)
        if db_trip is None:
            raise LookupError(f"Trip not found: {plan.id}")
        db_trip.rider_links.clear()
        session.flush()
        db_trip.updated_at = datetime.utcnow()
    else:
        db_trip = Trip()

    db_trip.vehicle_id = plan.vehicle_id
    db_trip.total_distance_km = plan.total_distance_km
    db_trip.total_duration_minutes = plan.total_duration_minutes
    db_trip.route_polyline = plan.route_polyline
    db_trip.optimized = plan.optimized
    for position, rider in enumerate(plan.riders):
        db_trip.rider_links.append(TripRider(rider_id=rider.id, pickup_order=position))

    session.add(db_trip)
    session.commit()
    session.refresh(db_trip)

    plan.id = db_trip.id
    plan.created_at = db_trip.created_at
    return plan


def _plan_from_row(db_trip: Trip) -> TripPlan:
    return TripPlan(
        id=db_trip.id,
        vehicle=db_trip.vehicle,
        riders=[link.rider for link in db_trip.rider_links],
        total_distance_km=db_trip.total_distance_km,
        total_duration_minutes=db_trip.total_duration_minutes,
        optimized=db_trip.optimized,
        route_polyline=db_trip.route_polyline,
        created_at=db_trip.created_at,
    )


def load_trip(*, session: Session, trip_id: int) -> Optional[TripPlan]:
    db_trip = session.get(Trip, trip_id)
    if db_trip is None:
        return None
    return _plan_from_row(db_trip)


def get_trips(
    *,
    session: Session,
    skip: int = 0,
    limit: int = 100,
    vehicle_id: Optional[int] = None,
) -> tuple[List[TripPlan], int]:
    """Trips newest first, optionally for one vehicle."""
    base_query = select(Trip)
    count_query = select(func.count()).select_from(Trip)
    if vehicle_id is not None:
        base_query = base_query.where(Trip.vehicle_id == vehicle_id)
        count_query = count_query.where(Trip.vehicle_id == vehicle_id)

    rows = session.exec(base_query.order_by(col(Trip.id).desc()).offset(skip).limit(limit)).all()
    count = session.exec(count_query).one()
    return [_plan_from_row(row) for row in rows], count


def get_all_trips(*, session: Session) -> List[TripPlan]:
    rows = session.exec(select(Trip).order_by(col(Trip.id).desc())).all()
    return [_plan_from_row(row) for row in rows]


def delete_trip(*, session: Session, trip_id: int) -> bool:
    db_trip = session.get(Trip, trip_id)
    if not db_trip:
        return False
    session.delete(db_trip)
    session.commit()
    return True
