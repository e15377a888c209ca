from collections.abc import Generator
from typing import Annotated

from fastapi import Depends, HTTPException
from sqlmodel import Session

from carpool import crud
from carpool.core.db import engine
from carpool.models.trip_models import TripPlan
from carpool.models.vehicle_models import Vehicle
from carpool.services.conflicts import ConflictService
from carpool.services.optimization import OptimizationService
from carpool.services.statistics import StatisticsService


def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


SessionDep = Annotated[Session, Depends(get_db)]


def get_optimization_service() -> OptimizationService:
    return OptimizationService()


OptimizationServiceDep = Annotated[OptimizationService, Depends(get_optimization_service)]


def get_conflict_service() -> ConflictService:
    return ConflictService()


ConflictServiceDep = Annotated[ConflictService, Depends(get_conflict_service)]


def get_statistics_service(conflicts: ConflictServiceDep) -> StatisticsService:
    return StatisticsService(conflicts)


StatisticsServiceDep = Annotated[StatisticsService, Depends(get_statistics_service)]


# ============= RECORD DEPENDENCIES =============

def get_vehicle_or_404(session: SessionDep, vehicle_id: int) -> Vehicle:
    vehicle = crud.get_vehicle(session=session, vehicle_id=vehicle_id)
    if not vehicle:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return vehicle


VehicleDep = Annotated[Vehicle, Depends(get_vehicle_or_404)]


def get_trip_or_404(session: SessionDep, trip_id: int) -> TripPlan:
    trip = crud.load_trip(session=session, trip_id=trip_id)
    if not trip:
        raise HTTPException(status_code=404, detail="Trip not found")
    return trip


TripDep = Annotated[TripPlan, Depends(get_trip_or_404)]
