"""
API Routes for Trip Optimization and Validation

Request Lifecycle for POST /trips/optimize:
1. Load the vehicle and riders (404 on unknown ids)
2. Order the riders with the chosen heuristic (400 when over capacity)
3. Assemble the trip and detect conflicts (409 on blocking conflicts)
4. Persist the trip and its pickup order
5. Return the trip
"""
from typing import Any, Optional

from fastapi import APIRouter, HTTPException

from carpool import crud
from carpool.api.deps import ConflictServiceDep, OptimizationServiceDep, SessionDep, TripDep
from carpool.models import Message
from carpool.models.conflict_models import Conflict, TripValidationResult
from carpool.models.optimization_models import (
    Algorithm,
    AlgorithmComparison,
    AnnealingParams,
    CompareAlgorithmsRequest,
    OptimizeTripRequest,
    ValidateTripRequest,
)
from carpool.models.trip_models import TripPublic, TripsPublic
from carpool.services.optimization import load_riders, load_vehicle

# ============= TRIP ROUTES =============
router_trips = APIRouter(prefix="/trips", tags=["trips"])


# Specific routes first (before dynamic {id} routes)
@router_trips.post("/optimize", response_model=TripPublic)
def optimize_trip(
    *,
    session: SessionDep,
    optimizer: OptimizationServiceDep,
    request: OptimizeTripRequest,
) -> Any:
    """
    Order the given riders for one vehicle and save the resulting trip.
    """
    trip = optimizer.optimize_trip(
        session=session,
        vehicle_id=request.vehicle_id,
        rider_ids=request.rider_ids,
        algorithm=request.algorithm,
        params=request.params,
    )
    return TripPublic.from_plan(trip)


@router_trips.post("/compare", response_model=AlgorithmComparison)
def compare_algorithms(
    *,
    session: SessionDep,
    optimizer: OptimizationServiceDep,
    request: CompareAlgorithmsRequest,
) -> Any:
    """
    Run nearest neighbor and simulated annealing on the same riders. Nothing is saved.
    """
    vehicle = load_vehicle(session=session, vehicle_id=request.vehicle_id)
    riders = load_riders(session=session, rider_ids=request.rider_ids)
    return optimizer.compare_algorithms(riders, vehicle, request.params)


@router_trips.post("/validate", response_model=TripValidationResult)
def validate_trip(
    *,
    session: SessionDep,
    optimizer: OptimizationServiceDep,
    request: ValidateTripRequest,
) -> Any:
    """
    Check riders in the given pickup order against the vehicle. Nothing is saved.
    """
    return optimizer.check_trip(
        session=session,
        vehicle_id=request.vehicle_id,
        rider_ids=request.rider_ids,
    )


@router_trips.get("/", response_model=TripsPublic)
def read_trips(
    session: SessionDep,
    skip: int = 0,
    limit: int = 100,
    vehicle_id: Optional[int] = None,
) -> Any:
    trips, count = crud.get_trips(session=session, skip=skip, limit=limit, vehicle_id=vehicle_id)
    return TripsPublic(data=[TripPublic.from_plan(t) for t in trips], count=count)


@router_trips.get("/{trip_id}", response_model=TripPublic)
def read_trip(trip: TripDep) -> Any:
    return TripPublic.from_plan(trip)


@router_trips.get("/{trip_id}/conflicts", response_model=list[Conflict])
def read_trip_conflicts(trip: TripDep, conflicts: ConflictServiceDep) -> Any:
    """
    Re-run conflict detection on a saved trip.
    """
    if trip.vehicle is None:
        raise HTTPException(status_code=409, detail="Trip has no vehicle and cannot be checked")
    return conflicts.detect(trip)


@router_trips.post("/{trip_id}/reoptimize", response_model=TripPublic)
def reoptimize_trip(
    *,
    session: SessionDep,
    optimizer: OptimizationServiceDep,
    trip_id: int,
    algorithm: Algorithm = Algorithm.CONSTRUCTION,
    params: Optional[AnnealingParams] = None,
) -> Any:
    """
    Re-order the riders of a saved trip and store the new order.
    """
    trip = optimizer.reoptimize_trip(
        session=session,
        trip_id=trip_id,
        algorithm=algorithm,
        params=params,
    )
    return TripPublic.from_plan(trip)


@router_trips.delete("/{trip_id}")
def delete_trip(session: SessionDep, trip_id: int) -> Message:
    if not crud.delete_trip(session=session, trip_id=trip_id):
        raise HTTPException(status_code=404, detail="Trip not found")
    return Message(message="Trip deleted successfully")
