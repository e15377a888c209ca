from typing import Any

from fastapi import APIRouter, HTTPException

from carpool import crud
from carpool.api.deps import SessionDep, VehicleDep
from carpool.models import Message
from carpool.models.vehicle_models import VehicleCreate, VehiclePublic, VehiclesPublic

# ============= VEHICLE ROUTES =============
router_vehicles = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router_vehicles.get("/", response_model=VehiclesPublic)
def read_vehicles(
    session: SessionDep,
    skip: int = 0,
    limit: int = 100,
    available_only: bool = False,
) -> Any:
    """
    Retrieve vehicles.
    """
    vehicles, count = crud.get_vehicles(
        session=session,
        skip=skip,
        limit=limit,
        available_only=available_only,
    )
    return VehiclesPublic(data=vehicles, count=count)


@router_vehicles.post("/", response_model=VehiclePublic)
def create_vehicle(*, session: SessionDep, vehicle_in: VehicleCreate) -> Any:
    """
    Create new vehicle.
    """
    return crud.create_vehicle(session=session, vehicle_create=vehicle_in)


@router_vehicles.get("/{vehicle_id}", response_model=VehiclePublic)
def read_vehicle(vehicle: VehicleDep) -> Any:
    return vehicle


@router_vehicles.delete("/{vehicle_id}")
def delete_vehicle(session: SessionDep, vehicle_id: int) -> Message:
    if not crud.delete_vehicle(session=session, vehicle_id=vehicle_id):
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return Message(message="Vehicle deleted successfully")
