"""
API Routes for Rider Management

Riders are only read by the optimizer; these routes are the way they get in.
"""
from typing import Any, Optional

from fastapi import APIRouter, HTTPException

from carpool import crud
from carpool.api.deps import SessionDep
from carpool.models import Message
from carpool.models.rider_models import RiderCreate, RiderPublic, RidersPublic

# ============= RIDER ROUTES =============
router_riders = APIRouter(prefix="/riders", tags=["riders"])


@router_riders.get("/", response_model=RidersPublic)
def read_riders(
    session: SessionDep,
    skip: int = 0,
    limit: int = 100,
    group: Optional[str] = None,
) -> Any:
    """
    Retrieve riders, optionally filtered by group.
    """
    riders, count = crud.get_riders(session=session, skip=skip, limit=limit, group_name=group)
    return RidersPublic(data=riders, count=count)


@router_riders.post("/", response_model=RiderPublic)
def create_rider(*, session: SessionDep, rider_in: RiderCreate) -> Any:
    """
    Create new rider.
    """
    return crud.create_rider(session=session, rider_create=rider_in)


@router_riders.get("/{rider_id}", response_model=RiderPublic)
def read_rider(rider_id: int, session: SessionDep) -> Any:
    """
    Get rider by ID.
    """
    rider = crud.get_rider(session=session, rider_id=rider_id)
    if not rider:
        raise HTTPException(status_code=404, detail="Rider not found")
    return rider


@router_riders.delete("/{rider_id}")
def delete_rider(rider_id: int, session: SessionDep) -> Message:
    """
    Delete rider.
    """
    if not crud.delete_rider(session=session, rider_id=rider_id):
        raise HTTPException(status_code=404, detail="Rider not found")
    return Message(message="Rider deleted successfully")
