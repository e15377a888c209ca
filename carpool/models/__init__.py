"""Model shortcuts for the FastAPI app."""

from sqlmodel import SQLModel

from .rider_models import (  # noqa: F401
    Rider,
    RiderCreate,
    RiderPublic,
    RidersPublic,
)
from .vehicle_models import (  # noqa: F401
    Vehicle,
    VehicleCreate,
    VehiclePublic,
    VehiclesPublic,
)
from .trip_models import (  # noqa: F401
    Trip,
    TripPlan,
    TripPublic,
    TripRider,
    TripsPublic,
)
from .conflict_models import (  # noqa: F401
    Conflict,
    ConflictType,
    TripValidationResult,
)
from .optimization_models import (  # noqa: F401
    Algorithm,
    AlgorithmComparison,
    AlgorithmRun,
    AnnealingParams,
    CompareAlgorithmsRequest,
    InitialSolution,
    OptimizeTripRequest,
    ValidateTripRequest,
)


class Message(SQLModel):
    message: str
