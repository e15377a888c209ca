from enum import Enum
from typing import List, Optional

from pydantic import field_validator
from sqlmodel import Field, SQLModel

from .trip_models import TripPublic


class Algorithm(str, Enum):
    CONSTRUCTION = "construction"
    IMPROVEMENT = "improvement"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            return _ALGORITHM_ALIASES.get(value.strip().lower())
        return None


_ALGORITHM_ALIASES = {
    "construction": Algorithm.CONSTRUCTION,
    "nearest_neighbor": Algorithm.CONSTRUCTION,
    "improvement": Algorithm.IMPROVEMENT,
    "simulated_annealing": Algorithm.IMPROVEMENT,
}


class InitialSolution(str, Enum):
    RANDOM = "random"
    CONSTRUCTION = "construction"


class AnnealingParams(SQLModel):
    initial_temperature: float = Field(default=1000.0, gt=0)
    cooling_rate: float = Field(default=0.95, gt=0, lt=1)
    max_iterations: int = Field(default=1000, ge=0)
    min_temperature: float = Field(default=1.0, gt=0)
    no_improvement_limit: int = Field(default=200, ge=0)

    initial_solution: InitialSolution = InitialSolution.RANDOM
    time_limit_seconds: Optional[float] = Field(default=None, gt=0)


# ============= REQUESTS =============
class RiderSelection(SQLModel):
    """One vehicle and a set of distinct riders to order."""

    vehicle_id: int
    rider_ids: List[int]

    @field_validator("rider_ids")
    @classmethod
    def reject_duplicate_riders(cls, v: List[int]) -> List[int]:
        if len(set(v)) != len(v):
            raise ValueError("rider_ids must not contain duplicates")
        return v


class OptimizeTripRequest(RiderSelection):
    algorithm: Algorithm = Algorithm.CONSTRUCTION
    params: Optional[AnnealingParams] = None


class CompareAlgorithmsRequest(RiderSelection):
    params: Optional[AnnealingParams] = None


class ValidateTripRequest(SQLModel):
    vehicle_id: int
    rider_ids: List[int]


# ============= RESULTS =============
class AlgorithmRun(SQLModel):
    algorithm: Algorithm
    name: str
    total_distance_km: float
    total_duration_minutes: float
    cost: float
    elapsed_ms: float
    trip: TripPublic


class AlgorithmComparison(SQLModel):
    construction: AlgorithmRun
    improvement: AlgorithmRun
    best: Algorithm
    improvement_percent: float
