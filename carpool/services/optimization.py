import logging
import random
import time
from typing import Callable, List, Optional, Sequence

import polyline
from sqlmodel import Session

from carpool import crud
from carpool.core.config import settings
from carpool.models.conflict_models import TripValidationResult
from carpool.models.optimization_models import (
    Algorithm,
    AlgorithmComparison,
    AlgorithmRun,
    AnnealingParams,
)
from carpool.models.rider_models import Rider
from carpool.models.trip_models import TripPlan, TripPublic
from carpool.models.vehicle_models import Vehicle
from carpool.services.conflicts import ConflictService
from carpool.services.distance import GeoDistance
from carpool.services.errors import BlockingConflicts, RecordNotFound, TripWithoutVehicle
from carpool.services.heuristics import RouteEvaluator, build_heuristic
from carpool.services.solution import Solution

logger = logging.getLogger(__name__)


class OptimizationService:
    """Entry point used by the trip routes.

    - `optimize`: pure ordering of already-loaded riders for one vehicle.
    - `optimize_trip` / `reoptimize_trip`: load, order, validate and persist.
    - `compare_algorithms`: run both heuristics side by side.
    """

    def __init__(
        self,
        distance: Optional[GeoDistance] = None,
        rng: Optional[random.Random] = None,
        conflicts: Optional[ConflictService] = None,
        should_stop: Optional[Callable[[], bool]] = None,
    ):
        self.rng = rng or random.Random()
        self.evaluator = RouteEvaluator(
            distance=distance or GeoDistance(self.rng),
            speed_kmh=settings.AVERAGE_SPEED_KMH,
            weight_distance=settings.COST_WEIGHT_DISTANCE,
            weight_duration=settings.COST_WEIGHT_DURATION,
        )
        self.conflicts = conflicts or ConflictService()
        self.should_stop = should_stop

    # ----------------------------
    # Core call
    # ----------------------------
    def optimize(
        self,
        riders: Sequence[Rider],
        vehicle: Vehicle,
        algorithm: Algorithm = Algorithm.CONSTRUCTION,
        params: Optional[AnnealingParams] = None,
    ) -> Solution:
        heuristic = build_heuristic(
            algorithm,
            evaluator=self.evaluator,
            params=self._annealing_params(params),
            rng=self.rng,
            should_stop=self.should_stop,
        )
        return heuristic.optimize(riders, vehicle)

    def build_trip(self, solution: Solution, vehicle: Vehicle, optimized: bool = True) -> TripPlan:
        return TripPlan(
            vehicle=vehicle,
            riders=list(solution.riders),
            total_distance_km=solution.total_distance_km,
            total_duration_minutes=solution.total_duration_minutes,
            optimized=optimized,
            route_polyline=encode_route(solution.riders),
        )

    # ----------------------------
    # Persistence-backed flows
    # ----------------------------
    def optimize_trip(
        self,
        *,
        session: Session,
        vehicle_id: int,
        rider_ids: List[int],
        algorithm: Algorithm = Algorithm.CONSTRUCTION,
        params: Optional[AnnealingParams] = None,
    ) -> TripPlan:
        logger.info(
            f"Optimizing trip: vehicle {vehicle_id}, {len(rider_ids)} riders, algorithm {algorithm.value}"
        )
        vehicle = load_vehicle(session=session, vehicle_id=vehicle_id)
        riders = load_riders(session=session, rider_ids=rider_ids)

        solution = self.optimize(riders, vehicle, algorithm, params)
        trip = self.build_trip(solution, vehicle, optimized=True)
        self._ensure_valid(trip)

        saved = crud.save_trip(session=session, plan=trip)
        logger.info(
            f"Optimized trip {saved.id} saved: {saved.total_distance_km:.2f} km, "
            f"{saved.total_duration_minutes:.2f} min"
        )
        return saved

    def reoptimize_trip(
        self,
        *,
        session: Session,
        trip_id: int,
        algorithm: Algorithm = Algorithm.CONSTRUCTION,
        params: Optional[AnnealingParams] = None,
    ) -> TripPlan:
        logger.info(f"Re-optimizing trip {trip_id} with {algorithm.value}")
        trip = crud.load_trip(session=session, trip_id=trip_id)
        if trip is None:
            raise RecordNotFound("Trip", trip_id)
        if trip.vehicle is None:
            raise TripWithoutVehicle(trip_id)

        solution = self.optimize(trip.riders, trip.vehicle, algorithm, params)
        trip.riders = list(solution.riders)
        trip.total_distance_km = solution.total_distance_km
        trip.total_duration_minutes = solution.total_duration_minutes
        trip.route_polyline = encode_route(solution.riders)
        trip.optimized = True
        self._ensure_valid(trip)

        saved = crud.save_trip(session=session, plan=trip)
        logger.info(f"Trip {trip_id} re-optimized")
        return saved

    def check_trip(self, *, session: Session, vehicle_id: int, rider_ids: List[int]) -> TripValidationResult:
        """Validate riders in the given order without optimizing or saving."""
        vehicle = load_vehicle(session=session, vehicle_id=vehicle_id)
        riders = load_riders(session=session, rider_ids=rider_ids)
        trip = TripPlan(vehicle=vehicle, riders=riders, optimized=False)
        return self.validate(trip)

    def validate(self, trip: TripPlan) -> TripValidationResult:
        conflicts = self.conflicts.detect(trip)
        return TripValidationResult(
            is_valid=not any(c.type.blocking for c in conflicts),
            conflicts=conflicts,
            summary=self.conflicts.summarize(conflicts),
        )

    # ----------------------------
    # Side-by-side comparison
    # ----------------------------
    def compare_algorithms(
        self,
        riders: Sequence[Rider],
        vehicle: Vehicle,
        params: Optional[AnnealingParams] = None,
    ) -> AlgorithmComparison:
        logger.info(f"Comparing algorithms for {len(riders)} riders")
        runs = {}
        solutions = {}
        for algorithm in (Algorithm.CONSTRUCTION, Algorithm.IMPROVEMENT):
            heuristic = build_heuristic(
                algorithm,
                evaluator=self.evaluator,
                params=self._annealing_params(params),
                rng=self.rng,
                should_stop=self.should_stop,
            )
            started = time.perf_counter()
            solution = heuristic.optimize(riders, vehicle)
            elapsed_ms = (time.perf_counter() - started) * 1000
            solutions[algorithm] = solution
            runs[algorithm] = AlgorithmRun(
                algorithm=algorithm,
                name=heuristic.name,
                total_distance_km=solution.total_distance_km,
                total_duration_minutes=solution.total_duration_minutes,
                cost=solution.cost,
                elapsed_ms=elapsed_ms,
                trip=TripPublic.from_plan(self.build_trip(solution, vehicle, optimized=True)),
            )

        nn_cost = solutions[Algorithm.CONSTRUCTION].cost
        sa_cost = solutions[Algorithm.IMPROVEMENT].cost
        if nn_cost < sa_cost:
            best = Algorithm.CONSTRUCTION
            improvement = 0.0
        else:
            best = Algorithm.IMPROVEMENT
            improvement = (nn_cost - sa_cost) / nn_cost * 100 if nn_cost > 0 else 0.0

        logger.info(f"Comparison done. Best: {best.value}, improvement: {improvement:.2f}%")
        return AlgorithmComparison(
            construction=runs[Algorithm.CONSTRUCTION],
            improvement=runs[Algorithm.IMPROVEMENT],
            best=best,
            improvement_percent=improvement,
        )

    def _ensure_valid(self, trip: TripPlan) -> None:
        conflicts = self.conflicts.detect(trip)
        blocking = [c for c in conflicts if c.type.blocking]
        if blocking:
            logger.warning(f"Optimized trip has {len(blocking)} blocking conflict(s)")
            raise BlockingConflicts(conflicts)

    def _annealing_params(self, params: Optional[AnnealingParams]) -> AnnealingParams:
        params = params or AnnealingParams()
        if params.time_limit_seconds is None and settings.ANNEALING_TIME_LIMIT_SECONDS:
            params = params.model_copy(update={"time_limit_seconds": settings.ANNEALING_TIME_LIMIT_SECONDS})
        return params


# ----------------------------
# Loading helpers
# ----------------------------
def load_vehicle(*, session: Session, vehicle_id: int) -> Vehicle:
    vehicle = crud.get_vehicle(session=session, vehicle_id=vehicle_id)
    if vehicle is None:
        raise RecordNotFound("Vehicle", vehicle_id)
    return vehicle


def load_riders(*, session: Session, rider_ids: List[int]) -> List[Rider]:
    riders = []
    for rider_id in rider_ids:
        rider = crud.get_rider(session=session, rider_id=rider_id)
        if rider is None:
            raise RecordNotFound("Rider", rider_id)
        riders.append(rider)
    return riders


def encode_route(riders: Sequence[Rider]) -> Optional[str]:
    """Google-encoded polyline through the pickup points that have coordinates."""
    points = [(r.latitude, r.longitude) for r in riders if r.has_coordinates]
    if len(points) < 2:
        return None
    return polyline.encode(points)
