"""
Pickup-order heuristics for a single vehicle.

Both strategies expose `optimize(riders, vehicle) -> Solution` and are picked
by `Algorithm` through `build_heuristic`:

- NearestNeighborHeuristic: greedy construction, O(n^2).
- SimulatedAnnealingHeuristic: randomized local search (swap / 2-opt moves)
  with Metropolis acceptance and geometric cooling.

Neither keeps state between calls. All randomness comes from the injected
`random.Random` instances so a seeded run is reproducible.
"""

import logging
import math
import random
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Sequence

from carpool.models.optimization_models import Algorithm, AnnealingParams, InitialSolution
from carpool.models.rider_models import Rider
from carpool.models.vehicle_models import Vehicle
from carpool.services.distance import DEFAULT_SPEED_KMH, GeoDistance, travel_minutes
from carpool.services.errors import CapacityExceeded
from carpool.services.solution import (
    DEFAULT_WEIGHT_DISTANCE,
    DEFAULT_WEIGHT_DURATION,
    Solution,
)

logger = logging.getLogger(__name__)


# ----------------------------
# Shared pieces
# ----------------------------
class RouteEvaluator:
    """Recomputes distance, duration and cost of a solution in place."""

    def __init__(
        self,
        distance: Optional[GeoDistance] = None,
        speed_kmh: float = DEFAULT_SPEED_KMH,
        weight_distance: float = DEFAULT_WEIGHT_DISTANCE,
        weight_duration: float = DEFAULT_WEIGHT_DURATION,
    ):
        self.distance = distance or GeoDistance()
        self.speed_kmh = speed_kmh
        self.weight_distance = weight_distance
        self.weight_duration = weight_duration

    def evaluate(self, solution: Solution) -> Solution:
        riders = solution.riders
        total = 0.0
        for a, b in zip(riders[:-1], riders[1:]):
            total += self.distance.between(a, b)
        solution.total_distance_km = total
        solution.total_duration_minutes = travel_minutes(total, self.speed_kmh)
        solution.compute_cost(self.weight_distance, self.weight_duration)
        return solution


def check_capacity(riders: Sequence[Rider], vehicle: Vehicle) -> None:
    if len(riders) > vehicle.capacity:
        logger.error(
            f"Rider count ({len(riders)}) exceeds capacity of vehicle {vehicle.id} ({vehicle.capacity})"
        )
        raise CapacityExceeded(len(riders), vehicle.capacity)


class RouteHeuristic(Protocol):
    name: str

    def optimize(self, riders: Sequence[Rider], vehicle: Vehicle) -> Solution: ...


# ----------------------------
# Construction: nearest neighbor
# ----------------------------
class NearestNeighborHeuristic:
    name = "Nearest Neighbor"

    def __init__(self, evaluator: Optional[RouteEvaluator] = None):
        self.evaluator = evaluator or RouteEvaluator()

    def optimize(self, riders: Sequence[Rider], vehicle: Vehicle) -> Solution:
        if not riders:
            logger.warning("Empty rider list, returning an empty solution")
            return Solution()
        check_capacity(riders, vehicle)

        logger.info(f"Nearest neighbor ordering for {len(riders)} riders")
        solution = Solution.create(self.order(riders))
        self.evaluator.evaluate(solution)
        logger.info(f"Nearest neighbor result: {solution}")
        return solution

    def order(self, riders: Sequence[Rider]) -> List[Rider]:
        """Greedy walk from riders[0]; ties go to the earliest rider in input order."""
        remaining = list(riders[1:])
        current = riders[0]
        ordered = [current]
        while remaining:
            best_idx = 0
            best_dist = math.inf
            for idx, candidate in enumerate(remaining):
                dist = self.evaluator.distance.between(current, candidate)
                if dist < best_dist:
                    best_dist = dist
                    best_idx = idx
            current = remaining.pop(best_idx)
            ordered.append(current)
        return ordered


# ----------------------------
# Improvement: simulated annealing
# ----------------------------
@dataclass
class AnnealingOutcome:
    best: Solution
    initial: Solution
    iterations: int
    final_temperature: float
    stop_reason: str


class SimulatedAnnealingHeuristic:
    name = "Simulated Annealing"

    def __init__(
        self,
        evaluator: Optional[RouteEvaluator] = None,
        params: Optional[AnnealingParams] = None,
        rng: Optional[random.Random] = None,
        should_stop: Optional[Callable[[], bool]] = None,
    ):
        self.evaluator = evaluator or RouteEvaluator()
        self.params = params or AnnealingParams()
        self.rng = rng or random.Random()
        self.should_stop = should_stop

    def optimize(self, riders: Sequence[Rider], vehicle: Vehicle) -> Solution:
        if not riders:
            logger.warning("Empty rider list, returning an empty solution")
            return Solution()
        return self.run(riders, vehicle).best

    def run(self, riders: Sequence[Rider], vehicle: Vehicle) -> AnnealingOutcome:
        check_capacity(riders, vehicle)
        p = self.params
        logger.info(
            f"Simulated annealing for {len(riders)} riders "
            f"(T0={p.initial_temperature}, alpha={p.cooling_rate}, iterations={p.max_iterations})"
        )
        started = time.monotonic()
        deadline = started + p.time_limit_seconds if p.time_limit_seconds else None

        current = self.evaluator.evaluate(self._initial_solution(riders))
        initial = current.clone()
        best = current.clone()

        temperature = p.initial_temperature
        stale = 0
        iteration = 0
        stop_reason = "exhausted"
        while iteration < p.max_iterations and temperature > p.min_temperature:
            if self._interrupted(deadline):
                stop_reason = "interrupted"
                break

            neighbor = self.evaluator.evaluate(self._neighbor(current))
            delta = neighbor.cost - current.cost

            if delta < 0:
                current = neighbor
                stale = 0
                if current.cost < best.cost:
                    best = current.clone()
                    logger.debug(f"New best solution: {best}")
            else:
                if self.rng.random() < math.exp(-delta / temperature):
                    current = neighbor
                stale += 1

            temperature *= p.cooling_rate

            if iteration % 100 == 0:
                logger.debug(
                    f"Iteration {iteration}/{p.max_iterations}: T={temperature:.2f}, "
                    f"current={current.cost:.2f}, best={best.cost:.2f}"
                )
            iteration += 1

            if stale > p.no_improvement_limit:
                logger.info(f"Stopping early: no improvement for {stale} iterations")
                stop_reason = "stalled"
                break

        elapsed_ms = (time.monotonic() - started) * 1000
        logger.info(f"Simulated annealing finished in {elapsed_ms:.0f} ms after {iteration} iterations: {best}")
        return AnnealingOutcome(
            best=best,
            initial=initial,
            iterations=iteration,
            final_temperature=temperature,
            stop_reason=stop_reason,
        )

    def _initial_solution(self, riders: Sequence[Rider]) -> Solution:
        if self.params.initial_solution == InitialSolution.CONSTRUCTION:
            return Solution.create(NearestNeighborHeuristic(self.evaluator).order(riders))
        order = list(riders)
        self.rng.shuffle(order)
        return Solution.create(order)

    def _neighbor(self, solution: Solution) -> Solution:
        neighbor = solution.clone()
        n = len(neighbor)
        if n < 2:
            return neighbor
        i = self.rng.randrange(n)
        j = self.rng.randrange(n)
        if self.rng.random() < 0.5:
            neighbor.swap(i, j)
        else:
            neighbor.reverse_segment(min(i, j), max(i, j))
        return neighbor

    def _interrupted(self, deadline: Optional[float]) -> bool:
        if deadline is not None and time.monotonic() >= deadline:
            logger.warning("Simulated annealing hit its time limit")
            return True
        if self.should_stop is not None and self.should_stop():
            logger.warning("Simulated annealing cancelled by caller")
            return True
        return False


# ----------------------------
# Strategy selection
# ----------------------------
def build_heuristic(
    algorithm: Algorithm,
    evaluator: Optional[RouteEvaluator] = None,
    params: Optional[AnnealingParams] = None,
    rng: Optional[random.Random] = None,
    should_stop: Optional[Callable[[], bool]] = None,
) -> RouteHeuristic:
    evaluator = evaluator or RouteEvaluator()
    if algorithm == Algorithm.CONSTRUCTION:
        return NearestNeighborHeuristic(evaluator)
    if algorithm == Algorithm.IMPROVEMENT:
        return SimulatedAnnealingHeuristic(evaluator, params=params, rng=rng, should_stop=should_stop)
    raise ValueError(f"Unknown algorithm: {algorithm}")
