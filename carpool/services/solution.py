from dataclasses import dataclass, field
from typing import List, Sequence

from carpool.models.rider_models import Rider

DEFAULT_WEIGHT_DISTANCE = 0.7
DEFAULT_WEIGHT_DURATION = 0.3


@dataclass
class Solution:
    """
    A candidate pickup order and its metrics.

    Metrics are not maintained here: after `swap` or `reverse_segment` the
    distance, duration and cost describe the previous order until the owning
    heuristic evaluates the solution again.
    """

    riders: List[Rider] = field(default_factory=list)
    total_distance_km: float = 0.0
    total_duration_minutes: float = 0.0
    cost: float = 0.0

    @classmethod
    def create(cls, riders: Sequence[Rider]) -> "Solution":
        return cls(riders=list(riders))

    def clone(self) -> "Solution":
        return Solution(
            riders=list(self.riders),
            total_distance_km=self.total_distance_km,
            total_duration_minutes=self.total_duration_minutes,
            cost=self.cost,
        )

    def __len__(self) -> int:
        return len(self.riders)

    def swap(self, i: int, j: int) -> None:
        n = len(self.riders)
        if not (0 <= i < n and 0 <= j < n):
            return
        self.riders[i], self.riders[j] = self.riders[j], self.riders[i]

    def reverse_segment(self, start: int, end: int) -> None:
        """2-opt move: reverse riders[start..end] inclusive."""
        while start < end:
            self.swap(start, end)
            start += 1
            end -= 1

    def compute_cost(
        self,
        weight_distance: float = DEFAULT_WEIGHT_DISTANCE,
        weight_duration: float = DEFAULT_WEIGHT_DURATION,
    ) -> float:
        self.cost = weight_distance * self.total_distance_km + weight_duration * self.total_duration_minutes
        return self.cost

    def rider_ids(self) -> List[int]:
        return [r.id for r in self.riders]

    def __str__(self) -> str:
        return (
            f"Solution(riders={len(self.riders)}, distance={self.total_distance_km:.2f} km, "
            f"duration={self.total_duration_minutes:.2f} min, cost={self.cost:.2f})"
        )
