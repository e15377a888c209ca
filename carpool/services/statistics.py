import logging
from typing import List, Optional

from sqlmodel import SQLModel

from carpool.models.trip_models import TripPlan
from carpool.services.conflicts import ConflictService

logger = logging.getLogger(__name__)

# Average passenger car emissions
CO2_KG_PER_KM = 0.12


class GlobalStatistics(SQLModel):
    total_trips: int = 0
    message: Optional[str] = None
    total_distance_km: float = 0.0
    average_distance_km: float = 0.0
    average_duration_minutes: float = 0.0
    average_occupancy_rate: float = 0.0
    optimized_trips: int = 0
    non_optimized_trips: int = 0
    total_riders: int = 0
    average_riders_per_trip: float = 0.0
    total_conflicts: int = 0
    km_saved: float = 0.0
    co2_saved_kg: float = 0.0


class StatisticsService:
    def __init__(self, conflicts: Optional[ConflictService] = None):
        self.conflicts = conflicts or ConflictService()

    def compute(self, trips: List[TripPlan]) -> GlobalStatistics:
        logger.info("Computing global statistics")
        if not trips:
            logger.warning("No trips available for statistics")
            return GlobalStatistics(message="No trips available")

        total_distance = sum(t.total_distance_km for t in trips)
        total_riders = sum(len(t.riders) for t in trips)
        optimized = sum(1 for t in trips if t.optimized)
        with_vehicle = [t for t in trips if t.vehicle is not None]
        occupancy = (
            sum(t.occupancy_rate() for t in with_vehicle) / len(with_vehicle) if with_vehicle else 0.0
        )
        km_saved = self.km_saved(trips)

        stats = GlobalStatistics(
            total_trips=len(trips),
            total_distance_km=total_distance,
            average_distance_km=total_distance / len(trips),
            average_duration_minutes=sum(t.total_duration_minutes for t in trips) / len(trips),
            average_occupancy_rate=occupancy,
            optimized_trips=optimized,
            non_optimized_trips=len(trips) - optimized,
            total_riders=total_riders,
            average_riders_per_trip=total_riders / len(trips),
            total_conflicts=sum(len(self.conflicts.detect(t)) for t in trips),
            km_saved=km_saved,
            co2_saved_kg=km_saved * CO2_KG_PER_KM,
        )
        logger.info(
            f"Statistics computed: {stats.total_trips} trips, {stats.total_distance_km:.2f} km total, "
            f"{stats.average_occupancy_rate:.1f}% occupancy"
        )
        return stats

    @staticmethod
    def km_saved(trips: List[TripPlan]) -> float:
        """Each extra rider on a shared trip is one solo drive avoided."""
        return sum(
            (len(t.riders) - 1) * t.total_distance_km for t in trips if len(t.riders) > 1
        )

    def report(self, trips: List[TripPlan]) -> str:
        stats = self.compute(trips)
        rule = "-" * 47
        lines = [
            "=" * 47,
            "   CARPOOL STATISTICS REPORT",
            "=" * 47,
            "",
            "TRIPS",
            rule,
            f"  Total trips: {stats.total_trips}",
            f"  Optimized trips: {stats.optimized_trips}",
            f"  Non-optimized trips: {stats.non_optimized_trips}",
            "",
            "DISTANCES",
            rule,
            f"  Total distance: {stats.total_distance_km:.2f} km",
            f"  Average distance: {stats.average_distance_km:.2f} km",
            f"  Kilometres saved: {stats.km_saved:.2f} km",
            "",
            "TIME",
            rule,
            f"  Average trip duration: {stats.average_duration_minutes:.0f} min",
            "",
            "RIDERS",
            rule,
            f"  Total riders: {stats.total_riders}",
            f"  Average riders per trip: {stats.average_riders_per_trip:.1f}",
            f"  Occupancy rate: {stats.average_occupancy_rate:.1f}%",
            "",
            "ENVIRONMENT",
            rule,
            f"  CO2 saved: {stats.co2_saved_kg:.2f} kg",
            "",
            "CONFLICTS",
            rule,
            f"  Conflicts detected: {stats.total_conflicts}",
            "",
            "=" * 47,
        ]
        return "\n".join(lines) + "\n"
