import logging
from typing import List, Optional

from carpool.models.conflict_models import Conflict, ConflictType
from carpool.models.trip_models import TripPlan

logger = logging.getLogger(__name__)


class ConflictService:
    """
    Rule-based feasibility checks on a trip.

    Capacity and availability conflicts block a trip, schedule and preference
    conflicts are advisory. A trip without a vehicle yields no conflicts; it
    could not be checked, which is not the same as being clean.
    """

    def detect(self, trip: TripPlan) -> List[Conflict]:
        conflicts: List[Conflict] = []

        if trip is None or trip.vehicle is None:
            logger.error("Cannot check a trip without a vehicle")
            return conflicts

        logger.info(f"Detecting conflicts for trip {trip.id}")

        capacity_conflict = self._check_capacity(trip)
        if capacity_conflict is not None:
            conflicts.append(capacity_conflict)

        availability_conflict = self._check_availability(trip)
        if availability_conflict is not None:
            conflicts.append(availability_conflict)

        conflicts.extend(self._check_schedules(trip))
        conflicts.extend(self._check_preferences(trip))

        logger.info(f"{len(conflicts)} conflict(s) detected for trip {trip.id}")
        return conflicts

    def is_valid(self, trip: TripPlan) -> bool:
        return not any(c.type.blocking for c in self.detect(trip))

    def summarize(self, conflicts: List[Conflict]) -> str:
        if not conflicts:
            return "No conflicts detected. The trip is valid."
        lines = [f"{len(conflicts)} conflict(s) detected:", ""]
        for idx, conflict in enumerate(conflicts, start=1):
            lines.append(f"{idx}. [{conflict.type.label}] {conflict.message}")
        return "\n".join(lines)

    # -------------------------
    # Individual rules
    # -------------------------
    def _check_capacity(self, trip: TripPlan) -> Optional[Conflict]:
        vehicle = trip.vehicle
        passengers = len(trip.riders)
        if passengers <= vehicle.capacity:
            return None

        conflict = Conflict(
            type=ConflictType.CAPACITY,
            message=f"Vehicle capacity exceeded: {passengers} passengers for {vehicle.capacity} seats",
            details=(
                f"Vehicle {vehicle.registration} (capacity: {vehicle.capacity}), "
                f"passengers: {passengers}, overflow: {passengers - vehicle.capacity}"
            ),
            trip_id=trip.id,
            vehicle_id=vehicle.id,
        )
        logger.warning(f"Capacity conflict: {conflict.message}")
        return conflict

    def _check_availability(self, trip: TripPlan) -> Optional[Conflict]:
        vehicle = trip.vehicle
        if not vehicle.available:
            conflict = Conflict(
                type=ConflictType.AVAILABILITY,
                message=f"Vehicle {vehicle.registration} is not available",
                trip_id=trip.id,
                vehicle_id=vehicle.id,
            )
            logger.warning(f"Availability conflict: {conflict.message}")
            return conflict

        if not vehicle.has_window:
            return None

        # Stops at the first rider outside the window
        for rider in trip.riders:
            if rider.pickup_time is None or vehicle.available_at(rider.pickup_time):
                continue
            conflict = Conflict(
                type=ConflictType.AVAILABILITY,
                message=(
                    f"Vehicle {vehicle.registration} is not available at "
                    f"{rider.pickup_time.strftime('%H:%M')} for rider {rider.name}"
                ),
                details=(
                    f"Window {vehicle.available_from.strftime('%H:%M')}-"
                    f"{vehicle.available_to.strftime('%H:%M')}"
                ),
                trip_id=trip.id,
                vehicle_id=vehicle.id,
                rider_id=rider.id,
            )
            logger.warning(f"Availability window conflict: {conflict.message}")
            return conflict
        return None

    def _check_schedules(self, trip: TripPlan) -> List[Conflict]:
        conflicts = []
        riders = trip.riders
        for i in range(len(riders)):
            for j in range(i + 1, len(riders)):
                first, second = riders[i], riders[j]
                if first.schedule_compatible(second):
                    continue
                conflict = Conflict(
                    type=ConflictType.SCHEDULE,
                    message=f"Schedule clash between {first.name} and {second.name}",
                    details=(
                        f"{first.name}: {_fmt(first.pickup_time)}-{_fmt(first.dropoff_time)} | "
                        f"{second.name}: {_fmt(second.pickup_time)}-{_fmt(second.dropoff_time)}"
                    ),
                    trip_id=trip.id,
                )
                logger.warning(f"Schedule conflict: {conflict.message}")
                conflicts.append(conflict)
        return conflicts

    def _check_preferences(self, trip: TripPlan) -> List[Conflict]:
        riders = trip.riders
        for rider in riders:
            if not rider.group_name:
                continue
            members = sum(1 for other in riders if rider.same_group(other))
            # Group must be present but mixed with other riders
            if not (0 < members < len(riders)):
                continue
            if not rider.wants_own_group_only():
                continue
            conflict = Conflict(
                type=ConflictType.PREFERENCE,
                message=f"Rider {rider.name} prefers to travel only with group {rider.group_name}",
                trip_id=trip.id,
                rider_id=rider.id,
            )
            logger.info(f"Preference conflict (group): {conflict.message}")
            # One preference conflict is enough
            return [conflict]
        return []


def _fmt(moment) -> str:
    return moment.strftime("%H:%M") if moment is not None else "--:--"
