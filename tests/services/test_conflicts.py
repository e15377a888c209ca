from datetime import time

from carpool.models.conflict_models import ConflictType
from carpool.models.trip_models import TripPlan
from carpool.services.conflicts import ConflictService
from tests.utils.utils import line_of_riders, make_rider, make_vehicle

PRIORITY = '{"priority": true}'


def of_type(conflicts, conflict_type):
    return [c for c in conflicts if c.type == conflict_type]


class TestCapacityRule:
    def test_overflow_gives_one_blocking_conflict(self) -> None:
        trip = TripPlan(vehicle=make_vehicle(4), riders=line_of_riders(5))
        service = ConflictService()
        conflicts = service.detect(trip)
        assert len(of_type(conflicts, ConflictType.CAPACITY)) == 1
        assert conflicts[0].vehicle_id == 1
        assert not service.is_valid(trip)

    def test_full_vehicle_is_fine(self) -> None:
        trip = TripPlan(vehicle=make_vehicle(4), riders=line_of_riders(4))
        assert ConflictService().detect(trip) == []
        assert ConflictService().is_valid(trip)


class TestAvailabilityRule:
    def test_unavailable_vehicle(self) -> None:
        trip = TripPlan(vehicle=make_vehicle(3, available=False), riders=line_of_riders(2))
        conflicts = ConflictService().detect(trip)
        assert [c.type for c in conflicts] == [ConflictType.AVAILABILITY]
        assert not ConflictService().is_valid(trip)

    def test_reports_only_first_rider_outside_window(self) -> None:
        vehicle = make_vehicle(3, available_from=time(8, 0), available_to=time(9, 0))
        riders = [
            make_rider("Early", rider_id=1, pickup=time(8, 30), dropoff=time(11, 0)),
            make_rider("Late", rider_id=2, pickup=time(9, 30), dropoff=time(11, 0)),
            make_rider("Later", rider_id=3, pickup=time(10, 0), dropoff=time(11, 0)),
        ]
        conflicts = of_type(ConflictService().detect(TripPlan(vehicle=vehicle, riders=riders)), ConflictType.AVAILABILITY)
        assert len(conflicts) == 1
        assert conflicts[0].rider_id == 2

    def test_window_bounds_are_inclusive(self) -> None:
        vehicle = make_vehicle(2, available_from=time(8, 0), available_to=time(9, 0))
        riders = [
            make_rider("Start", rider_id=1, pickup=time(8, 0), dropoff=time(9, 30)),
            make_rider("End", rider_id=2, pickup=time(9, 0), dropoff=time(9, 30)),
        ]
        assert ConflictService().detect(TripPlan(vehicle=vehicle, riders=riders)) == []


class TestScheduleRule:
    def test_every_incompatible_pair_is_reported(self) -> None:
        riders = [
            make_rider("A", rider_id=1, pickup=time(7, 0), dropoff=time(7, 30)),
            make_rider("B", rider_id=2, pickup=time(8, 0), dropoff=time(8, 30)),
            make_rider("C", rider_id=3, pickup=time(9, 0), dropoff=time(9, 30)),
        ]
        trip = TripPlan(vehicle=make_vehicle(3), riders=riders)
        service = ConflictService()
        conflicts = service.detect(trip)
        assert len(of_type(conflicts, ConflictType.SCHEDULE)) == 3
        # Schedule clashes alone do not block a trip
        assert service.is_valid(trip)

    def test_touching_windows_are_compatible(self) -> None:
        riders = [
            make_rider("A", rider_id=1, pickup=time(8, 0), dropoff=time(8, 30)),
            make_rider("B", rider_id=2, pickup=time(8, 30), dropoff=time(9, 0)),
        ]
        assert ConflictService().detect(TripPlan(vehicle=make_vehicle(2), riders=riders)) == []

    def test_missing_times_are_compatible(self) -> None:
        riders = [
            make_rider("A", rider_id=1, pickup=time(7, 0), dropoff=time(7, 30)),
            make_rider("B", rider_id=2),
        ]
        assert ConflictService().detect(TripPlan(vehicle=make_vehicle(2), riders=riders)) == []


class TestPreferenceRule:
    def test_group_only_rider_in_mixed_trip(self) -> None:
        riders = [
            make_rider("A", rider_id=1, group_name="alpha", preferences=PRIORITY),
            make_rider("B", rider_id=2),
        ]
        conflicts = ConflictService().detect(TripPlan(vehicle=make_vehicle(2), riders=riders))
        assert [c.type for c in conflicts] == [ConflictType.PREFERENCE]
        assert conflicts[0].rider_id == 1

    def test_at_most_one_preference_conflict(self) -> None:
        riders = [
            make_rider("A", rider_id=1, group_name="alpha", preferences=PRIORITY),
            make_rider("B", rider_id=2, group_name="beta", preferences=PRIORITY),
            make_rider("C", rider_id=3),
        ]
        conflicts = ConflictService().detect(TripPlan(vehicle=make_vehicle(3), riders=riders))
        assert len(of_type(conflicts, ConflictType.PREFERENCE)) == 1

    def test_whole_trip_from_one_group(self) -> None:
        riders = [
            make_rider("A", rider_id=1, group_name="alpha", preferences=PRIORITY),
            make_rider("B", rider_id=2, group_name="alpha"),
        ]
        assert ConflictService().detect(TripPlan(vehicle=make_vehicle(2), riders=riders)) == []

    def test_flag_must_be_true(self) -> None:
        for preferences in ('{"priority": "yes"}', '{"priority": false}', "not json", '["priority"]'):
            riders = [
                make_rider("A", rider_id=1, group_name="alpha", preferences=preferences),
                make_rider("B", rider_id=2),
            ]
            assert ConflictService().detect(TripPlan(vehicle=make_vehicle(2), riders=riders)) == []


class TestDetect:
    def test_trip_without_vehicle_yields_nothing(self) -> None:
        assert ConflictService().detect(TripPlan(vehicle=None, riders=line_of_riders(3))) == []

    def test_summary(self) -> None:
        service = ConflictService()
        assert service.summarize([]) == "No conflicts detected. The trip is valid."

        conflicts = service.detect(TripPlan(vehicle=make_vehicle(1, available=False), riders=line_of_riders(2)))
        summary = service.summarize(conflicts)
        lines = summary.splitlines()
        assert lines[0] == "2 conflict(s) detected:"
        assert lines[2].startswith("1. [Vehicle capacity exceeded]")
        assert lines[3].startswith("2. [Vehicle unavailable]")
