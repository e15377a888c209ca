import random
from datetime import time

import polyline
import pytest
from sqlmodel import Session, func, select

from carpool import crud
from carpool.core.config import settings
from carpool.models.conflict_models import ConflictType
from carpool.models.optimization_models import Algorithm, AnnealingParams, InitialSolution
from carpool.models.trip_models import Trip
from carpool.services.errors import (
    BlockingConflicts,
    CapacityExceeded,
    RecordNotFound,
    TripWithoutVehicle,
)
from carpool.services.optimization import OptimizationService, encode_route
from tests.utils.utils import (
    create_random_rider,
    create_random_vehicle,
    line_of_riders,
    make_rider,
    make_vehicle,
)


def trip_count(db: Session) -> int:
    return db.exec(select(func.count()).select_from(Trip)).one()


class TestCarpoolScenario:
    def test_chain_of_three_riders(self) -> None:
        """
        Three riders along one street, capacity 3:
        1. Nearest neighbor orders them A, B, C
        2. A and C do not overlap in time: one schedule conflict
        3. Nothing blocks the trip
        """
        vehicle = make_vehicle(3)
        a = make_rider("A", rider_id=1, latitude=48.850, longitude=2.35, pickup=time(9, 0), dropoff=time(9, 30))
        b = make_rider("B", rider_id=2, latitude=48.860, longitude=2.35, pickup=time(9, 15), dropoff=time(9, 45))
        c = make_rider("C", rider_id=3, latitude=48.870, longitude=2.35, pickup=time(9, 40), dropoff=time(10, 0))
        service = OptimizationService(rng=random.Random(1))

        # Step 1: order
        solution = service.optimize([a, c, b], vehicle, Algorithm.CONSTRUCTION)
        assert [r.name for r in solution.riders] == ["A", "B", "C"]

        # Step 2: assemble and check
        trip = service.build_trip(solution, vehicle)
        result = service.validate(trip)
        schedule = [c for c in result.conflicts if c.type == ConflictType.SCHEDULE]
        assert len(result.conflicts) == 1
        assert len(schedule) == 1
        assert "A" in schedule[0].message and "C" in schedule[0].message

        # Step 3: still valid
        assert result.is_valid

    def test_over_capacity_is_rejected(self) -> None:
        service = OptimizationService(rng=random.Random(1))
        with pytest.raises(CapacityExceeded):
            service.optimize(line_of_riders(3), make_vehicle(2), Algorithm.IMPROVEMENT)


class TestOptimizeTrip:
    def test_optimized_trip_is_saved_in_pickup_order(self, db: Session) -> None:
        vehicle = create_random_vehicle(db, capacity=4)
        far = create_random_rider(db, latitude=48.88, longitude=2.35)
        start = create_random_rider(db, latitude=48.85, longitude=2.35)
        middle = create_random_rider(db, latitude=48.86, longitude=2.35)
        service = OptimizationService(rng=random.Random(3))

        trip = service.optimize_trip(
            session=db,
            vehicle_id=vehicle.id,
            rider_ids=[start.id, far.id, middle.id],
        )

        assert trip.id is not None
        assert trip.optimized
        assert trip.route_polyline is not None
        loaded = crud.load_trip(session=db, trip_id=trip.id)
        assert loaded is not None
        assert [r.id for r in loaded.riders] == [start.id, middle.id, far.id]
        assert loaded.total_distance_km == pytest.approx(trip.total_distance_km)

    def test_over_capacity_saves_nothing(self, db: Session) -> None:
        vehicle = create_random_vehicle(db, capacity=1)
        riders = [create_random_rider(db) for _ in range(2)]
        with pytest.raises(CapacityExceeded):
            OptimizationService().optimize_trip(
                session=db, vehicle_id=vehicle.id, rider_ids=[r.id for r in riders]
            )
        assert trip_count(db) == 0

    def test_blocking_conflicts_save_nothing(self, db: Session) -> None:
        vehicle = create_random_vehicle(db, capacity=2, available=False)
        riders = [create_random_rider(db) for _ in range(2)]
        with pytest.raises(BlockingConflicts) as exc_info:
            OptimizationService().optimize_trip(
                session=db, vehicle_id=vehicle.id, rider_ids=[r.id for r in riders]
            )
        assert exc_info.value.conflicts[0].type == ConflictType.AVAILABILITY
        assert trip_count(db) == 0

    def test_unknown_records(self, db: Session) -> None:
        vehicle = create_random_vehicle(db)
        service = OptimizationService()
        with pytest.raises(RecordNotFound):
            service.optimize_trip(session=db, vehicle_id=vehicle.id + 100, rider_ids=[])
        with pytest.raises(RecordNotFound):
            service.optimize_trip(session=db, vehicle_id=vehicle.id, rider_ids=[999])

    def test_empty_trip(self, db: Session) -> None:
        vehicle = create_random_vehicle(db)
        trip = OptimizationService().optimize_trip(session=db, vehicle_id=vehicle.id, rider_ids=[])
        assert trip.riders == []
        assert trip.total_distance_km == 0.0
        assert trip.route_polyline is None

    def test_reoptimize_keeps_trip_and_riders(self, db: Session) -> None:
        vehicle = create_random_vehicle(db, capacity=5)
        riders = [create_random_rider(db) for _ in range(5)]
        service = OptimizationService(rng=random.Random(9))
        trip = service.optimize_trip(session=db, vehicle_id=vehicle.id, rider_ids=[r.id for r in riders])

        again = service.reoptimize_trip(
            session=db,
            trip_id=trip.id,
            algorithm=Algorithm.IMPROVEMENT,
            params=AnnealingParams(max_iterations=300),
        )

        assert again.id == trip.id
        assert trip_count(db) == 1
        loaded = crud.load_trip(session=db, trip_id=trip.id)
        assert sorted(r.id for r in loaded.riders) == sorted(r.id for r in riders)

    def test_reoptimize_refuses_blocking_conflicts(self, db: Session) -> None:
        """
        A saved trip whose vehicle went out of service:
        1. Re-optimizing it is refused with the availability conflict
        2. The stored trip keeps its previous pickup order
        """
        vehicle = create_random_vehicle(db, capacity=3)
        riders = [create_random_rider(db) for _ in range(3)]
        service = OptimizationService(rng=random.Random(5))
        trip = service.optimize_trip(session=db, vehicle_id=vehicle.id, rider_ids=[r.id for r in riders])
        stored_order = [r.id for r in trip.riders]

        # Step 1: vehicle out of service, re-optimize
        vehicle.available = False
        db.add(vehicle)
        db.commit()
        with pytest.raises(BlockingConflicts) as exc_info:
            service.reoptimize_trip(session=db, trip_id=trip.id, algorithm=Algorithm.IMPROVEMENT)
        assert exc_info.value.conflicts[0].type == ConflictType.AVAILABILITY

        # Step 2: nothing was written
        db.expire_all()
        loaded = crud.load_trip(session=db, trip_id=trip.id)
        assert [r.id for r in loaded.riders] == stored_order

    def test_reoptimize_trip_without_vehicle(self, db: Session) -> None:
        vehicle = create_random_vehicle(db, capacity=2)
        riders = [create_random_rider(db) for _ in range(2)]
        service = OptimizationService()
        trip = service.optimize_trip(session=db, vehicle_id=vehicle.id, rider_ids=[r.id for r in riders])
        assert crud.delete_vehicle(session=db, vehicle_id=vehicle.id)

        with pytest.raises(TripWithoutVehicle) as exc_info:
            service.reoptimize_trip(session=db, trip_id=trip.id)
        assert str(exc_info.value) == f"Trip {trip.id} has no vehicle"

    def test_reoptimize_unknown_trip(self, db: Session) -> None:
        with pytest.raises(RecordNotFound):
            OptimizationService().reoptimize_trip(session=db, trip_id=12345)


class TestCheckTrip:
    def test_keeps_given_order_and_saves_nothing(self, db: Session) -> None:
        vehicle = create_random_vehicle(db, capacity=1)
        riders = [create_random_rider(db) for _ in range(2)]
        result = OptimizationService().check_trip(
            session=db, vehicle_id=vehicle.id, rider_ids=[r.id for r in riders]
        )
        assert not result.is_valid
        assert result.conflicts[0].type == ConflictType.CAPACITY
        assert result.summary.startswith("1 conflict(s) detected:")
        assert trip_count(db) == 0


class TestCompareAlgorithms:
    def test_annealing_from_construction_wins_or_ties(self) -> None:
        riders = [
            make_rider(f"R{i}", rider_id=i + 1, latitude=48.8 + (i * 37 % 11) * 0.01, longitude=2.3 + (i * 53 % 7) * 0.01)
            for i in range(8)
        ]
        params = AnnealingParams(initial_solution=InitialSolution.CONSTRUCTION)
        comparison = OptimizationService(rng=random.Random(4)).compare_algorithms(riders, make_vehicle(8), params)

        assert comparison.best == Algorithm.IMPROVEMENT
        assert comparison.improvement.cost <= comparison.construction.cost
        assert comparison.improvement_percent >= 0.0
        assert comparison.construction.name == "Nearest Neighbor"
        assert comparison.improvement.name == "Simulated Annealing"
        assert comparison.construction.trip.id is None

    def test_tie_goes_to_annealing_with_no_improvement(self) -> None:
        comparison = OptimizationService(rng=random.Random(4)).compare_algorithms(
            line_of_riders(1), make_vehicle(1)
        )
        assert comparison.best == Algorithm.IMPROVEMENT
        assert comparison.improvement_percent == 0.0

    def test_capacity_checked(self) -> None:
        with pytest.raises(CapacityExceeded):
            OptimizationService().compare_algorithms(line_of_riders(3), make_vehicle(2))


class TestSupportPieces:
    def test_encode_route(self) -> None:
        riders = line_of_riders(3) + [make_rider("No coordinates")]
        decoded = polyline.decode(encode_route(riders))
        assert decoded == [(48.85, 2.35), (48.86, 2.35), (48.87, 2.35)]
        assert encode_route(line_of_riders(1)) is None

    def test_time_limit_setting_applies(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "ANNEALING_TIME_LIMIT_SECONDS", 2.5)
        service = OptimizationService()
        assert service._annealing_params(None).time_limit_seconds == 2.5
        explicit = AnnealingParams(time_limit_seconds=1.0)
        assert service._annealing_params(explicit).time_limit_seconds == 1.0
