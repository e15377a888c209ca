"""
scripts/populate_db.py
Fill the database with sample riders, vehicles and optimized trips.

Usage:
  python scripts/populate_db.py --riders 40 --vehicles 8 --seed 7
  python scripts/populate_db.py --clear
"""

import argparse
import json
import os
import random
import sys
from datetime import time
from typing import List, TypedDict

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import delete
from sqlalchemy.engine import Engine
from sqlmodel import Session

from carpool import crud
from carpool.core.db import engine, init_db
from carpool.models.optimization_models import Algorithm
from carpool.models.rider_models import Rider, RiderCreate
from carpool.models.trip_models import Trip, TripRider
from carpool.models.vehicle_models import Vehicle, VehicleCreate
from carpool.services.errors import BlockingConflicts
from carpool.services.optimization import OptimizationService


class Neighbourhood(TypedDict):
    name: str
    lat: float
    lng: float


NEIGHBOURHOODS: list[Neighbourhood] = [
    {"name": "Riverside", "lat": 48.8530, "lng": 2.3499},
    {"name": "Old Town", "lat": 48.8606, "lng": 2.3376},
    {"name": "Station District", "lat": 48.8443, "lng": 2.3730},
    {"name": "Hillside", "lat": 48.8867, "lng": 2.3431},
    {"name": "Harbour", "lat": 48.8339, "lng": 2.3265},
]

GROUPS = ["finance", "engineering", "support", None]


class DatabasePopulator:
    def __init__(self, db_engine: Engine = engine, seed: int | None = None):
        self.engine = db_engine
        self.rng = random.Random(seed)
        self.riders: List[Rider] = []
        self.vehicles: List[Vehicle] = []
        self.trips: List[int] = []

    def clear_existing_data(self):
        """Delete every row, links first"""
        print("Clearing existing data...")
        with Session(self.engine) as session:
            session.execute(delete(TripRider))
            session.execute(delete(Trip))
            session.execute(delete(Rider))
            session.execute(delete(Vehicle))
            session.commit()
        print("Existing data cleared")

    def create_vehicles(self, session: Session, count: int = 5):
        print(f"Creating {count} vehicles...")
        for i in range(count):
            vehicle = crud.create_vehicle(
                session=session,
                vehicle_create=VehicleCreate(
                    registration=f"CP-{i:03d}-{self.rng.randint(10, 99)}",
                    driver_name=f"Driver {i}",
                    capacity=self.rng.randint(3, 7),
                    available_from=time(6, 0),
                    available_to=time(10, 0),
                ),
            )
            self.vehicles.append(vehicle)
        print(f"Created {len(self.vehicles)} vehicles")

    def create_riders(self, session: Session, count: int = 30):
        print(f"Creating {count} riders...")
        for i in range(count):
            area = self.rng.choice(NEIGHBOURHOODS)
            start = self.rng.randint(6 * 60 + 30, 8 * 60 + 30)
            group = self.rng.choice(GROUPS)
            preferences = None
            if group is not None and self.rng.random() < 0.2:
                preferences = json.dumps({"priority": True})
            rider = crud.create_rider(
                session=session,
                rider_create=RiderCreate(
                    name=f"Rider {i}",
                    pickup_address=f"{self.rng.randint(1, 120)} {area['name']} Street",
                    dropoff_address="Central Business Park",
                    pickup_time=time(start // 60, start % 60),
                    dropoff_time=time((start + 40) // 60, (start + 40) % 60),
                    latitude=area["lat"] + self.rng.uniform(-0.01, 0.01),
                    longitude=area["lng"] + self.rng.uniform(-0.01, 0.01),
                    group_name=group,
                    preferences=preferences,
                ),
            )
            self.riders.append(rider)
        print(f"Created {len(self.riders)} riders")

    def create_trips(self, session: Session, algorithm: Algorithm = Algorithm.IMPROVEMENT):
        """Fill vehicles in turn with the riders that are left"""
        print("Optimizing trips...")
        optimizer = OptimizationService(rng=self.rng)
        pending = list(self.riders)
        for vehicle in self.vehicles:
            if not pending:
                break
            take, pending = pending[: vehicle.capacity], pending[vehicle.capacity :]
            try:
                trip = optimizer.optimize_trip(
                    session=session,
                    vehicle_id=vehicle.id,
                    rider_ids=[r.id for r in take],
                    algorithm=algorithm,
                )
            except BlockingConflicts as exc:
                print(f"Skipped vehicle {vehicle.registration}: {len(exc.conflicts)} conflict(s)")
                continue
            self.trips.append(trip.id)
        print(f"Created {len(self.trips)} trips, {len(pending)} riders left without a seat")

    def run(self, riders: int, vehicles: int, algorithm: Algorithm):
        with Session(self.engine) as session:
            self.create_vehicles(session, vehicles)
            self.create_riders(session, riders)
            self.create_trips(session, algorithm)


def main():
    parser = argparse.ArgumentParser(description="Populate the carpool database with sample data")
    parser.add_argument("--riders", type=int, default=30)
    parser.add_argument("--vehicles", type=int, default=5)
    parser.add_argument("--algorithm", type=Algorithm, default=Algorithm.IMPROVEMENT)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--clear", action="store_true", help="delete existing rows first")
    args = parser.parse_args()

    init_db()
    populator = DatabasePopulator(seed=args.seed)
    if args.clear:
        populator.clear_existing_data()
    populator.run(args.riders, args.vehicles, args.algorithm)


if __name__ == "__main__":
    main()
