from fastapi import APIRouter

from carpool.api.routes import riders, statistics, trips, vehicles

api_router = APIRouter()
api_router.include_router(riders.router_riders)
api_router.include_router(vehicles.router_vehicles)
api_router.include_router(trips.router_trips)
api_router.include_router(statistics.router_statistics)


# Add health check endpoint
@api_router.get("/health")
def health_check():
    return {"status": "healthy", "service": "carpool"}


# Add version info
@api_router.get("/version")
def version_info():
    return {
        "version": "1.0.0",
        "api_version": "v1",
        "features": [
            "rider_management",
            "nearest_neighbor_ordering",
            "simulated_annealing_ordering",
            "conflict_detection",
            "statistics",
        ],
    }
