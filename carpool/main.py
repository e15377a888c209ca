import logging
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.routing import APIRoute
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from carpool.api.main import api_router
from carpool.core.config import settings
from carpool.core.db import init_db
from carpool.services.errors import BlockingConflicts, CapacityExceeded, RecordNotFound, TripWithoutVehicle

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def custom_generate_unique_id(route: APIRoute) -> str:
    return f"{route.tags[0]}-{route.name}"


def format_validation_error(error: ValidationError | RequestValidationError) -> dict:
    """Format Pydantic validation errors into readable messages"""
    errors = []

    field_names = {
        "vehicle_id": "Vehicle",
        "rider_ids": "Riders",
        "capacity": "Capacity",
        "latitude": "Latitude",
        "longitude": "Longitude",
        "pickup_time": "Pickup time",
        "dropoff_time": "Dropoff time",
        "available_from": "Available from",
        "available_to": "Available to",
        "cooling_rate": "Cooling rate",
        "initial_temperature": "Initial temperature",
        "algorithm": "Algorithm",
    }

    for err in error.errors():
        loc = err.get("loc") or [""]
        field = loc[-1]
        field_display = field_names.get(field, field)
        error_type = err.get("type", "")

        if "missing" in error_type:
            msg = f"{field_display}: Field required"
        elif "enum" in error_type:
            msg = f"{field_display}: Invalid value"
        elif error_type in ("greater_than", "greater_than_equal", "less_than", "less_than_equal"):
            msg = f"{field_display}: {err.get('msg', 'Out of range')}"
        else:
            msg = err.get("msg", f"{field_display}: Validation error")

        errors.append(msg)

    return {
        "detail": " | ".join(errors) if errors else "Invalid request data",
        "errors": errors,
    }


if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
    sentry_sdk.init(dsn=str(settings.SENTRY_DSN), enable_tracing=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(f"{settings.PROJECT_NAME} started ({settings.ENVIRONMENT})")
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    generate_unique_id_function=custom_generate_unique_id,
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with readable messages"""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=format_validation_error(exc),
    )


@app.exception_handler(CapacityExceeded)
async def capacity_exception_handler(request: Request, exc: CapacityExceeded):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.exception_handler(RecordNotFound)
async def not_found_exception_handler(request: Request, exc: RecordNotFound):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(BlockingConflicts)
async def conflicts_exception_handler(request: Request, exc: BlockingConflicts):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": str(exc),
            "conflicts": [c.model_dump(mode="json") for c in exc.conflicts],
        },
    )


@app.exception_handler(TripWithoutVehicle)
async def trip_without_vehicle_exception_handler(request: Request, exc: TripWithoutVehicle):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})

# Set all CORS enabled origins
if settings.all_cors_origins:
    allow_origins = settings.all_cors_origins
    allow_credentials = True

    if settings.ENVIRONMENT == "local":
        allow_origins = ["*"]
        allow_credentials = False

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(api_router, prefix=settings.API_V1_STR)
