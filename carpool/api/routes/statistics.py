from typing import Any

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from carpool import crud
from carpool.api.deps import SessionDep, StatisticsServiceDep
from carpool.services.statistics import GlobalStatistics

router_statistics = APIRouter(prefix="/statistics", tags=["statistics"])


@router_statistics.get("/", response_model=GlobalStatistics)
def read_statistics(session: SessionDep, statistics: StatisticsServiceDep) -> Any:
    return statistics.compute(crud.get_all_trips(session=session))


@router_statistics.get("/report", response_class=PlainTextResponse)
def read_statistics_report(session: SessionDep, statistics: StatisticsServiceDep) -> str:
    return statistics.report(crud.get_all_trips(session=session))
