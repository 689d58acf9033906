"""
HTTP surface: trend and insight queries over a sample store.

GET /trends/daily?date=YYYY-MM-DD    hourly buckets for one day
GET /trends/weekly?date=YYYY-MM-DD   daily buckets, Monday..Sunday
GET /trends/monthly?date=YYYY-MM     daily buckets for the month
GET /insights                        four weekly insight statements
"""

from __future__ import annotations
import logging
from typing import Annotated, List, Optional

import uvicorn
from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import exceptions, formats
from .aggregate import aggregate
from .config import Settings, settings
from .insights import InsightConfig, default_config, generate_insights
from .store import SampleStore, SQLiteStore
from .types import InsightPayload, Period, TrendPayload

logger = logging.getLogger(__name__)

router = APIRouter()

DateParam = Annotated[
    Optional[str],
    Query(description="Reference date: YYYY-MM-DD, or YYYY-MM for monthly."),
]


def _store(request: Request) -> SampleStore:
    return request.app.state.store


def _trend(request: Request, period: Period, date: Optional[str]) -> TrendPayload:
    logger.info("Fetching %s trend for %s", period, date)
    result = aggregate(_store(request), period, date)
    return formats.to_trend_payload(result)


@router.get("/trends/daily")
def daily_trend(request: Request, date: DateParam = None) -> TrendPayload:
    return _trend(request, "daily", date)


@router.get("/trends/weekly")
def weekly_trend(request: Request, date: DateParam = None) -> TrendPayload:
    return _trend(request, "weekly", date)


@router.get("/trends/monthly")
def monthly_trend(request: Request, date: DateParam = None) -> TrendPayload:
    return _trend(request, "monthly", date)


@router.get("/insights")
def insights(request: Request) -> List[InsightPayload]:
    found = generate_insights(
        _store(request), config=request.app.state.insight_config
    )
    return formats.to_insight_payload(found)


@router.get("/health")
def health():
    return {"status": "ok"}


async def _invalid_argument(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def _invalid_sample(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=422, content={"error": str(exc)})


async def _data_unavailable(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Data unavailable for %s", request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


def create_app(
    store: Optional[SampleStore] = None,
    config: Optional[Settings] = None,
    insight_config: Optional[InsightConfig] = None,
) -> FastAPI:
    cfg = config or settings
    app = FastAPI(title="usagetrends")
    app.state.settings = cfg
    app.state.store = store if store is not None else SQLiteStore(cfg.db_path, tz=cfg.tz)
    app.state.insight_config = insight_config or default_config()

    if cfg.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cfg.cors_origins,
            allow_methods=["GET"],
            allow_headers=["*"],
        )

    app.add_exception_handler(exceptions.InvalidArgument, _invalid_argument)
    app.add_exception_handler(exceptions.ValidationError, _invalid_sample)
    app.add_exception_handler(exceptions.DataUnavailable, _data_unavailable)
    app.include_router(router)
    return app


def main() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app()
    logger.info("Serving usage trends from %s (tz %s)", settings.db_path, settings.tz)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
