"""Read-only dashboard endpoints."""

from __future__ import annotations

from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from workforce_demand.app.analytics import schemas
from workforce_demand.app.analytics.service import (
    DEFAULT_HEATMAP_TOP_N,
    DEFAULT_INDIVIDUAL_THRESHOLD,
    DEFAULT_MIN_WEEKS,
    DEFAULT_POOL_THRESHOLD,
    DEFAULT_UNDER_UTILIZATION,
    AnalyticsService,
    resolve_window,
)
from workforce_demand.app.core import dependencies
from workforce_demand.app.core.config import Settings
from workforce_demand.app.ingest.domain import DemandType

router = APIRouter(prefix="/analytics", tags=["analytics"])


def date_window(
    start_date: Optional[str] = Query(None, alias="startDate", description="Window start (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(None, alias="endDate", description="Window end (YYYY-MM-DD), inclusive"),
    settings: Settings = Depends(dependencies.get_app_settings),
) -> Tuple[str, str]:
    return resolve_window(start_date, end_date, weeks=settings.default_window_weeks)


def analytics_service(db: Session = Depends(dependencies.get_db)) -> AnalyticsService:
    return AnalyticsService(db)


@router.get("/demand-trend", response_model=List[schemas.WeeklyDemand])
def demand_trend(
    demand_type: Optional[DemandType] = Query(None, alias="demandType"),
    window: Tuple[str, str] = Depends(date_window),
    service: AnalyticsService = Depends(analytics_service),
):
    return service.weekly_demand_trend(*window, demand_type=demand_type.value if demand_type else None)


@router.get("/demand-by-type", response_model=List[schemas.WeeklyDemandByType])
def demand_by_type(
    window: Tuple[str, str] = Depends(date_window),
    service: AnalyticsService = Depends(analytics_service),
):
    return service.weekly_demand_by_type(*window)


@router.get("/implied-fte", response_model=schemas.ImpliedFteResponse)
def implied_fte(
    window: Tuple[str, str] = Depends(date_window),
    service: AnalyticsService = Depends(analytics_service),
):
    return schemas.ImpliedFteResponse(data=service.implied_fte(*window), summary=service.fte_summary(*window))


@router.get("/utilization-distribution", response_model=List[schemas.UtilizationBucket])
def utilization_distribution(
    window: Tuple[str, str] = Depends(date_window),
    service: AnalyticsService = Depends(analytics_service),
):
    return service.utilization_distribution(*window)


@router.get("/over-allocated-pools", response_model=List[schemas.OverAllocatedPool])
def over_allocated_pools(
    threshold: float = Query(DEFAULT_POOL_THRESHOLD, ge=0),
    window: Tuple[str, str] = Depends(date_window),
    service: AnalyticsService = Depends(analytics_service),
):
    return service.over_allocated_pools(*window, threshold=threshold)


@router.get("/over-allocated-individuals", response_model=List[schemas.OverAllocatedIndividual])
def over_allocated_individuals(
    threshold: float = Query(DEFAULT_INDIVIDUAL_THRESHOLD, ge=0),
    window: Tuple[str, str] = Depends(date_window),
    service: AnalyticsService = Depends(analytics_service),
):
    return service.over_allocated_individuals(*window, threshold=threshold)


@router.get("/under-allocated", response_model=List[schemas.UnderAllocatedResource])
def under_allocated(
    threshold: float = Query(DEFAULT_UNDER_UTILIZATION, ge=0, description="Average utilization % ceiling"),
    min_weeks: int = Query(DEFAULT_MIN_WEEKS, ge=1, alias="minWeeks"),
    window: Tuple[str, str] = Depends(date_window),
    service: AnalyticsService = Depends(analytics_service),
):
    return service.under_allocated_resources(*window, utilization_threshold=threshold, min_weeks=min_weeks)


@router.get("/heatmap", response_model=List[schemas.HeatmapCell])
def heatmap(
    top_n: int = Query(DEFAULT_HEATMAP_TOP_N, ge=1, le=500, alias="topN"),
    window: Tuple[str, str] = Depends(date_window),
    service: AnalyticsService = Depends(analytics_service),
):
    return service.heatmap(*window, top_n=top_n)


@router.get("/demand-realism", response_model=schemas.DemandRealismResponse)
def demand_realism(
    window: Tuple[str, str] = Depends(date_window),
    service: AnalyticsService = Depends(analytics_service),
):
    return service.demand_realism(*window)


@router.get("/filters/projects", response_model=List[str])
def filter_projects(service: AnalyticsService = Depends(analytics_service)):
    return service.projects()


@router.get("/filters/phases", response_model=List[str])
def filter_phases(service: AnalyticsService = Depends(analytics_service)):
    return service.phases()


@router.get("/date-range", response_model=schemas.DataDateRange)
def date_range(service: AnalyticsService = Depends(analytics_service)):
    return service.data_date_range()
