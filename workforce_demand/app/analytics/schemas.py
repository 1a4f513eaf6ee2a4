"""Pydantic schemas for analytics APIs."""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from workforce_demand.app.common.schemas import CamelModel


class WeeklyDemand(CamelModel):
    week_start_date: str
    total_hours: float
    resource_count: int
    project_count: int


class WeeklyDemandByType(CamelModel):
    week_start_date: str
    demand_type: str
    total_hours: float


class WeeklyFte(CamelModel):
    week_start_date: str
    total_hours: float
    implied_fte: float = Field(alias="impliedFTE")


class FteSummary(CamelModel):
    avg_fte: Optional[float] = Field(default=None, alias="avgFTE")
    peak_fte: Optional[float] = Field(default=None, alias="peakFTE")
    min_fte: Optional[float] = Field(default=None, alias="minFTE")


class ImpliedFteResponse(CamelModel):
    data: List[WeeklyFte]
    summary: FteSummary


class UtilizationBucket(CamelModel):
    bucket: str
    count: int
    percentage: float


class OverAllocatedPool(CamelModel):
    resource_name: str
    week_start_date: str
    total_hours: float
    implied_fte: float = Field(alias="impliedFTE")
    projects: List[str] = Field(default_factory=list)


class OverAllocatedIndividual(CamelModel):
    employee_id: str
    resource_name: str
    week_start_date: str
    total_hours: float
    hours_over: float
    risk_level: str
    projects: List[str] = Field(default_factory=list)


class UnderAllocatedResource(CamelModel):
    employee_id: str
    resource_name: str
    avg_hours_per_week: float
    avg_utilization_pct: float
    weeks_count: int


class HeatmapCell(CamelModel):
    employee_id: str
    resource_name: str
    week_start_date: str
    hours: float
    utilization_pct: float


class RealismMetrics(CamelModel):
    total_hours: float = 0.0
    avg_weekly_fte: float = Field(default=0.0, alias="avgWeeklyFTE")
    unique_resources: int = 0
    unique_projects: int = 0


class ResourceTypeShare(CamelModel):
    resource_type: str
    total_hours: float
    pct_of_total: float


class DemandTypeShare(CamelModel):
    demand_type: str
    total_hours: float
    pct_of_total: float


class DemandRealismResponse(RealismMetrics):
    pool_vs_named: List[ResourceTypeShare] = Field(default_factory=list)
    demand_type_breakdown: List[DemandTypeShare] = Field(default_factory=list)
    realism_score: int = 0


class DataDateRange(CamelModel):
    earliest_date: Optional[str] = None
    latest_date: Optional[str] = None
    week_count: int = 0
