"""Aggregate queries behind the workforce demand dashboard.

Every query reads the ``hours`` table inside an inclusive
``[start_date, end_date]`` window of ISO date strings and never writes.
Capacity is a fixed 40-hour week; a *resource-week* is one employee's hours
summed across projects for one week.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from sqlalchemy import case, distinct, func, not_, select
from sqlalchemy.orm import Session

from workforce_demand.app.analytics import schemas
from workforce_demand.app.common.resources import NAMED_LABEL, POOL_LABEL, pool_resource_clause
from workforce_demand.app.ingest.models import HourEntry

logger = logging.getLogger(__name__)

HOURS_PER_WEEK = 40.0
REALISM_WINDOW_WEEKS = 26

# (label, upper bound in percent of capacity); the last bucket is open-ended
UTILIZATION_BUCKETS: Tuple[Tuple[str, float], ...] = (
    ("0-25%", 25.0),
    ("25-50%", 50.0),
    ("50-75%", 75.0),
    ("75-100%", 100.0),
    ("100-125%", 125.0),
    ("125%+", math.inf),
)

CRITICAL_HOURS = 55.0
WARNING_HOURS = 45.0

DEFAULT_POOL_THRESHOLD = 40.0
DEFAULT_INDIVIDUAL_THRESHOLD = 45.0
DEFAULT_UNDER_UTILIZATION = 60.0
DEFAULT_MIN_WEEKS = 4
DEFAULT_HEATMAP_TOP_N = 20


class InvalidDateWindowError(ValueError):
    """Raised when a requested date window is malformed or inverted."""


class ResourceWeek(NamedTuple):
    employee_id: str
    resource_name: str
    week_start_date: str
    hours: float


def default_window(today: Optional[date] = None, weeks: int = REALISM_WINDOW_WEEKS) -> Tuple[str, str]:
    """Today through ``weeks`` weeks ahead."""

    today = today or date.today()
    return today.isoformat(), (today + timedelta(weeks=weeks)).isoformat()


def resolve_window(
    start_date: Optional[str],
    end_date: Optional[str],
    *,
    weeks: int = REALISM_WINDOW_WEEKS,
    today: Optional[date] = None,
) -> Tuple[str, str]:
    """Validate an explicit window, or fall back to :func:`default_window` when either bound is missing."""

    if not start_date or not end_date:
        return default_window(today, weeks)
    try:
        start = date.fromisoformat(start_date)
        end = date.fromisoformat(end_date)
    except ValueError as exc:
        raise InvalidDateWindowError(f"Dates must be ISO formatted (YYYY-MM-DD): {exc}") from exc
    if end < start:
        raise InvalidDateWindowError("endDate must not be earlier than startDate")
    return start.isoformat(), end.isoformat()


def utilization_pct(hours: float, ndigits: int = 1) -> float:
    return round(hours / HOURS_PER_WEEK * 100, ndigits)


def bucket_for(pct: float) -> str:
    for label, upper in UTILIZATION_BUCKETS:
        if pct < upper:
            return label
    return UTILIZATION_BUCKETS[-1][0]


def risk_level(total_hours: float) -> str:
    if total_hours > CRITICAL_HOURS:
        return "Critical"
    if total_hours > WARNING_HOURS:
        return "Warning"
    return "Normal"


def realism_score(pool_vs_named: Sequence[schemas.ResourceTypeShare]) -> int:
    """Simplified score: ``round(namedPct * 0.6 + 40)``, halves rounded up."""

    named_pct = next((row.pct_of_total for row in pool_vs_named if row.resource_type == NAMED_LABEL), 0.0)
    return int(math.floor(named_pct * 0.6 + 40 + 0.5))


def _share(part: float, whole: float) -> float:
    return round(part * 100.0 / whole, 1) if whole else 0.0


class AnalyticsService:
    """Read-only analytics over the ``hours`` table."""

    def __init__(self, db: Session) -> None:
        self._db = db

    # ------------------------------------------------------------------ weekly series
    def weekly_demand_trend(
        self,
        start_date: str,
        end_date: str,
        demand_type: Optional[str] = None,
    ) -> List[schemas.WeeklyDemand]:
        week = HourEntry.week_start_date
        stmt = select(
            week,
            func.sum(HourEntry.hours),
            func.count(distinct(HourEntry.employee_id)),
            func.count(distinct(HourEntry.project)),
        ).where(*self._window(start_date, end_date))
        if demand_type:
            stmt = stmt.where(HourEntry.demand_type == demand_type)
        stmt = stmt.group_by(week).order_by(week)

        return [
            schemas.WeeklyDemand(
                week_start_date=week_start,
                total_hours=float(total or 0.0),
                resource_count=resources,
                project_count=projects,
            )
            for week_start, total, resources, projects in self._db.execute(stmt)
        ]

    def weekly_demand_by_type(self, start_date: str, end_date: str) -> List[schemas.WeeklyDemandByType]:
        week = HourEntry.week_start_date
        stmt = (
            select(week, HourEntry.demand_type, func.sum(HourEntry.hours))
            .where(*self._window(start_date, end_date))
            .group_by(week, HourEntry.demand_type)
            .order_by(week, HourEntry.demand_type)
        )
        return [
            schemas.WeeklyDemandByType(week_start_date=week_start, demand_type=kind, total_hours=float(total or 0.0))
            for week_start, kind, total in self._db.execute(stmt)
        ]

    def implied_fte(self, start_date: str, end_date: str) -> List[schemas.WeeklyFte]:
        return [
            schemas.WeeklyFte(
                week_start_date=week_start,
                total_hours=total,
                implied_fte=round(total / HOURS_PER_WEEK, 2),
            )
            for week_start, total in self._weekly_totals(start_date, end_date)
        ]

    def fte_summary(self, start_date: str, end_date: str) -> schemas.FteSummary:
        weekly = (
            select(func.sum(HourEntry.hours).label("weekly_hours"))
            .where(*self._window(start_date, end_date))
            .group_by(HourEntry.week_start_date)
            .subquery()
        )
        stmt = select(
            func.avg(weekly.c.weekly_hours),
            func.max(weekly.c.weekly_hours),
            func.min(weekly.c.weekly_hours),
        )
        avg_hours, max_hours, min_hours = self._db.execute(stmt).one()
        return schemas.FteSummary(
            avg_fte=_fte_or_none(avg_hours),
            peak_fte=_fte_or_none(max_hours),
            min_fte=_fte_or_none(min_hours),
        )

    # ------------------------------------------------------------------ utilization
    def utilization_distribution(self, start_date: str, end_date: str) -> List[schemas.UtilizationBucket]:
        counts: Dict[str, int] = defaultdict(int)
        resource_weeks = self._resource_weeks(start_date, end_date)
        for item in resource_weeks:
            counts[bucket_for(utilization_pct(item.hours))] += 1

        total = len(resource_weeks)
        return [
            schemas.UtilizationBucket(bucket=label, count=counts[label], percentage=_share(counts[label], total))
            for label, _ in UTILIZATION_BUCKETS
            if counts.get(label)
        ]

    def over_allocated_pools(
        self,
        start_date: str,
        end_date: str,
        threshold: float = DEFAULT_POOL_THRESHOLD,
    ) -> List[schemas.OverAllocatedPool]:
        is_pool = pool_resource_clause(HourEntry.employee_id, HourEntry.resource_name)
        keys = (HourEntry.resource_name, HourEntry.week_start_date)
        total = func.sum(HourEntry.hours)
        stmt = (
            select(*keys, total.label("total_hours"))
            .where(is_pool, *self._window(start_date, end_date))
            .group_by(*keys)
            .having(total > threshold)
            .order_by(total.desc(), *keys)
        )
        rows = self._db.execute(stmt).all()
        projects = self._distinct_projects(keys, is_pool, *self._window(start_date, end_date))

        return [
            schemas.OverAllocatedPool(
                resource_name=name,
                week_start_date=week_start,
                total_hours=float(hours),
                implied_fte=round(hours / HOURS_PER_WEEK, 1),
                projects=projects.get((name, week_start), []),
            )
            for name, week_start, hours in rows
        ]

    def over_allocated_individuals(
        self,
        start_date: str,
        end_date: str,
        threshold: float = DEFAULT_INDIVIDUAL_THRESHOLD,
    ) -> List[schemas.OverAllocatedIndividual]:
        is_named = not_(pool_resource_clause(HourEntry.employee_id, HourEntry.resource_name))
        keys = (HourEntry.employee_id, HourEntry.resource_name, HourEntry.week_start_date)
        total = func.sum(HourEntry.hours)
        stmt = (
            select(*keys, total.label("total_hours"))
            .where(is_named, *self._window(start_date, end_date))
            .group_by(*keys)
            .having(total > threshold)
            .order_by(total.desc(), *keys)
        )
        rows = self._db.execute(stmt).all()
        projects = self._distinct_projects(keys, is_named, *self._window(start_date, end_date))

        return [
            schemas.OverAllocatedIndividual(
                employee_id=employee_id,
                resource_name=name,
                week_start_date=week_start,
                total_hours=float(hours),
                hours_over=float(hours) - threshold,
                risk_level=risk_level(hours),
                projects=projects.get((employee_id, name, week_start), []),
            )
            for employee_id, name, week_start, hours in rows
        ]

    def under_allocated_resources(
        self,
        start_date: str,
        end_date: str,
        utilization_threshold: float = DEFAULT_UNDER_UTILIZATION,
        min_weeks: int = DEFAULT_MIN_WEEKS,
    ) -> List[schemas.UnderAllocatedResource]:
        weekly_hours: Dict[Tuple[str, str], List[float]] = defaultdict(list)
        for item in self._resource_weeks(start_date, end_date):
            weekly_hours[(item.employee_id, item.resource_name)].append(item.hours)

        results: List[schemas.UnderAllocatedResource] = []
        for (employee_id, name), hours in weekly_hours.items():
            if len(hours) < min_weeks:
                continue
            avg_hours = sum(hours) / len(hours)
            avg_pct = utilization_pct(avg_hours)
            if avg_pct >= utilization_threshold:
                continue
            results.append(
                schemas.UnderAllocatedResource(
                    employee_id=employee_id,
                    resource_name=name,
                    avg_hours_per_week=round(avg_hours, 1),
                    avg_utilization_pct=avg_pct,
                    weeks_count=len(hours),
                )
            )
        results.sort(key=lambda row: (row.avg_utilization_pct, row.employee_id, row.resource_name))
        return results

    def heatmap(
        self,
        start_date: str,
        end_date: str,
        top_n: int = DEFAULT_HEATMAP_TOP_N,
    ) -> List[schemas.HeatmapCell]:
        by_resource: Dict[Tuple[str, str], List[ResourceWeek]] = defaultdict(list)
        for item in self._resource_weeks(start_date, end_date):
            by_resource[(item.employee_id, item.resource_name)].append(item)

        peaks = sorted(
            by_resource.items(),
            key=lambda entry: (-max(week.hours for week in entry[1]), entry[0]),
        )[: max(top_n, 0)]

        cells: List[schemas.HeatmapCell] = []
        for _, weeks in peaks:
            for item in sorted(weeks, key=lambda week: week.week_start_date):
                cells.append(
                    schemas.HeatmapCell(
                        employee_id=item.employee_id,
                        resource_name=item.resource_name,
                        week_start_date=item.week_start_date,
                        hours=item.hours,
                        utilization_pct=utilization_pct(item.hours, 0),
                    )
                )
        return cells

    # ------------------------------------------------------------------ realism
    def demand_realism_metrics(self, start_date: str, end_date: str) -> schemas.RealismMetrics:
        stmt = select(
            func.sum(HourEntry.hours),
            func.count(distinct(HourEntry.employee_id)),
            func.count(distinct(HourEntry.project)),
        ).where(*self._window(start_date, end_date))
        total, resources, projects = self._db.execute(stmt).one()
        total = float(total or 0.0)
        return schemas.RealismMetrics(
            total_hours=total,
            avg_weekly_fte=round(total / HOURS_PER_WEEK / REALISM_WINDOW_WEEKS, 1),
            unique_resources=resources or 0,
            unique_projects=projects or 0,
        )

    def pool_vs_named_breakdown(self, start_date: str, end_date: str) -> List[schemas.ResourceTypeShare]:
        resource_type = case(
            (pool_resource_clause(HourEntry.employee_id, HourEntry.resource_name), POOL_LABEL),
            else_=NAMED_LABEL,
        ).label("resource_type")
        classified = (
            select(resource_type, HourEntry.hours.label("hours"))
            .where(*self._window(start_date, end_date))
            .subquery()
        )
        stmt = (
            select(classified.c.resource_type, func.sum(classified.c.hours))
            .group_by(classified.c.resource_type)
            .order_by(classified.c.resource_type)
        )
        rows = [(label, float(hours or 0.0)) for label, hours in self._db.execute(stmt)]
        window_total = sum(hours for _, hours in rows)
        return [
            schemas.ResourceTypeShare(resource_type=label, total_hours=hours, pct_of_total=_share(hours, window_total))
            for label, hours in rows
        ]

    def demand_type_breakdown(self, start_date: str, end_date: str) -> List[schemas.DemandTypeShare]:
        stmt = (
            select(HourEntry.demand_type, func.sum(HourEntry.hours))
            .where(*self._window(start_date, end_date))
            .group_by(HourEntry.demand_type)
            .order_by(HourEntry.demand_type)
        )
        rows = [(kind, float(hours or 0.0)) for kind, hours in self._db.execute(stmt)]
        window_total = sum(hours for _, hours in rows)
        return [
            schemas.DemandTypeShare(demand_type=kind, total_hours=hours, pct_of_total=_share(hours, window_total))
            for kind, hours in rows
        ]

    def demand_realism(self, start_date: str, end_date: str) -> schemas.DemandRealismResponse:
        metrics = self.demand_realism_metrics(start_date, end_date)
        pool_vs_named = self.pool_vs_named_breakdown(start_date, end_date)
        return schemas.DemandRealismResponse(
            **metrics.model_dump(),
            pool_vs_named=pool_vs_named,
            demand_type_breakdown=self.demand_type_breakdown(start_date, end_date),
            realism_score=realism_score(pool_vs_named),
        )

    # ------------------------------------------------------------------ filters
    def projects(self) -> List[str]:
        stmt = select(distinct(HourEntry.project)).order_by(HourEntry.project)
        return list(self._db.scalars(stmt))

    def phases(self) -> List[str]:
        stmt = (
            select(distinct(HourEntry.phase))
            .where(HourEntry.phase.is_not(None), HourEntry.phase != "")
            .order_by(HourEntry.phase)
        )
        return list(self._db.scalars(stmt))

    def data_date_range(self) -> schemas.DataDateRange:
        stmt = select(
            func.min(HourEntry.week_start_date),
            func.max(HourEntry.week_start_date),
            func.count(distinct(HourEntry.week_start_date)),
        )
        earliest, latest, weeks = self._db.execute(stmt).one()
        return schemas.DataDateRange(earliest_date=earliest, latest_date=latest, week_count=weeks or 0)

    # ------------------------------------------------------------------ internal
    @staticmethod
    def _window(start_date: str, end_date: str):
        return (HourEntry.week_start_date >= start_date, HourEntry.week_start_date <= end_date)

    def _weekly_totals(self, start_date: str, end_date: str) -> List[Tuple[str, float]]:
        week = HourEntry.week_start_date
        stmt = (
            select(week, func.sum(HourEntry.hours))
            .where(*self._window(start_date, end_date))
            .group_by(week)
            .order_by(week)
        )
        return [(week_start, float(total or 0.0)) for week_start, total in self._db.execute(stmt)]

    def _resource_weeks(self, start_date: str, end_date: str) -> List[ResourceWeek]:
        keys = (HourEntry.employee_id, HourEntry.resource_name, HourEntry.week_start_date)
        stmt = (
            select(*keys, func.sum(HourEntry.hours))
            .where(*self._window(start_date, end_date))
            .group_by(*keys)
            .order_by(*keys)
        )
        rows = [
            ResourceWeek(employee_id, name, week, float(hours or 0.0))
            for employee_id, name, week, hours in self._db.execute(stmt)
        ]
        logger.debug("Loaded %d resource-weeks for %s..%s", len(rows), start_date, end_date)
        return rows

    def _distinct_projects(self, keys, *conditions) -> Dict[tuple, List[str]]:
        stmt = select(*keys, HourEntry.project).where(*conditions).distinct().order_by(*keys, HourEntry.project)
        grouped: Dict[tuple, List[str]] = defaultdict(list)
        for row in self._db.execute(stmt):
            grouped[tuple(row[:-1])].append(row[-1])
        return grouped


def _fte_or_none(hours: Optional[float]) -> Optional[float]:
    if hours is None:
        return None
    return round(float(hours) / HOURS_PER_WEEK, 2)
