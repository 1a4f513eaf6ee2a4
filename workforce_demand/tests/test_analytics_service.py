from __future__ import annotations

from datetime import date

import pytest

from workforce_demand.app.analytics import schemas
from workforce_demand.app.analytics.service import (
    AnalyticsService,
    InvalidDateWindowError,
    UTILIZATION_BUCKETS,
    bucket_for,
    realism_score,
    resolve_window,
    risk_level,
)
from workforce_demand.app.common.resources import is_pool_resource, resource_class
from workforce_demand.tests.factories import hour_entry

START, END = "2024-01-01", "2024-06-30"
W1, W2, W3, W4 = "2024-01-07", "2024-01-14", "2024-01-21", "2024-01-28"


def test_weekly_demand_trend_orders_weeks_and_counts_distinct(seed, session):
    seed(
        [
            hour_entry("E1", W2, 20, project="Apollo"),
            hour_entry("E1", W1, 20, project="Apollo"),
            hour_entry("E2", W1, 20, project="Zeus", demand_type="Soft Demand"),
            hour_entry("E2", W1, 5, project="Apollo", demand_type="Soft Demand"),
            hour_entry("E9", "2023-12-31", 40),
        ]
    )
    service = AnalyticsService(session)

    trend = service.weekly_demand_trend(START, END)
    soft = service.weekly_demand_trend(START, END, demand_type="Soft Demand")

    assert [(row.week_start_date, row.total_hours, row.resource_count, row.project_count) for row in trend] == [
        (W1, 45.0, 2, 2),
        (W2, 20.0, 1, 1),
    ]
    assert [(row.week_start_date, row.total_hours) for row in soft] == [(W1, 25.0)]


def test_weekly_demand_by_type(seed, session):
    seed(
        [
            hour_entry("E1", W1, 10),
            hour_entry("E2", W1, 20, demand_type="Soft Demand"),
            hour_entry("E1", W2, 5),
        ]
    )

    rows = AnalyticsService(session).weekly_demand_by_type(START, END)

    assert [(row.week_start_date, row.demand_type, row.total_hours) for row in rows] == [
        (W1, "Hard Demand", 10.0),
        (W1, "Soft Demand", 20.0),
        (W2, "Hard Demand", 5.0),
    ]


def test_implied_fte_and_summary(seed, session):
    seed(
        [
            hour_entry("E1", W1, 20),
            hour_entry("E2", W1, 20),
            hour_entry("E1", W2, 20),
        ]
    )
    service = AnalyticsService(session)

    weekly = service.implied_fte(START, END)
    summary = service.fte_summary(START, END)

    assert [(row.week_start_date, row.implied_fte) for row in weekly] == [(W1, 1.0), (W2, 0.5)]
    assert (summary.avg_fte, summary.peak_fte, summary.min_fte) == (0.75, 1.0, 0.5)


def test_fte_summary_is_empty_without_data(session):
    summary = AnalyticsService(session).fte_summary(START, END)

    assert summary == schemas.FteSummary()


def test_utilization_distribution_buckets_cover_every_resource_week(seed, session):
    seed(
        [
            hour_entry("E1", W1, 5),
            hour_entry("E1", W2, 20),
            hour_entry("E2", W1, 10),
            hour_entry("E2", W1, 20),
            hour_entry("E3", W1, 40),
            hour_entry("E4", W1, 60),
            hour_entry("E4", W2, 30),
        ]
    )

    buckets = AnalyticsService(session).utilization_distribution(START, END)

    assert [(row.bucket, row.count) for row in buckets] == [
        ("0-25%", 1),
        ("50-75%", 1),
        ("75-100%", 2),
        ("100-125%", 1),
        ("125%+", 1),
    ]
    assert sum(row.count for row in buckets) == 6
    assert abs(sum(row.percentage for row in buckets) - 100) <= 0.5


def test_bucket_boundaries():
    assert bucket_for(0) == "0-25%"
    assert bucket_for(24.9) == "0-25%"
    assert bucket_for(25) == "25-50%"
    assert bucket_for(100) == "100-125%"
    assert bucket_for(125) == "125%+"
    assert [label for label, _ in UTILIZATION_BUCKETS][-1] == "125%+"


def test_over_allocated_pools(seed, session):
    seed(
        [
            hour_entry("P1", W1, 30, name="General Pool", project="Apollo"),
            hour_entry("P1", W1, 30, name="General Pool", project="Zeus"),
            hour_entry("P2", W1, 35, name="Offshore Team"),
            hour_entry("9999999123", W1, 45, name="Contractor"),
            hour_entry("E1", W1, 80, name="Alice"),
        ]
    )

    pools = AnalyticsService(session).over_allocated_pools(START, END)

    assert [(row.resource_name, row.total_hours, row.implied_fte) for row in pools] == [
        ("General Pool", 60.0, 1.5),
        ("Contractor", 45.0, 1.1),
    ]
    assert pools[0].projects == ["Apollo", "Zeus"]


def test_over_allocated_individuals_default_threshold(seed, session):
    seed(
        [
            hour_entry("E2", W1, 30, name="Erin", project="Apollo"),
            hour_entry("E2", W1, 20, name="Erin", project="Zeus"),
            hour_entry("E3", W1, 60, name="Sam"),
            hour_entry("E4", W1, 45, name="Kim"),
            hour_entry("P9", W1, 70, name="TBD Developer"),
            hour_entry("9999999001", W1, 80, name="Jane"),
        ]
    )

    rows = AnalyticsService(session).over_allocated_individuals(START, END)

    assert [(row.employee_id, row.total_hours, row.hours_over, row.risk_level) for row in rows] == [
        ("E3", 60.0, 15.0, "Critical"),
        ("E2", 50.0, 5.0, "Warning"),
    ]
    assert rows[1].projects == ["Apollo", "Zeus"]


def test_over_allocated_individuals_custom_threshold_keeps_absolute_risk_tiers(seed, session):
    seed([hour_entry("E1", W1, 42), hour_entry("E2", W1, 38)])

    rows = AnalyticsService(session).over_allocated_individuals(START, END, threshold=40)

    assert [(row.employee_id, row.hours_over, row.risk_level) for row in rows] == [("E1", 2.0, "Normal")]


def test_risk_levels():
    assert risk_level(56) == "Critical"
    assert risk_level(55) == "Warning"
    assert risk_level(45) == "Normal"


def test_under_allocated_resources(seed, session):
    weeks = (W1, W2, W3, W4)
    seed(
        [hour_entry("E1", week, 10) for week in weeks]
        + [hour_entry("E5", week, 5) for week in weeks[:3]]
        + [hour_entry("E6", week, 40) for week in weeks]
        + [hour_entry("E7", week, 20) for week in weeks]
    )

    rows = AnalyticsService(session).under_allocated_resources(START, END)

    assert [(row.employee_id, row.avg_hours_per_week, row.avg_utilization_pct, row.weeks_count) for row in rows] == [
        ("E1", 10.0, 25.0, 4),
        ("E7", 20.0, 50.0, 4),
    ]


def test_heatmap_limits_to_top_peaks(seed, session):
    seed(
        [
            hour_entry("E1", W2, 50),
            hour_entry("E1", W1, 10),
            hour_entry("E2", W1, 30),
            hour_entry("E3", W1, 20),
        ]
    )

    cells = AnalyticsService(session).heatmap(START, END, top_n=2)

    assert [(cell.employee_id, cell.week_start_date, cell.hours, cell.utilization_pct) for cell in cells] == [
        ("E1", W1, 10.0, 25.0),
        ("E1", W2, 50.0, 125.0),
        ("E2", W1, 30.0, 75.0),
    ]


def test_demand_realism_composite(seed, session):
    seed(
        [
            hour_entry("E1", W1, 60, name="Alice", project="Apollo"),
            hour_entry("E2", W1, 15, name="Bob", project="Zeus", demand_type="Soft Demand"),
            hour_entry("P1", W1, 25, name="TBD Analyst", project="Zeus", demand_type="Soft Demand"),
        ]
    )

    result = AnalyticsService(session).demand_realism(START, END)

    assert result.total_hours == 100.0
    assert result.avg_weekly_fte == 0.1
    assert result.unique_resources == 3
    assert result.unique_projects == 2
    assert {row.resource_type: row.pct_of_total for row in result.pool_vs_named} == {
        "Named Resource": 75.0,
        "Pool/Placeholder": 25.0,
    }
    assert {row.demand_type: row.pct_of_total for row in result.demand_type_breakdown} == {
        "Hard Demand": 60.0,
        "Soft Demand": 40.0,
    }
    assert result.realism_score == 85


def test_realism_score_without_named_resources():
    assert realism_score([]) == 40
    assert realism_score([schemas.ResourceTypeShare(resource_type="Named Resource", total_hours=1, pct_of_total=100)]) == 100


def test_realism_on_empty_window(session):
    result = AnalyticsService(session).demand_realism(START, END)

    assert result.total_hours == 0
    assert result.pool_vs_named == []
    assert result.realism_score == 40


def test_filters_and_date_range(seed, session):
    seed(
        [
            hour_entry("E1", W2, 10, project="Zeus", phase="Test"),
            hour_entry("E1", W1, 10, project="Apollo", phase=""),
            hour_entry("E2", W1, 10, project="Apollo", phase="Build"),
        ]
    )
    service = AnalyticsService(session)

    assert service.projects() == ["Apollo", "Zeus"]
    assert service.phases() == ["Build", "Test"]
    date_range = service.data_date_range()
    assert (date_range.earliest_date, date_range.latest_date, date_range.week_count) == (W1, W2, 2)


@pytest.mark.parametrize(
    "employee_id, name, expected",
    [
        ("E1", "Alice", False),
        ("E1", "General Labor", True),
        ("E1", "Resource pool", True),
        ("E1", "tbd", True),
        ("E1", "Placeholder QA", True),
        ("E1", "Offshore Dev", True),
        ("9999999042", "Jane", True),
        ("19999999", "Jane", False),
        ("E1", None, False),
    ],
)
def test_pool_classification_is_total(employee_id, name, expected):
    assert is_pool_resource(employee_id, name) is expected
    assert resource_class(employee_id, name) in {"Pool/Placeholder", "Named Resource"}


def test_resolve_window_defaults_to_next_26_weeks():
    assert resolve_window(None, None, today=date(2024, 1, 1)) == ("2024-01-01", "2024-07-01")
    assert resolve_window("2024-02-01", None, today=date(2024, 1, 1)) == ("2024-01-01", "2024-07-01")


def test_resolve_window_validates_explicit_dates():
    assert resolve_window("2024-01-01", "2024-02-01") == ("2024-01-01", "2024-02-01")
    with pytest.raises(InvalidDateWindowError):
        resolve_window("01/02/2024", "2024-02-01")
    with pytest.raises(InvalidDateWindowError):
        resolve_window("2024-03-01", "2024-02-01")
