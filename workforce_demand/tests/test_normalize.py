from __future__ import annotations

import math
from datetime import date, datetime

import pandas as pd
import pytest

from workforce_demand.app.ingest.domain import ActualOrProposed
from workforce_demand.app.ingest.normalize import (
    cell_text,
    classify_actual_or_proposed,
    parse_date,
    parse_hours,
    week_start,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1,234.5", 1234.5),
        ("40", 40.0),
        (37.5, 37.5),
        (12, 12.0),
        ("", 0.0),
        ("  ", 0.0),
        ("n/a", 0.0),
        (None, 0.0),
        (math.nan, 0.0),
    ],
)
def test_parse_hours_never_fails(raw, expected):
    assert parse_hours(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [
        "2024-01-03",
        "2024-01-03 00:00:00",
        "1/3/2024",
        "01/03/2024",
        "1/3/24",
        45294,
        "45294",
        datetime(2024, 1, 3, 0, 0),
        pd.Timestamp("2024-01-03"),
        date(2024, 1, 3),
    ],
)
def test_parse_date_accepts_every_representation_of_the_same_day(raw):
    parsed = parse_date(raw)

    assert parsed == date(2024, 1, 3)
    assert week_start(parsed) == date(2023, 12, 31)


def test_parse_date_falls_back_to_day_first_when_month_is_out_of_range():
    assert parse_date("13/01/2024") == date(2024, 1, 13)


@pytest.mark.parametrize("raw", ["", None, "not a date", "0", "-3", math.nan])
def test_parse_date_returns_none_for_unusable_values(raw):
    assert parse_date(raw) is None


def test_week_start_is_an_idempotent_sunday_anchor():
    day = date(2024, 3, 1)
    for offset in range(14):
        current = date.fromordinal(day.toordinal() + offset)
        anchored = week_start(current)

        assert anchored.weekday() == 6
        assert week_start(anchored) == anchored
        assert 0 <= (current - anchored).days < 7


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("A", ActualOrProposed.ACTUAL),
        ("actual", ActualOrProposed.ACTUAL),
        ("P", ActualOrProposed.PROPOSED),
        ("Proposed", ActualOrProposed.PROPOSED),
        # "A" wins over "P" when both letters are present
        ("PA", ActualOrProposed.ACTUAL),
        ("PLAN", ActualOrProposed.ACTUAL),
        ("", ActualOrProposed.PROPOSED),
        (None, ActualOrProposed.PROPOSED),
        ("X", ActualOrProposed.PROPOSED),
    ],
)
def test_classify_actual_or_proposed(raw, expected):
    assert classify_actual_or_proposed(raw) is expected


def test_cell_text_normalizes_spreadsheet_values():
    assert cell_text(1234567.0) == "1234567"
    assert cell_text(12.5) == "12.5"
    assert cell_text(math.nan) == ""
    assert cell_text(None) == ""
    assert cell_text("  E1 ") == "E1"
    assert cell_text(datetime(2024, 1, 3, 8, 30)) == "2024-01-03"
