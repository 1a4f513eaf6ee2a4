from __future__ import annotations

import io
import logging
from typing import List, Sequence

import pandas as pd

from workforce_demand.app.ingest.domain import DemandType, HourRecord, ParseResult
from workforce_demand.app.ingest.normalize import (
    cell_text,
    classify_actual_or_proposed,
    parse_date,
    parse_hours,
    week_start,
)

logger = logging.getLogger(__name__)

DETAIL_SHEET = "Detail"
MIN_ROWS = 6

# Header rows (0-based)
AP_ROW = 0
DATE_ROW = 2
PHASE_ROW = 3
MILESTONE_ROW = 4
FIRST_DATA_ROW = 5

# Row 1 sheet metadata columns
PROJECT_NAME_COL = 0
PROJECT_ID_COL = 1

# Employee row columns
ACTIVITY_COL = 0  # descriptive only, not stored
EMPLOYEE_ID_COL = 1
RESOURCE_NAME_COL = 2
RATE_COL = 3
ACTIVITY_ID_COL = 4
FIRST_WEEK_COL = 7  # column H

MIN_YEAR = 2020
MAX_YEAR = 2035
MAX_HOURS = 500.0

Grid = Sequence[Sequence[object]]


class BudgetTrackerParser:
    """Extract weekly hour records from a budget tracker workbook.

    The "Detail" sheet is read purely by position:

    * row 1: project name (A), project ID (B), Actual/Proposed flag per week column (H+)
    * row 3: week date per week column
    * row 4: phase per week column
    * row 5: milestone per week column
    * row 6+: activity (A), employee ID (B), resource name (C), rate (D),
      activity ID (E) and hours per week column (H+)

    Cells that cannot be read (bad date, year outside 2020-2035, hours outside
    (0, 500]) are skipped silently. Structural problems and unexpected
    failures are returned as errors; :meth:`parse` never raises.
    """

    def parse(self, file_bytes: bytes, demand_type: DemandType) -> ParseResult:
        result = ParseResult()
        try:
            grid = self._read_detail_grid(file_bytes)
            if grid is None:
                result.errors.append(f'No "{DETAIL_SHEET}" sheet found in workbook')
                return result
            if len(grid) < MIN_ROWS:
                result.errors.append(f"Sheet has insufficient rows (minimum {MIN_ROWS} required)")
                return result

            logger.debug("Detail sheet shape: %d rows x %d columns", len(grid), len(grid[0]) if grid else 0)
            result.records = self._extract_records(grid, DemandType(demand_type))
        except Exception as exc:
            logger.warning("Failed to parse workbook: %s", exc)
            result.records = []
            result.errors.append(f"Error parsing Excel file: {exc}")
            return result

        if result.records:
            result.warnings.append(f"Successfully extracted {len(result.records)} hours records")
        else:
            result.warnings.append("No valid hours records found in file")
        return result

    def _read_detail_grid(self, file_bytes: bytes):
        with pd.ExcelFile(io.BytesIO(file_bytes)) as workbook:
            if DETAIL_SHEET not in workbook.sheet_names:
                return None
            frame = workbook.parse(DETAIL_SHEET, header=None, dtype=object)
        return frame.values.tolist()

    def _extract_records(self, grid: Grid, demand_type: DemandType) -> List[HourRecord]:
        project_name = cell_text(_cell(grid, AP_ROW, PROJECT_NAME_COL))
        project_id = cell_text(_cell(grid, AP_ROW, PROJECT_ID_COL))

        records: List[HourRecord] = []
        for row_idx in range(FIRST_DATA_ROW, len(grid)):
            row = grid[row_idx]
            employee_id = cell_text(_cell(grid, row_idx, EMPLOYEE_ID_COL))
            if not employee_id:
                continue

            resource_name = cell_text(_cell(grid, row_idx, RESOURCE_NAME_COL))
            rate = parse_hours(_cell(grid, row_idx, RATE_COL))
            activity_id = cell_text(_cell(grid, row_idx, ACTIVITY_ID_COL))

            for col_idx in range(FIRST_WEEK_COL, len(row)):
                week_date = parse_date(_cell(grid, DATE_ROW, col_idx))
                if week_date is None:
                    continue
                if not MIN_YEAR <= week_date.year <= MAX_YEAR:
                    continue

                hours = parse_hours(row[col_idx])
                if hours <= 0 or hours > MAX_HOURS:
                    continue

                records.append(
                    HourRecord(
                        project=project_name,
                        project_id=project_id,
                        employee_id=employee_id,
                        resource_name=resource_name,
                        rate=rate,
                        activity_id=activity_id,
                        phase=cell_text(_cell(grid, PHASE_ROW, col_idx)),
                        milestone=cell_text(_cell(grid, MILESTONE_ROW, col_idx)),
                        week_start_date=week_start(week_date).isoformat(),
                        actual_or_proposed=classify_actual_or_proposed(_cell(grid, AP_ROW, col_idx)),
                        hours=hours,
                        demand_type=demand_type,
                    )
                )
        return records


def _cell(grid: Grid, row: int, col: int) -> object:
    if row >= len(grid):
        return None
    cells = grid[row]
    if col >= len(cells):
        return None
    return cells[col]
