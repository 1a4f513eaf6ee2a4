from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List


class ActualOrProposed(str, enum.Enum):
    ACTUAL = "A"
    PROPOSED = "P"


class DemandType(str, enum.Enum):
    """Caller-supplied tag for a whole upload; never read from the sheet."""

    HARD = "Hard Demand"
    SOFT = "Soft Demand"


@dataclass(slots=True)
class HourRecord:
    """One employee's hours on one project for one week (Sunday-anchored)."""

    project: str
    project_id: str
    employee_id: str
    resource_name: str
    rate: float
    activity_id: str
    phase: str
    milestone: str
    week_start_date: str
    actual_or_proposed: ActualOrProposed
    hours: float
    demand_type: DemandType

    def as_row(self) -> Dict[str, Any]:
        row = asdict(self)
        row["actual_or_proposed"] = self.actual_or_proposed.value
        row["demand_type"] = self.demand_type.value
        return row


@dataclass(slots=True)
class ParseResult:
    """Outcome of parsing one workbook."""

    records: List[HourRecord] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
