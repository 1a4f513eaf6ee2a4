"""Pool/placeholder resource detection.

A resource counts as a pool (an unstaffed or generic allocation) when its
name contains one of :data:`POOL_NAME_MARKERS` or its employee ID starts with
:data:`POOL_EMPLOYEE_PREFIX`. Matching is plain substring matching, so a
named person whose name happens to contain "Pool" is classified as a pool.
The Python and SQL forms below must stay in agreement.
"""

from __future__ import annotations

from typing import Optional, Tuple

from sqlalchemy import ColumnElement, func, or_

POOL_NAME_MARKERS: Tuple[str, ...] = ("General", "Pool", "TBD", "Placeholder", "Offshore")
POOL_EMPLOYEE_PREFIX = "9999999"

POOL_LABEL = "Pool/Placeholder"
NAMED_LABEL = "Named Resource"


def is_pool_resource(employee_id: Optional[str], resource_name: Optional[str]) -> bool:
    if (employee_id or "").startswith(POOL_EMPLOYEE_PREFIX):
        return True
    # case-insensitive, like the LIKE clauses below
    lowered = (resource_name or "").lower()
    return any(marker.lower() in lowered for marker in POOL_NAME_MARKERS)


def resource_class(employee_id: Optional[str], resource_name: Optional[str]) -> str:
    return POOL_LABEL if is_pool_resource(employee_id, resource_name) else NAMED_LABEL


def pool_resource_clause(employee_id_column, resource_name_column) -> ColumnElement[bool]:
    """SQL expression equivalent of :func:`is_pool_resource`."""

    name = func.lower(func.coalesce(resource_name_column, ""))
    conditions = [name.like(f"%{marker.lower()}%") for marker in POOL_NAME_MARKERS]
    conditions.append(employee_id_column.like(f"{POOL_EMPLOYEE_PREFIX}%"))
    return or_(*conditions)
