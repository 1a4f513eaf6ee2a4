"""SQLAlchemy models for imported hours and upload provenance."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from workforce_demand.app.common.models import CreatedAtMixin
from workforce_demand.app.core.database import Base


class HourEntry(CreatedAtMixin, Base):
    """Append-only fact row; repeated uploads of the same period accumulate."""

    __tablename__ = "hours"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    project_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    employee_id: Mapped[str] = mapped_column(String(64), nullable=False)
    resource_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    activity_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    phase: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    milestone: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    # ISO text so window bounds compare as strings
    week_start_date: Mapped[str] = mapped_column(String(10), nullable=False)
    actual_or_proposed: Mapped[str] = mapped_column(String(1), nullable=False)
    hours: Mapped[float] = mapped_column(Float, nullable=False)
    demand_type: Mapped[str] = mapped_column(String(32), nullable=False)

    __table_args__ = (
        Index("idx_hours_week", "week_start_date"),
        Index("idx_hours_employee", "employee_id"),
        Index("idx_hours_demand_type", "demand_type"),
    )

    def __repr__(self) -> str:
        return f"<HourEntry(employee={self.employee_id}, week={self.week_start_date}, hours={self.hours})>"


class FileUpload(Base):
    """One row per ingestion attempt, successful or not."""

    __tablename__ = "file_uploads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    demand_type: Mapped[str] = mapped_column(String(32), nullable=False)
    records_imported: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    errors: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    warnings: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
