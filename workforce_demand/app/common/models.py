"""Common SQLAlchemy mixins and utilities."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.orm import Mapped, mapped_column


class CreatedAtMixin:
    """Insert timestamp for append-only tables."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
