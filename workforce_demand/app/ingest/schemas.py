"""Pydantic schemas for upload APIs."""

from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import Field

from workforce_demand.app.common.schemas import CamelModel


class FileImportResult(CamelModel):
    filename: str
    records_imported: int = 0
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    success: bool = False


class UploadResponse(CamelModel):
    success: bool
    results: List[FileImportResult]
    total_records_imported: int = 0


class UploadHistoryItem(CamelModel):
    id: int
    filename: str
    uploaded_at: datetime
    demand_type: str
    records_imported: int
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ClearResponse(CamelModel):
    success: bool = True
    message: str = "All data cleared successfully"
    records_deleted: int = 0
