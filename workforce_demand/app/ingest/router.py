"""Upload endpoints: import workbooks, clear data, upload history."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool

from workforce_demand.app.core import dependencies
from workforce_demand.app.core.config import Settings
from workforce_demand.app.core.database import Database
from workforce_demand.app.ingest import schemas
from workforce_demand.app.ingest.domain import DemandType
from workforce_demand.app.ingest.service import IngestionService, validate_upload

router = APIRouter(prefix="/upload", tags=["upload"])


@router.post("", response_model=schemas.UploadResponse)
async def upload_workbooks(
    files: Optional[List[UploadFile]] = File(None, description="Budget tracker workbooks (.xlsx/.xls/.xlsm)"),
    demand_type: DemandType = Form(DemandType.HARD, alias="demandType"),
    database: Database = Depends(dependencies.get_database),
    settings: Settings = Depends(dependencies.get_app_settings),
):
    payloads = []
    for upload in files or []:
        payloads.append((upload.filename or "uploaded.xlsx", await upload.read()))

    validate_upload([(name, len(content)) for name, content in payloads], settings)
    service = IngestionService(database)
    return await run_in_threadpool(service.import_files, payloads, demand_type)


@router.delete("/clear", response_model=schemas.ClearResponse)
def clear_data(database: Database = Depends(dependencies.get_database)):
    deleted = IngestionService(database).clear_all()
    return schemas.ClearResponse(records_deleted=deleted)


@router.get("/history", response_model=List[schemas.UploadHistoryItem])
def upload_history(
    database: Database = Depends(dependencies.get_database),
    settings: Settings = Depends(dependencies.get_app_settings),
):
    return IngestionService(database).list_history(limit=settings.history_limit)
