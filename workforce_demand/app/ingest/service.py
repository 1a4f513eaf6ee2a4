"""Workbook ingestion: parse, persist per file, record provenance."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from workforce_demand.app.core.config import Settings
from workforce_demand.app.core.database import Database
from workforce_demand.app.ingest.domain import DemandType, HourRecord
from workforce_demand.app.ingest.models import FileUpload, HourEntry
from workforce_demand.app.ingest.parser import BudgetTrackerParser
from workforce_demand.app.ingest.schemas import FileImportResult, UploadHistoryItem, UploadResponse

logger = logging.getLogger(__name__)


class UploadValidationError(Exception):
    """Raised when an upload request is rejected before any parsing."""


def validate_upload(files: Sequence[Tuple[str, int]], settings: Settings) -> None:
    """Check ``(filename, size)`` pairs against the upload limits."""

    if not files:
        raise UploadValidationError("No files uploaded")
    if len(files) > settings.max_upload_files:
        raise UploadValidationError(f"Too many files (maximum {settings.max_upload_files})")

    allowed = {ext.lower() for ext in settings.allowed_extensions}
    for filename, size in files:
        suffix = PurePath(filename or "").suffix.lower()
        if suffix not in allowed:
            raise UploadValidationError(
                f"Invalid file type for '{filename}'. Only Excel files ({', '.join(sorted(allowed))}) are allowed"
            )
        if size <= 0:
            raise UploadValidationError(f"Uploaded file '{filename}' is empty")
        if size > settings.max_upload_bytes:
            raise UploadValidationError(f"Uploaded file '{filename}' exceeds {settings.max_upload_bytes} bytes")


class IngestionService:
    """Import budget tracker workbooks into the hours table.

    Each file is handled on its own: its records commit in one transaction
    and its ``file_uploads`` row is written afterwards whatever the outcome,
    so one bad file never affects its siblings.
    """

    def __init__(self, database: Database, parser: Optional[BudgetTrackerParser] = None) -> None:
        self._database = database
        self._parser = parser or BudgetTrackerParser()

    def import_files(
        self,
        files: Iterable[Tuple[str, bytes]],
        demand_type: DemandType,
    ) -> UploadResponse:
        results = [self.import_file(filename, content, demand_type) for filename, content in files]
        return UploadResponse(
            success=all(result.success for result in results),
            results=results,
            total_records_imported=sum(result.records_imported for result in results),
        )

    def import_file(self, filename: str, file_bytes: bytes, demand_type: DemandType) -> FileImportResult:
        demand_type = DemandType(demand_type)
        parsed = self._parser.parse(file_bytes, demand_type)
        errors = list(parsed.errors)
        warnings = list(parsed.warnings)

        imported = 0
        if parsed.records:
            try:
                imported = self._persist_records(parsed.records)
            except SQLAlchemyError as exc:
                logger.exception("Failed to save records from '%s'", filename)
                errors.append(f"Failed to save records: {exc}")

        try:
            self._record_upload(filename, demand_type, imported, errors, warnings)
        except SQLAlchemyError as exc:
            logger.exception("Failed to record upload history for '%s'", filename)
            errors.append(f"Failed to record upload: {exc}")

        logger.info("Imported %d records from '%s' (%d errors)", imported, filename, len(errors))
        return FileImportResult(
            filename=filename,
            records_imported=imported,
            errors=errors,
            warnings=warnings,
            success=not errors,
        )

    def clear_all(self) -> int:
        """Delete every hours row and every upload row; returns hours deleted."""

        with self._database.session() as session:
            deleted = session.execute(delete(HourEntry)).rowcount or 0
            session.execute(delete(FileUpload))
        logger.info("Cleared %d hours records and all upload history", deleted)
        return deleted

    def list_history(self, limit: int = 50) -> List[UploadHistoryItem]:
        stmt = select(FileUpload).order_by(FileUpload.uploaded_at.desc(), FileUpload.id.desc()).limit(limit)
        with self._database.session() as session:
            uploads = list(session.scalars(stmt))
        return [
            UploadHistoryItem(
                id=upload.id,
                filename=upload.filename,
                uploaded_at=upload.uploaded_at,
                demand_type=upload.demand_type,
                records_imported=upload.records_imported,
                errors=_decode_list(upload.errors),
                warnings=_decode_list(upload.warnings),
            )
            for upload in uploads
        ]

    # ------------------------------------------------------------------ internal
    def _persist_records(self, records: Sequence[HourRecord]) -> int:
        with self._database.session() as session:
            session.add_all([HourEntry(**record.as_row()) for record in records])
        return len(records)

    def _record_upload(
        self,
        filename: str,
        demand_type: DemandType,
        imported: int,
        errors: List[str],
        warnings: List[str],
    ) -> None:
        with self._database.session() as session:
            session.add(
                FileUpload(
                    filename=filename,
                    uploaded_at=datetime.now(tz=timezone.utc),
                    demand_type=demand_type.value,
                    records_imported=imported,
                    errors=json.dumps(errors),
                    warnings=json.dumps(warnings),
                )
            )


def _decode_list(payload: Optional[str]) -> List[str]:
    if not payload:
        return []
    try:
        value = json.loads(payload)
    except json.JSONDecodeError:
        return [payload]
    return [str(item) for item in value] if isinstance(value, list) else [str(value)]
