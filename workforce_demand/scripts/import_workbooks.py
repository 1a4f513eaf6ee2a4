#!/usr/bin/env python3
"""Bulk-import budget tracker workbooks from disk.

Example::

    python -m workforce_demand.scripts.import_workbooks trackers/*.xlsx --demand-type "Soft Demand"
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from workforce_demand.app.core.config import get_settings
from workforce_demand.app.core.database import Database
from workforce_demand.app.core.log_config import configure_logging
from workforce_demand.app.ingest.domain import DemandType
from workforce_demand.app.ingest.service import IngestionService, UploadValidationError, validate_upload

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import budget tracker workbooks into the hours database.")
    parser.add_argument("files", nargs="*", type=Path, help="Workbook paths (.xlsx/.xls/.xlsm)")
    parser.add_argument(
        "--demand-type",
        default=DemandType.HARD.value,
        choices=[item.value for item in DemandType],
        help="Demand type applied to every record of this run",
    )
    parser.add_argument("--database-url", default=None, help="Override WD_DATABASE_URL")
    parser.add_argument("--clear", action="store_true", help="Delete all existing data before importing")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    payloads = [(path.name, path.read_bytes()) for path in args.files]
    try:
        validate_upload([(name, len(content)) for name, content in payloads], settings)
    except UploadValidationError as exc:
        if not (args.clear and not payloads):
            logger.error("%s", exc)
            return 2

    database = Database(args.database_url or settings.database_url, echo=settings.database_echo)
    try:
        database.init_schema()
        service = IngestionService(database)
        if args.clear:
            service.clear_all()
        if not payloads:
            return 0
        response = service.import_files(payloads, DemandType(args.demand_type))
    finally:
        database.dispose()

    print(json.dumps(response.model_dump(by_alias=True), indent=2))
    return 0 if response.success else 1


if __name__ == "__main__":
    sys.exit(main())
