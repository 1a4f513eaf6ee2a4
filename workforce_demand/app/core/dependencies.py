"""Reusable FastAPI dependencies."""

from __future__ import annotations

from typing import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from workforce_demand.app.core.config import Settings
from workforce_demand.app.core.database import Database


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(database: Database = Depends(get_database)) -> Generator[Session, None, None]:
    db = database.new_session()
    try:
        yield db
    finally:
        db.close()
