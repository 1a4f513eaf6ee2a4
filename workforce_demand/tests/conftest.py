from __future__ import annotations

from typing import Iterable, Iterator

import pytest

from workforce_demand.app.core.database import Database
from workforce_demand.app.ingest.models import HourEntry


@pytest.fixture
def database(tmp_path) -> Iterator[Database]:
    db = Database(f"sqlite:///{tmp_path / 'hours.db'}")
    db.init_schema()
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    db = database.new_session()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def seed(database):
    def _seed(entries: Iterable[HourEntry]) -> None:
        with database.session() as db:
            db.add_all(list(entries))

    return _seed
