"""Database configuration and session management."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Owns one engine and its session factory for the lifetime of the app.

    Instances are created explicitly (by the application lifespan, the CLI,
    or a test fixture) and released with :meth:`dispose`.
    """

    def __init__(self, url: str, *, echo: bool = False) -> None:
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self.url = url
        self.engine = create_engine(url, echo=echo, future=True, connect_args=connect_args)
        self._session_factory = sessionmaker(
            bind=self.engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
            class_=Session,
        )

    def init_schema(self) -> None:
        """Create database tables."""

        from workforce_demand.app.ingest import models as ingest_models  # noqa: F401  # Ensure models are imported

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database schema ready at %s", self.engine.url)

    def new_session(self) -> Session:
        return self._session_factory()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Context manager yielding a transactional SQLAlchemy session."""

        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database connection closed")
