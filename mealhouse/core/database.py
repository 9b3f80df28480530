"""Database engine and session management."""

import logging
from collections.abc import Generator

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from mealhouse.core.config import Settings
from mealhouse.models import Base

logger = logging.getLogger(__name__)


def _engine_kwargs(settings: Settings) -> dict:
    """Engine options that bound every store call by DB_TIMEOUT_SEC."""
    url = settings.DATABASE_URL
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False, "timeout": settings.DB_TIMEOUT_SEC}}
        if ":memory:" in url or url.rstrip("/") in ("sqlite:", "sqlite+pysqlite:"):
            # One shared connection so every session sees the same in-memory database
            kwargs["poolclass"] = StaticPool
        return kwargs
    timeout_ms = int(settings.DB_TIMEOUT_SEC * 1000)
    return {
        "pool_pre_ping": True,
        "pool_timeout": settings.DB_TIMEOUT_SEC,
        "connect_args": {
            "connect_timeout": max(1, int(settings.DB_TIMEOUT_SEC)),
            "options": f"-c statement_timeout={timeout_ms} -c lock_timeout={timeout_ms}",
        },
    }


class Database:
    """Owns the engine and session factory for one application instance."""

    def __init__(self, settings: Settings) -> None:
        self.engine: Engine = create_engine(
            settings.DATABASE_URL,
            echo=settings.DEBUG,
            **_engine_kwargs(settings),
        )
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )

    def create_all(self) -> None:
        """Create all tables. Schema migrations are managed outside this service."""
        Base.metadata.create_all(self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency that yields a DB session and closes it when done."""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        logger.warning("Database connectivity check failed", exc_info=True)
        return False
