"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from officehours.core.config import settings

logger = logging.getLogger(__name__)

_DEFAULT_POOL_KWARGS: dict[str, Any] = {
    "pool_size": 5,
    "max_overflow": 10,
    # Fail fast when the pool is exhausted instead of queueing requests
    "pool_timeout": 5,
    "pool_recycle": 300,
    "pool_pre_ping": True,
    "pool_use_lifo": True,
}


def _build_engine_kwargs(db_url: str) -> dict[str, Any]:
    """Return engine keyword arguments appropriate for the target dialect."""
    if db_url.startswith("sqlite"):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in db_url or db_url.rstrip("/").endswith("sqlite:"):
            kwargs["poolclass"] = StaticPool
        return kwargs

    kwargs = dict(_DEFAULT_POOL_KWARGS)
    kwargs["poolclass"] = QueuePool
    kwargs["connect_args"] = {
        "connect_timeout": 5,
        "application_name": "officehours",
    }
    return kwargs


def _enable_sqlite_savepoints(sqlite_engine: Engine) -> None:
    """Let SQLAlchemy own BEGIN so SAVEPOINT works on pysqlite."""

    @event.listens_for(sqlite_engine, "connect")
    def _disable_driver_transactions(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, "begin")
    def _emit_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


def create_db_engine(db_url: str, echo: bool = False) -> Engine:
    """Create an engine with pool settings for ``db_url``."""
    db_engine = create_engine(db_url, echo=echo, **_build_engine_kwargs(db_url))
    if db_url.startswith("sqlite"):
        _enable_sqlite_savepoints(db_engine)
    return db_engine


engine: Engine = create_db_engine(settings.database_url, echo=settings.database_echo)


@event.listens_for(engine, "connect")
def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
    connection_record.info["connect_time"] = datetime.now()
    logger.debug("Database connection established")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


__all__ = ["Base", "SessionLocal", "create_db_engine", "engine", "get_db"]
