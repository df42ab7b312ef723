"""
Database engine and session factory.

SQLite connections open every transaction with BEGIN IMMEDIATE so concurrent
writers queue on the database lock (bounded by busy_timeout) instead of
failing when a read lock is upgraded. PostgreSQL transactions get a
lock_timeout so no request blocks on a row lock indefinitely.
"""

import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={
                "check_same_thread": False,  # sessions are used from the threadpool
                "timeout": settings.LOCK_TIMEOUT_MS / 1000,
            },
        )
        _configure_sqlite(engine)
    else:
        engine = create_engine(database_url, pool_pre_ping=True)
        if engine.dialect.name == "postgresql":
            _configure_postgresql(engine)
    return engine


def _configure_sqlite(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, _):
        # take over transaction control from the sqlite3 driver
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.execute(f"PRAGMA busy_timeout = {int(settings.LOCK_TIMEOUT_MS)}")
        cursor.execute("PRAGMA journal_mode = WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def _configure_postgresql(engine: Engine) -> None:
    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql(f"SET LOCAL lock_timeout = {int(settings.LOCK_TIMEOUT_MS)}")


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    expire_on_commit=False,
)


def init_db() -> None:
    """Create all tables that don't exist yet."""
    import app.models  # noqa: F401  registers every mapped class

    from app.db.base import Base

    Base.metadata.create_all(bind=engine)
    logger.info("Database initialized")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
