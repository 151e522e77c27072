"""Database engine setup for SQLite with WAL mode.

SQLite holds recorded transaction state between CLI invocations. WAL
mode lets readers proceed while another transaction's state is written;
writers take the database write lock up front and queue behind each
other for up to the busy timeout.

SQLAlchemy Core (not ORM) is used because state rows are plain
key/value records with no relationships worth mapping.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine

from tripcheck.infrastructure.database.schema import metadata

BUSY_TIMEOUT_MS = 5000


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode enabled.

    The driver's implicit transaction handling is switched off and every
    SQLAlchemy transaction opens with ``BEGIN IMMEDIATE``, so a unit of
    work holds SQLite's write lock for its whole span. Connections
    carrying the ``tripcheck_begin="DEFERRED"`` execution option open a
    plain deferred transaction instead, for read-only listings.
    """
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin(conn: Connection) -> None:
        mode = conn.get_execution_options().get("tripcheck_begin", "IMMEDIATE")
        conn.exec_driver_sql(f"BEGIN {mode}")

    return engine


def init_database(db_path: Path) -> Engine:
    """Initialize the state database at *db_path*.

    Creates parent directories and all tables from :data:`schema.metadata`.
    Idempotent: safe to call on an existing database.

    Returns the engine ready for use.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path)
    metadata.create_all(engine)
    return engine
