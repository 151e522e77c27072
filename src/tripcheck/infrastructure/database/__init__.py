"""SQLite state database engine and schema via SQLAlchemy Core."""

from tripcheck.infrastructure.database.engine import create_db_engine, init_database
from tripcheck.infrastructure.database.schema import metadata, protocol_state

__all__ = [
    "create_db_engine",
    "init_database",
    "metadata",
    "protocol_state",
]
