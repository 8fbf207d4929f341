"""SQLite database engine and schema via SQLAlchemy Core."""

from kanbanctl.infrastructure.database.engine import create_db_engine, init_database
from kanbanctl.infrastructure.database.schema import app_config, boards, metadata

__all__ = [
    "app_config",
    "boards",
    "create_db_engine",
    "init_database",
    "metadata",
]
