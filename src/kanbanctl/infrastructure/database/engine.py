"""Database engine setup for SQLite with WAL mode.

SQLite is the persistence layer: WAL mode for concurrent reads and ACID
transactions so a reader never sees a half-written board document.
The DB is stored at {workspace_root}/.kanbanctl/kanbanctl.db.

SQLAlchemy Core (not ORM) is used because every write replaces one whole
document row; there is nothing for an identity map to track.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from kanbanctl.config.discovery import BACKUPS_DIRNAME, DATABASE_FILENAME
from kanbanctl.infrastructure.database.schema import metadata

BUSY_TIMEOUT_SECONDS = 30


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode and a busy timeout."""
    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        connect_args={"timeout": BUSY_TIMEOUT_SECONDS},
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def init_database(data_dir: Path) -> Engine:
    """Initialize the database at ``{data_dir}/kanbanctl.db``.

    Creates the data directory, its ``backups/`` subdirectory, and all
    tables from :data:`schema.metadata`.

    Idempotent; safe to call on an existing workspace.

    Returns the engine ready for use.
    """
    data_dir.mkdir(parents=True, exist_ok=True)
    (data_dir / BACKUPS_DIRNAME).mkdir(exist_ok=True)

    engine = create_db_engine(data_dir / DATABASE_FILENAME)
    metadata.create_all(engine)
    return engine
