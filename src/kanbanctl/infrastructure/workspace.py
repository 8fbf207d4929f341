"""Workspace: the storage context injected into every service.

The Workspace owns the database engine, the backup store, and the board
and config repositories. It is constructed explicitly from
:class:`KanbanSettings`; there is no global instance.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from kanbanctl.domain.models import BoardDefaults
from kanbanctl.infrastructure.database.engine import init_database
from kanbanctl.infrastructure.filesystem import BackupStore
from kanbanctl.infrastructure.repositories.boards import BoardRepository
from kanbanctl.infrastructure.repositories.config import ConfigRepository

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.engine import Engine

    from kanbanctl.config.settings import KanbanSettings

logger = logging.getLogger(__name__)


class Workspace:
    """Repository bundle for one ``.kanbanctl/`` data directory.

    Constructed once at CLI startup (or per test) and passed to services
    through their :class:`BaseService` constructor.
    """

    def __init__(self, settings: KanbanSettings) -> None:
        self._settings = settings
        self._engine: Engine = init_database(settings.data_dir)
        self._backups = BackupStore(
            settings.location.backups_dir,
            max_count=settings.backup.max_count,
        )
        self._boards = BoardRepository(
            self._engine,
            self._backups,
            max_retries=settings.store.max_retries,
        )
        self._config = ConfigRepository(
            self._engine,
            self._backups,
            seed=BoardDefaults.model_validate(settings.defaults.model_dump()),
        )
        logger.debug("Opened workspace at %s", settings.data_dir)

    @property
    def root(self) -> Path:
        """The workspace root directory."""
        return self._settings.workspace_root

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def settings(self) -> KanbanSettings:
        return self._settings

    @property
    def boards(self) -> BoardRepository:
        return self._boards

    @property
    def config(self) -> ConfigRepository:
        return self._config

    @property
    def backups(self) -> BackupStore:
        return self._backups

    def close(self) -> None:
        """Release pooled database connections."""
        self._engine.dispose()

    def __enter__(self) -> Workspace:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
