"""Config repository: the singleton global configuration document.

Until something is written the document is the seed built from the
``[defaults]`` settings section, so a fresh workspace needs no setup.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import pydantic
import structlog
from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from kanbanctl.domain.errors import InternalError
from kanbanctl.domain.models import BoardDefaults, ConfigDocument
from kanbanctl.domain.timestamps import now_iso
from kanbanctl.infrastructure.database.schema import CONFIG_ROW_ID, app_config

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.engine import Engine

    from kanbanctl.infrastructure.filesystem import BackupStore

logger = structlog.get_logger(__name__)

CONFIG_BACKUP_KEY = "config"


class ConfigRepository:
    """Reads and writes the ``app_config`` row."""

    def __init__(self, engine: Engine, backups: BackupStore, *, seed: BoardDefaults) -> None:
        self._engine = engine
        self._backups = backups
        self._seed = seed
        self._lock = threading.Lock()

    def get(self) -> ConfigDocument:
        """The stored document, or the seed when none was saved yet."""
        try:
            with self._engine.connect() as conn:
                row = conn.execute(
                    select(app_config.c.document).where(app_config.c.id == CONFIG_ROW_ID)
                ).first()
        except SQLAlchemyError as exc:
            raise InternalError(f"Storage failure reading config: {exc}") from exc
        if row is None:
            return ConfigDocument(defaults=self._seed)
        try:
            return ConfigDocument.model_validate_json(row.document)
        except pydantic.ValidationError as exc:
            raise InternalError(
                "Stored configuration document is corrupt",
                code="CORRUPT_DOCUMENT",
                detail={"errors": exc.error_count()},
            ) from exc

    def save_defaults(self, defaults: BoardDefaults) -> ConfigDocument:
        """Replace the stored defaults and stamp ``updated_at``."""
        with self._lock:
            document = ConfigDocument(defaults=defaults, updated_at=now_iso())
            payload = document.model_dump_json(by_alias=True, exclude_none=True)
            try:
                with self._engine.begin() as conn:
                    exists = conn.execute(
                        select(app_config.c.id).where(app_config.c.id == CONFIG_ROW_ID)
                    ).first()
                    if exists is None:
                        conn.execute(
                            insert(app_config).values(
                                id=CONFIG_ROW_ID,
                                document=payload,
                                updated_at=document.updated_at,
                            )
                        )
                    else:
                        conn.execute(
                            update(app_config)
                            .where(app_config.c.id == CONFIG_ROW_ID)
                            .values(document=payload, updated_at=document.updated_at)
                        )
            except SQLAlchemyError as exc:
                raise InternalError(f"Storage failure writing config: {exc}") from exc
        logger.info("config_saved", columns=len(defaults.columns))
        return document

    def reset(self) -> tuple[ConfigDocument, Path | None]:
        """Back up the stored document (if any), then fall back to the seed."""
        with self._lock:
            current = self.get()
            backup: Path | None = None
            if current.updated_at is not None:
                try:
                    backup = self._backups.write(CONFIG_BACKUP_KEY, current.to_document())
                except OSError as exc:
                    raise InternalError(f"Failed to write config backup: {exc}") from exc
            try:
                with self._engine.begin() as conn:
                    conn.execute(delete(app_config).where(app_config.c.id == CONFIG_ROW_ID))
            except SQLAlchemyError as exc:
                raise InternalError(f"Storage failure resetting config: {exc}") from exc
        logger.info("config_reset", backup=backup.name if backup else None)
        return ConfigDocument(defaults=self._seed), backup
