"""Board repository: whole-document read-modify-write with version checks.

Every board is persisted as one JSON document in the ``boards`` table. A
write is always ``load -> mutate a copy -> compare_and_swap``. Two controls
close the lost-update gap:

- a per-board :class:`threading.Lock` held across load, mutate, and save
  (locks belong to the repository instance, never to module state);
- the ``version`` column, compared in the ``UPDATE ... WHERE`` clause so a
  writer outside this process cannot be silently overwritten.

A version mismatch raises :class:`VersionConflictError`; :meth:`mutate`
reloads and re-applies the mutation up to ``max_retries`` times. Business
rule errors raised by the mutation are never retried.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pydantic
import structlog
from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from kanbanctl.config.logging import log_context
from kanbanctl.domain.errors import (
    ConflictError,
    InternalError,
    KanbanError,
    NotFoundError,
    VersionConflictError,
)
from kanbanctl.domain.models import Board
from kanbanctl.domain.validation import ensure_valid, validate_board_document
from kanbanctl.infrastructure.database.schema import boards

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from kanbanctl.infrastructure.filesystem import BackupStore

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StoredBoard:
    """A loaded board and the version it was read at."""

    board: Board
    version: int


def backup_key(board_id: str) -> str:
    return f"board-{board_id}"


@dataclass
class _BoardLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class BoardRepository:
    """Encapsulates SQL and locking for board documents."""

    def __init__(self, engine: Engine, backups: BackupStore, *, max_retries: int = 3) -> None:
        self._engine = engine
        self._backups = backups
        self._max_retries = max_retries
        self._locks: dict[str, _BoardLock] = {}
        self._locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    @contextmanager
    def lock(self, board_id: str) -> Iterator[None]:
        """Hold the exclusive in-process lock for *board_id*.

        The entry lives only while a thread holds or waits for it, so ids
        of deleted or never-created boards do not accumulate.
        """
        with self._locks_guard:
            entry = self._locks.setdefault(board_id, _BoardLock())
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[board_id]

    def active_locks(self) -> int:
        """Number of board ids currently locked or awaited."""
        with self._locks_guard:
            return len(self._locks)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load(self, board_id: str) -> StoredBoard:
        """Load one board with its current version.

        Raises :class:`NotFoundError` when no row exists and
        :class:`InternalError` (``CORRUPT_DOCUMENT``) when the stored JSON
        no longer parses into a board.
        """
        with self._storage_errors("load"), self._engine.connect() as conn:
            row = conn.execute(
                select(boards.c.version, boards.c.document).where(boards.c.id == board_id)
            ).first()
        if row is None:
            raise NotFoundError("Board", board_id)
        return StoredBoard(board=self._decode(board_id, row.document), version=int(row.version))

    def get(self, board_id: str) -> Board:
        return self.load(board_id).board

    def exists(self, board_id: str) -> bool:
        with self._storage_errors("exists"), self._engine.connect() as conn:
            row = conn.execute(select(boards.c.id).where(boards.c.id == board_id)).first()
        return row is not None

    def list_all(self) -> list[Board]:
        """Every board, oldest first."""
        with self._storage_errors("list"), self._engine.connect() as conn:
            rows = conn.execute(
                select(boards.c.id, boards.c.document).order_by(
                    boards.c.created_at, boards.c.id
                )
            ).all()
        return [self._decode(row.id, row.document) for row in rows]

    def find_by_title(self, title: str) -> Board | None:
        with self._storage_errors("find_by_title"), self._engine.connect() as conn:
            row = conn.execute(
                select(boards.c.id, boards.c.document).where(boards.c.title == title)
            ).first()
        return self._decode(row.id, row.document) if row is not None else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, board: Board) -> StoredBoard:
        """Persist a new board at version 1."""
        document = self._encode(board)
        with self._storage_errors("insert", title=board.title):
            with self._engine.begin() as conn:
                conn.execute(
                    insert(boards).values(
                        id=board.id,
                        title=board.title,
                        version=1,
                        document=document,
                        created_at=board.created_at,
                        updated_at=board.updated_at,
                    )
                )
        logger.info("board_inserted", board_id=board.id, title=board.title)
        return StoredBoard(board=board, version=1)

    def compare_and_swap(self, board: Board, expected_version: int) -> int:
        """Replace the stored document if it is still at *expected_version*.

        Returns the new version. Raises :class:`VersionConflictError` when
        the row moved on, :class:`NotFoundError` when it is gone.
        """
        document = self._encode(board)
        with self._storage_errors("compare_and_swap", title=board.title):
            with self._engine.begin() as conn:
                result = conn.execute(
                    update(boards)
                    .where(boards.c.id == board.id, boards.c.version == expected_version)
                    .values(
                        title=board.title,
                        version=expected_version + 1,
                        document=document,
                        updated_at=board.updated_at,
                    )
                )
                if result.rowcount == 0:
                    self._raise_missing_or_conflict(conn, board.id, expected_version)
        logger.debug("board_saved", board_id=board.id, version=expected_version + 1)
        return expected_version + 1

    def mutate[T](
        self,
        board_id: str,
        fn: Callable[[Board], tuple[Board, T]],
    ) -> tuple[Board, T]:
        """Apply a pure mutation under the board lock and persist the result.

        *fn* receives the loaded board and returns ``(new_board, subject)``.
        Version conflicts reload and retry; anything else propagates.
        """
        with self.lock(board_id), log_context(board_id=board_id):
            attempt = 0
            while True:
                stored = self.load(board_id)
                new_board, subject = fn(stored.board)
                try:
                    self.compare_and_swap(new_board, stored.version)
                except VersionConflictError:
                    if attempt >= self._max_retries:
                        logger.warning("board_version_conflict", attempts=attempt + 1)
                        raise
                    attempt += 1
                    logger.debug("board_mutation_retry", attempt=attempt)
                    continue
                return new_board, subject

    def delete(self, board_id: str) -> Path:
        """Back up then delete a board. Returns the backup path."""
        with self.lock(board_id):
            stored = self.load(board_id)
            backup = self._write_backup(stored.board)
            with self._storage_errors("delete"), self._engine.begin() as conn:
                conn.execute(delete(boards).where(boards.c.id == board_id))
        logger.info("board_deleted", board_id=board_id, backup=backup.name)
        return backup

    def restore(self, board_id: str) -> Board:
        """Bring back the newest backup of *board_id*.

        An existing board is itself backed up before being overwritten.
        """
        with self.lock(board_id):
            path = self._backups.latest(backup_key(board_id))
            if path is None:
                raise NotFoundError("Backup", board_id)
            try:
                raw = self._backups.read(path)
            except (OSError, ValueError) as exc:
                raise InternalError(
                    f"Cannot read backup {path.name}: {exc}",
                    code="CORRUPT_DOCUMENT",
                    detail={"board_id": board_id, "backup": path.name},
                ) from exc
            restored = self._decode(board_id, json.dumps(raw))

            if self.exists(board_id):
                current = self.load(board_id)
                self._write_backup(current.board)
                self.compare_and_swap(restored, current.version)
            else:
                self.insert(restored)
        logger.info("board_restored", board_id=board_id, backup=path.name)
        return restored

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _write_backup(self, board: Board) -> Path:
        try:
            return self._backups.write(backup_key(board.id), board.to_document())
        except OSError as exc:
            raise InternalError(
                f"Failed to write backup for board '{board.id}': {exc}",
                detail={"board_id": board.id},
            ) from exc

    @staticmethod
    def _encode(board: Board) -> str:
        document = board.to_document()
        ensure_valid(validate_board_document(document), what="board document")
        return json.dumps(document, ensure_ascii=False)

    @staticmethod
    def _decode(board_id: str, raw: str) -> Board:
        try:
            return Board.model_validate_json(raw)
        except pydantic.ValidationError as exc:
            raise InternalError(
                f"Stored document for board '{board_id}' is corrupt",
                code="CORRUPT_DOCUMENT",
                detail={"board_id": board_id, "errors": exc.error_count()},
            ) from exc

    @staticmethod
    def _raise_missing_or_conflict(conn: Connection, board_id: str, expected: int) -> None:
        row = conn.execute(select(boards.c.version).where(boards.c.id == board_id)).first()
        if row is None:
            raise NotFoundError("Board", board_id)
        raise VersionConflictError(board_id, expected)

    @contextmanager
    def _storage_errors(self, op: str, *, title: str | None = None) -> Iterator[None]:
        """Translate SQLAlchemy failures into domain errors."""
        try:
            yield
        except KanbanError:
            raise
        except IntegrityError as exc:
            raise ConflictError(
                f"Board with title '{title}' already exists",
                code="DUPLICATE_TITLE",
                detail={"title": title},
            ) from exc
        except SQLAlchemyError as exc:
            logger.error("board_storage_error", op=op, error=str(exc))
            raise InternalError(
                f"Storage failure during board {op}: {exc}",
                detail={"op": op},
            ) from exc
