"""Tests for BoardRepository: versioned writes, locking, backups."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest
from sqlalchemy import update
from sqlalchemy.engine import Engine

from kanbanctl.domain.errors import (
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
    VersionConflictError,
)
from kanbanctl.domain.ids import new_id
from kanbanctl.domain.models import Board
from kanbanctl.domain.operations import add_card, update_board
from kanbanctl.infrastructure.database.schema import boards
from kanbanctl.infrastructure.filesystem import BackupStore
from kanbanctl.infrastructure.repositories.boards import BoardRepository, backup_key
from tests.conftest import column_id, make_board


@pytest.fixture
def repo(db_engine: Engine, tmp_path: Path) -> BoardRepository:
    return BoardRepository(db_engine, BackupStore(tmp_path / "backups", max_count=3))


def _add(board: Board, title: str) -> tuple[Board, str]:
    board, card = add_card(board, column_id=column_id(board, "To Do"), title=title)
    return board, card.id


class TestReads:
    def test_insert_then_load(self, repo: BoardRepository) -> None:
        board = make_board()
        repo.insert(board)
        stored = repo.load(board.id)
        assert stored.version == 1
        assert stored.board == board

    def test_missing_board(self, repo: BoardRepository) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            repo.get(new_id())
        assert exc_info.value.code == "BOARD_NOT_FOUND"

    def test_list_all_oldest_first(self, repo: BoardRepository) -> None:
        first = make_board(title="First").model_copy(
            update={"created_at": "2024-01-01T00:00:00.000Z"}
        )
        second = make_board(title="Second").model_copy(
            update={"created_at": "2024-02-01T00:00:00.000Z"}
        )
        repo.insert(second)
        repo.insert(first)
        assert [b.title for b in repo.list_all()] == ["First", "Second"]

    def test_find_by_title(self, repo: BoardRepository) -> None:
        board = make_board(title="Findable")
        repo.insert(board)
        assert repo.find_by_title("Findable") == board
        assert repo.find_by_title("Missing") is None

    def test_corrupt_document(self, repo: BoardRepository, db_engine: Engine) -> None:
        board = make_board()
        repo.insert(board)
        with db_engine.begin() as conn:
            conn.execute(update(boards).values(document='{"id": 1}'))
        with pytest.raises(InternalError) as exc_info:
            repo.get(board.id)
        assert exc_info.value.code == "CORRUPT_DOCUMENT"


class TestWrites:
    def test_duplicate_title(self, repo: BoardRepository) -> None:
        repo.insert(make_board(title="Same"))
        with pytest.raises(ConflictError) as exc_info:
            repo.insert(make_board(title="Same"))
        assert exc_info.value.code == "DUPLICATE_TITLE"

    def test_invalid_document_never_written(self, repo: BoardRepository) -> None:
        board = make_board()
        repo.insert(board)
        with pytest.raises(ValidationError):
            repo.compare_and_swap(board.model_copy(update={"title": ""}), 1)
        assert repo.load(board.id).version == 1

    def test_duplicate_column_titles_never_written(self, repo: BoardRepository) -> None:
        board = make_board(["A", "B"])
        repo.insert(board)
        columns = [c.model_copy(update={"title": "A"}) for c in board.columns]
        with pytest.raises(ValidationError):
            repo.compare_and_swap(board.model_copy(update={"columns": columns}), 1)
        assert repo.load(board.id).version == 1

    def test_compare_and_swap_bumps_version(self, repo: BoardRepository) -> None:
        board = make_board()
        repo.insert(board)
        assert repo.compare_and_swap(update_board(board, {"description": "d"}), 1) == 2
        stored = repo.load(board.id)
        assert stored.version == 2
        assert stored.board.description == "d"

    def test_stale_version_conflicts(self, repo: BoardRepository) -> None:
        board = make_board()
        repo.insert(board)
        repo.compare_and_swap(update_board(board, {"description": "first"}), 1)
        with pytest.raises(VersionConflictError) as exc_info:
            repo.compare_and_swap(update_board(board, {"description": "stale"}), 1)
        err = exc_info.value
        assert err.code == "VERSION_CONFLICT"
        assert err.retryable is True
        assert repo.get(board.id).description == "first"

    def test_compare_and_swap_missing_row(self, repo: BoardRepository) -> None:
        with pytest.raises(NotFoundError):
            repo.compare_and_swap(make_board(), 1)


class TestMutate:
    def test_applies_and_persists(self, repo: BoardRepository) -> None:
        board = make_board()
        repo.insert(board)
        new_board, card_id = repo.mutate(board.id, lambda b: _add(b, "Card"))
        stored = repo.load(board.id)
        assert stored.version == 2
        assert stored.board.find_card(card_id) is not None
        assert new_board == stored.board

    def test_rule_errors_propagate_without_write(self, repo: BoardRepository) -> None:
        board = make_board()
        repo.insert(board)

        def fail(_: Board) -> tuple[Board, None]:
            raise ConflictError("nope")

        with pytest.raises(ConflictError):
            repo.mutate(board.id, fail)
        assert repo.load(board.id).version == 1

    def test_retries_after_concurrent_write(
        self, repo: BoardRepository, db_engine: Engine
    ) -> None:
        board = make_board()
        repo.insert(board)
        calls: list[int] = []

        def interleaved(current: Board) -> tuple[Board, str]:
            calls.append(1)
            if len(calls) == 1:
                # Another writer lands between our load and our save.
                with db_engine.begin() as conn:
                    conn.execute(update(boards).values(version=boards.c.version + 1))
            return _add(current, "Card")

        repo.mutate(board.id, interleaved)
        assert len(calls) == 2
        assert repo.load(board.id).version == 3

    def test_gives_up_after_max_retries(self, db_engine: Engine, tmp_path: Path) -> None:
        repo = BoardRepository(db_engine, BackupStore(tmp_path), max_retries=1)
        board = make_board()
        repo.insert(board)

        def always_stale(current: Board) -> tuple[Board, str]:
            with db_engine.begin() as conn:
                conn.execute(update(boards).values(version=boards.c.version + 1))
            return _add(current, "Card")

        with pytest.raises(VersionConflictError):
            repo.mutate(board.id, always_stale)


class TestDeleteRestore:
    def test_delete_writes_backup(self, repo: BoardRepository) -> None:
        board = make_board()
        repo.insert(board)
        backup = repo.delete(board.id)
        assert backup.is_file()
        assert backup.name.startswith(backup_key(board.id))
        assert not repo.exists(board.id)

    def test_restore_deleted_board(self, repo: BoardRepository) -> None:
        board, _ = _add(make_board(), "Keep me")
        repo.insert(board)
        repo.delete(board.id)
        restored = repo.restore(board.id)
        assert restored == board
        assert repo.get(board.id) == board

    def test_restore_over_existing_backs_it_up(self, repo: BoardRepository) -> None:
        board = make_board()
        repo.insert(board)
        repo.delete(board.id)
        repo.restore(board.id)
        repo.mutate(board.id, lambda b: _add(b, "After restore"))
        restored = repo.restore(board.id)
        assert restored.cards == []
        assert repo.load(board.id).version == 3

    def test_restore_without_backup(self, repo: BoardRepository) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            repo.restore(new_id())
        assert exc_info.value.code == "BACKUP_NOT_FOUND"


class TestLocks:
    def test_held_only_while_in_use(self, repo: BoardRepository) -> None:
        board_id = new_id()
        assert repo.active_locks() == 0
        with repo.lock(board_id):
            assert repo.active_locks() == 1
        assert repo.active_locks() == 0

    def test_released_after_mutate_and_delete(self, repo: BoardRepository) -> None:
        board = make_board()
        repo.insert(board)
        repo.mutate(board.id, lambda b: _add(b, "Card"))
        repo.delete(board.id)
        assert repo.active_locks() == 0

    def test_released_for_unknown_board(self, repo: BoardRepository) -> None:
        for _ in range(5):
            with pytest.raises(NotFoundError):
                repo.mutate(new_id(), lambda b: _add(b, "Card"))
        assert repo.active_locks() == 0

    def test_waiters_share_one_lock(self, repo: BoardRepository) -> None:
        board_id = new_id()
        entered = threading.Event()
        release = threading.Event()
        order: list[str] = []

        def holder() -> None:
            with repo.lock(board_id):
                order.append("holder")
                entered.set()
                release.wait(5)

        def waiter() -> None:
            with repo.lock(board_id):
                order.append("waiter")

        first = threading.Thread(target=holder)
        first.start()
        assert entered.wait(5)
        second = threading.Thread(target=waiter)
        second.start()
        second.join(0.2)
        assert order == ["holder"]
        release.set()
        first.join(5)
        second.join(5)
        assert order == ["holder", "waiter"]
        assert repo.active_locks() == 0
