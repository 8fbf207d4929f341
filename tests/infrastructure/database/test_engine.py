"""Tests for database engine setup and initialization."""

from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import insert, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from kanbanctl.infrastructure.database.engine import create_db_engine, init_database
from kanbanctl.infrastructure.database.schema import boards


class TestCreateDbEngine:
    def test_wal_mode_enabled(self, tmp_path: Path) -> None:
        engine = create_db_engine(tmp_path / "test.db")
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"
        engine.dispose()


class TestInitDatabase:
    def test_creates_data_directory(self, tmp_path: Path) -> None:
        engine = init_database(tmp_path / ".kanbanctl")
        assert (tmp_path / ".kanbanctl" / "kanbanctl.db").exists()
        assert (tmp_path / ".kanbanctl" / "backups").is_dir()
        engine.dispose()

    def test_creates_tables(self, db_engine: Engine) -> None:
        assert {"boards", "app_config"} <= set(inspect(db_engine).get_table_names())

    def test_idempotent(self, tmp_path: Path) -> None:
        init_database(tmp_path / ".kanbanctl").dispose()
        engine = init_database(tmp_path / ".kanbanctl")
        assert "boards" in inspect(engine).get_table_names()
        engine.dispose()

    def test_board_titles_unique(self, db_engine: Engine) -> None:
        row = {
            "title": "Same",
            "document": "{}",
            "created_at": "2024-01-01T00:00:00.000Z",
            "updated_at": "2024-01-01T00:00:00.000Z",
        }
        with db_engine.begin() as conn:
            conn.execute(insert(boards).values(id="a", **row))
        with pytest.raises(IntegrityError), db_engine.begin() as conn:
            conn.execute(insert(boards).values(id="b", **row))

    def test_version_defaults_to_one(self, db_engine: Engine) -> None:
        with db_engine.begin() as conn:
            conn.execute(
                insert(boards).values(
                    id="a",
                    title="T",
                    document="{}",
                    created_at="2024-01-01T00:00:00.000Z",
                    updated_at="2024-01-01T00:00:00.000Z",
                )
            )
            assert conn.execute(text("SELECT version FROM boards")).scalar() == 1
