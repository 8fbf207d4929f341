"""Shared pytest fixtures and test helpers for kanbanctl tests."""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from kanbanctl.config.settings import KanbanSettings
from kanbanctl.domain.models import Board, BoardDefaults
from kanbanctl.infrastructure.database.engine import init_database
from kanbanctl.infrastructure.workspace import Workspace


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's KANBANCTL_* environment out of the tests."""
    monkeypatch.delenv("KANBANCTL_CONFIG", raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Engine:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path / ".kanbanctl")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    """Fully initialized workspace on a temp directory."""
    settings = KanbanSettings.from_cli(workspace_root=tmp_path)
    ws = Workspace(settings)
    try:
        yield ws
    finally:
        ws.close()


@pytest.fixture
def _isolated_workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp directory so the CLI creates an isolated workspace.

    Use via ``@pytest.mark.usefixtures("_isolated_workspace")`` on command
    test classes.
    """
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def make_board(
    columns: Sequence[str] = ("To Do", "In Progress", "Done"),
    *,
    title: str = "Test Board",
    **kwargs: Any,
) -> Board:
    """Build an unsaved board through the pure domain operation."""
    from kanbanctl.domain.operations import create_board

    return create_board(title=title, defaults=BoardDefaults(), columns=list(columns), **kwargs)


def column_id(board: Board | dict[str, Any], title: str) -> str:
    """Id of the column called *title* in a board model or document."""
    if isinstance(board, Board):
        return next(col.id for col in board.columns if col.title == title)
    return next(col["id"] for col in board["columns"] if col["title"] == title)


def create_board(workspace: Workspace, title: str, **kwargs: Any) -> dict[str, Any]:
    """Create a board via BoardService, asserting success. Returns the document."""
    from kanbanctl.services.board import BoardService

    result = BoardService(workspace).create_board(title, **kwargs)
    assert result.ok, result.error
    return result.data["board"]


def add_card(
    workspace: Workspace, board_id: str, col_id: str, title: str, **kwargs: Any
) -> dict[str, Any]:
    """Add a card via CardService, asserting success. Returns the card payload."""
    from kanbanctl.services.card import CardService

    result = CardService(workspace).add_card(board_id, col_id, title, **kwargs)
    assert result.ok, result.error
    return result.data["card"]


def get_board(workspace: Workspace, board_id: str) -> dict[str, Any]:
    from kanbanctl.services.board import BoardService

    result = BoardService(workspace).get_board(board_id)
    assert result.ok, result.error
    return result.data["board"]


def run_json(runner: CliRunner, args: Sequence[str]) -> dict[str, Any]:
    """Invoke the CLI with ``--json``, assert success, and return the payload."""
    from kanbanctl.cli import cli

    result = runner.invoke(cli, ["--json", *args])
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)
