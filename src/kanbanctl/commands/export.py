"""Command: board export as JSON or CSV."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from kanbanctl.commands._base import KanbanCommand, enum_choice
from kanbanctl.domain.types import ExportFormat

if TYPE_CHECKING:
    from kanbanctl.commands._context import AppContext


@click.command(
    cls=KanbanCommand,
    examples="""\
  kanbanctl export <board-id>
  kanbanctl export <board-id> --format csv --output cards.csv
  kanbanctl export <board-id> --output backup.json""",
)
@click.argument("board_id")
@click.option(
    "--format",
    "fmt",
    type=enum_choice(ExportFormat),
    default=str(ExportFormat.JSON),
    help="Output format.",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write to this file instead of stdout.",
)
@click.pass_obj
def export(app: AppContext, board_id: str, fmt: str, output: Path | None) -> None:
    """Export a board. JSON output can be re-imported with 'board import'."""
    from kanbanctl.services.board import BoardService

    app.emit(BoardService(app.workspace).export_board(board_id, fmt, output=output))
