"""Command: board integrity audit."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kanbanctl.commands._base import KanbanCommand

if TYPE_CHECKING:
    from kanbanctl.commands._context import AppContext


@click.command(
    cls=KanbanCommand,
    examples="""\
  kanbanctl check <board-id>
  kanbanctl check <board-id> --errors-only
  kanbanctl check <board-id> --min-severity error
  kanbanctl --json check <board-id>""",
)
@click.argument("board_id")
@click.option(
    "--min-severity",
    type=click.Choice(["warning", "error"]),
    default="warning",
    help="Hide issues below this severity.",
)
@click.option("--errors-only", is_flag=True, help="Shortcut for --min-severity error.")
@click.pass_obj
def check(app: AppContext, board_id: str, min_severity: str, errors_only: bool) -> None:
    """Audit a board's columns, cards, and WIP limits. Read-only."""
    from kanbanctl.services.board import BoardService

    threshold = "error" if errors_only else min_severity
    app.emit(
        BoardService(app.workspace).validate_board_integrity(board_id, min_severity=threshold)
    )
