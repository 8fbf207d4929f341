"""Command group: column CRUD and reordering."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from kanbanctl.commands._base import KanbanGroup

if TYPE_CHECKING:
    from kanbanctl.commands._context import AppContext


@click.group(
    cls=KanbanGroup,
    examples="""\
  kanbanctl column add <board-id> Review --wip-limit 3 --color "#FF5733"
  kanbanctl column add <board-id> Backlog --position 0
  kanbanctl column update <board-id> <column-id> --no-wip-limit
  kanbanctl column reorder <board-id> <id-1> <id-2> <id-3>
  kanbanctl column delete <board-id> <column-id>""",
)
def column() -> None:
    """Add, update, reorder, and delete columns."""


@column.command("add")
@click.argument("board_id")
@click.argument("title")
@click.option("--wip-limit", type=int, default=None, help="Maximum cards in the column.")
@click.option("--color", default=None, help="Hex color such as #FF5733.")
@click.option("--position", type=int, default=None, help="Insert at this position.")
@click.pass_obj
def add_cmd(
    app: AppContext,
    board_id: str,
    title: str,
    wip_limit: int | None,
    color: str | None,
    position: int | None,
) -> None:
    """Add a column (appended unless --position is given)."""
    from kanbanctl.services.column import ColumnService

    app.emit(
        ColumnService(app.workspace).add_column(
            board_id, title, wip_limit=wip_limit, color=color, position=position
        )
    )


@column.command("list")
@click.argument("board_id")
@click.pass_obj
def list_cmd(app: AppContext, board_id: str) -> None:
    """List columns in order with their card counts."""
    from kanbanctl.services.column import ColumnService

    app.emit(ColumnService(app.workspace).list_columns(board_id))


@column.command("show")
@click.argument("board_id")
@click.argument("column_id")
@click.pass_obj
def show_cmd(app: AppContext, board_id: str, column_id: str) -> None:
    """Show one column."""
    from kanbanctl.services.column import ColumnService

    app.emit(ColumnService(app.workspace).get_column(board_id, column_id))


@column.command("update")
@click.argument("board_id")
@click.argument("column_id")
@click.option("--title", default=None, help="New title.")
@click.option("--wip-limit", type=int, default=None, help="New WIP limit.")
@click.option("--no-wip-limit", is_flag=True, help="Remove the WIP limit.")
@click.option("--color", default=None, help="New hex color.")
@click.option("--clear-color", is_flag=True, help="Remove the color.")
@click.option("--position", type=int, default=None, help="Move the column to this position.")
@click.pass_obj
def update_cmd(
    app: AppContext,
    board_id: str,
    column_id: str,
    title: str | None,
    wip_limit: int | None,
    no_wip_limit: bool,
    color: str | None,
    clear_color: bool,
    position: int | None,
) -> None:
    """Update a column's title, WIP limit, color, or position."""
    from kanbanctl.services.column import ColumnService

    changes: dict[str, Any] = {}
    if title is not None:
        changes["title"] = title
    if no_wip_limit:
        changes["wip_limit"] = None
    elif wip_limit is not None:
        changes["wip_limit"] = wip_limit
    if clear_color:
        changes["color"] = None
    elif color is not None:
        changes["color"] = color
    if position is not None:
        changes["position"] = position
    app.emit(ColumnService(app.workspace).update_column(board_id, column_id, changes))


@column.command("delete")
@click.argument("board_id")
@click.argument("column_id")
@click.pass_obj
def delete_cmd(app: AppContext, board_id: str, column_id: str) -> None:
    """Delete an empty column."""
    from kanbanctl.services.column import ColumnService

    app.emit(ColumnService(app.workspace).delete_column(board_id, column_id))


@column.command("reorder")
@click.argument("board_id")
@click.argument("column_ids", nargs=-1, required=True)
@click.pass_obj
def reorder_cmd(app: AppContext, board_id: str, column_ids: tuple[str, ...]) -> None:
    """Set the column order; every column id must appear exactly once."""
    from kanbanctl.services.column import ColumnService

    app.emit(ColumnService(app.workspace).reorder_columns(board_id, list(column_ids)))
