"""Command group: board lifecycle, copies, import, and stats."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from kanbanctl.commands._base import KanbanGroup, enum_choice
from kanbanctl.domain.types import BoardSortField, Theme

if TYPE_CHECKING:
    from kanbanctl.commands._context import AppContext


def _settings_overrides(
    theme: str | None,
    allow_wip_exceeding: bool | None,
    show_card_count: bool | None,
) -> dict[str, Any] | None:
    overrides: dict[str, Any] = {}
    if theme is not None:
        overrides["theme"] = theme
    if allow_wip_exceeding is not None:
        overrides["allow_wip_limit_exceeding"] = allow_wip_exceeding
    if show_card_count is not None:
        overrides["show_card_count"] = show_card_count
    return overrides or None


_theme_option = click.option(
    "--theme", type=enum_choice(Theme), default=None, help="Display theme."
)
_wip_option = click.option(
    "--allow-wip-exceeding/--enforce-wip",
    "allow_wip_exceeding",
    default=None,
    help="Let cards exceed column WIP limits.",
)
_count_option = click.option(
    "--show-card-count/--hide-card-count",
    "show_card_count",
    default=None,
    help="Show card counts in column headers.",
)


@click.group(
    cls=KanbanGroup,
    examples="""\
  kanbanctl board create "Sprint 12"
  kanbanctl board create "Roadmap" --column Ideas --column Doing --column Shipped
  kanbanctl board list --sort-by updatedAt --desc
  kanbanctl board show <board-id>
  kanbanctl board duplicate <board-id> --title "Sprint 13"
  kanbanctl board delete <board-id> --yes
  kanbanctl board restore <board-id>""",
)
def board() -> None:
    """Create, inspect, copy, and delete boards."""


@board.command("create")
@click.argument("title")
@click.option("--description", default=None, help="Board description.")
@click.option(
    "--column", "columns", multiple=True, help="Column title (repeatable, in order)."
)
@_theme_option
@_wip_option
@_count_option
@click.pass_obj
def create_cmd(
    app: AppContext,
    title: str,
    description: str | None,
    columns: tuple[str, ...],
    theme: str | None,
    allow_wip_exceeding: bool | None,
    show_card_count: bool | None,
) -> None:
    """Create a board. Columns default to the configured defaults."""
    from kanbanctl.services.board import BoardService

    app.emit(
        BoardService(app.workspace).create_board(
            title,
            description=description,
            columns=list(columns) if columns else None,
            settings=_settings_overrides(theme, allow_wip_exceeding, show_card_count),
        )
    )


@board.command("list")
@click.option("--title", default=None, help="Case-insensitive title substring.")
@click.option("--tag", "tags", multiple=True, help="Match boards with any of these card tags.")
@click.option("--created-after", default=None, help="ISO-8601 lower bound (inclusive).")
@click.option("--created-before", default=None, help="ISO-8601 upper bound (inclusive).")
@click.option("--updated-after", default=None, help="ISO-8601 lower bound (inclusive).")
@click.option("--updated-before", default=None, help="ISO-8601 upper bound (inclusive).")
@click.option(
    "--sort-by", type=enum_choice(BoardSortField), default=None
)
@click.option("--desc", is_flag=True, help="Sort descending.")
@click.option("--limit", type=int, default=None, help="Maximum boards to return.")
@click.option("--offset", type=int, default=0, help="Boards to skip.")
@click.pass_obj
def list_cmd(
    app: AppContext,
    title: str | None,
    tags: tuple[str, ...],
    created_after: str | None,
    created_before: str | None,
    updated_after: str | None,
    updated_before: str | None,
    sort_by: str | None,
    desc: bool,
    limit: int | None,
    offset: int,
) -> None:
    """List boards with optional filters, sorting, and pagination."""
    from kanbanctl.domain.query import BoardQuery
    from kanbanctl.services.board import BoardService

    query = BoardQuery(
        title=title,
        tags=tags or None,
        created_after=created_after,
        created_before=created_before,
        updated_after=updated_after,
        updated_before=updated_before,
        sort_by=sort_by,
        sort_order="desc" if desc else "asc",
        offset=offset,
        limit=limit,
    )
    app.emit(BoardService(app.workspace).query_boards(query))


@board.command("show")
@click.argument("board_id")
@click.pass_obj
def show_cmd(app: AppContext, board_id: str) -> None:
    """Show a board with its columns and cards."""
    from kanbanctl.services.board import BoardService

    app.emit(BoardService(app.workspace).get_board(board_id))


@board.command("update")
@click.argument("board_id")
@click.option("--title", default=None, help="New title.")
@click.option("--description", default=None, help="New description.")
@click.option("--clear-description", is_flag=True, help="Remove the description.")
@_theme_option
@_wip_option
@_count_option
@click.pass_obj
def update_cmd(
    app: AppContext,
    board_id: str,
    title: str | None,
    description: str | None,
    clear_description: bool,
    theme: str | None,
    allow_wip_exceeding: bool | None,
    show_card_count: bool | None,
) -> None:
    """Update a board's title, description, or settings."""
    from kanbanctl.services.board import BoardService

    changes: dict[str, Any] = {}
    if title is not None:
        changes["title"] = title
    if clear_description:
        changes["description"] = None
    elif description is not None:
        changes["description"] = description
    overrides = _settings_overrides(theme, allow_wip_exceeding, show_card_count)
    if overrides:
        changes["settings"] = overrides
    app.emit(BoardService(app.workspace).update_board(board_id, changes))


@board.command("delete")
@click.argument("board_id")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_obj
def delete_cmd(app: AppContext, board_id: str, yes: bool) -> None:
    """Delete a board (a backup is written first)."""
    from kanbanctl.services.board import BoardService

    if not yes:
        click.confirm(f"Delete board {board_id}?", abort=True)
    app.emit(BoardService(app.workspace).delete_board(board_id))


@board.command("restore")
@click.argument("board_id")
@click.pass_obj
def restore_cmd(app: AppContext, board_id: str) -> None:
    """Restore a board from its newest backup."""
    from kanbanctl.services.board import BoardService

    app.emit(BoardService(app.workspace).restore_board(board_id))


@board.command("duplicate")
@click.argument("board_id")
@click.option("--title", default=None, help='Title of the copy (default "<title> (Copy)").')
@click.pass_obj
def duplicate_cmd(app: AppContext, board_id: str, title: str | None) -> None:
    """Copy a board with new ids for the board, its columns, and its cards."""
    from kanbanctl.services.board import BoardService

    app.emit(BoardService(app.workspace).duplicate_board(board_id, title))


@board.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--title", default=None, help="Title for the imported board.")
@click.pass_obj
def import_cmd(app: AppContext, path: Path, title: str | None) -> None:
    """Import a board from a JSON export file."""
    from kanbanctl.services.board import BoardService

    raw = path.read_text(encoding="utf-8")
    app.emit(BoardService(app.workspace).import_board(raw, title=title))


@board.command("stats")
@click.argument("board_id")
@click.pass_obj
def stats_cmd(app: AppContext, board_id: str) -> None:
    """Card counts per column and priority, overdue cards, completion rate."""
    from kanbanctl.services.board import BoardService

    app.emit(BoardService(app.workspace).get_board_stats(board_id))
