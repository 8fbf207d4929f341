"""Command group: card CRUD, moves, listing, and search."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from kanbanctl.commands._base import KanbanGroup, enum_choice
from kanbanctl.domain.types import CardSortField, Priority

if TYPE_CHECKING:
    from kanbanctl.commands._context import AppContext

_CLEARABLE = ["description", "assignee", "due_date", "tags"]


@click.group(
    cls=KanbanGroup,
    examples="""\
  kanbanctl card add <board-id> <column-id> "Write release notes" --priority high
  kanbanctl card add <board-id> <column-id> "Hotfix" --position 0 --tag urgent
  kanbanctl card move <board-id> <card-id> <column-id> --position 0
  kanbanctl card update <board-id> <card-id> --assignee alice --clear due_date
  kanbanctl card list <board-id> --status "In Progress" --sort-by priority --desc
  kanbanctl card search <board-id> "login"
  kanbanctl card delete <board-id> <card-id>""",
)
def card() -> None:
    """Add, update, move, and find cards."""


@card.command("add")
@click.argument("board_id")
@click.argument("column_id")
@click.argument("title")
@click.option("--description", default=None, help="Card description.")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable).")
@click.option("--priority", type=enum_choice(Priority), default=None)
@click.option("--assignee", default=None, help="Assignee name.")
@click.option("--due", "due_date", default=None, help="Due date (ISO-8601 datetime).")
@click.option("--position", type=int, default=None, help="Insert at this position.")
@click.option("--override-wip", is_flag=True, help="Ignore the column WIP limit.")
@click.pass_obj
def add_cmd(
    app: AppContext,
    board_id: str,
    column_id: str,
    title: str,
    description: str | None,
    tags: tuple[str, ...],
    priority: str | None,
    assignee: str | None,
    due_date: str | None,
    position: int | None,
    override_wip: bool,
) -> None:
    """Add a card to a column (appended unless --position is given)."""
    from kanbanctl.services.card import CardService

    app.emit(
        CardService(app.workspace).add_card(
            board_id,
            column_id,
            title,
            description=description,
            tags=list(tags) if tags else None,
            priority=priority,
            assignee=assignee,
            due_date=due_date,
            position=position,
            override_wip=override_wip,
        )
    )


@card.command("show")
@click.argument("board_id")
@click.argument("card_id")
@click.pass_obj
def show_cmd(app: AppContext, board_id: str, card_id: str) -> None:
    """Show one card."""
    from kanbanctl.services.card import CardService

    app.emit(CardService(app.workspace).get_card(board_id, card_id))


@card.command("update")
@click.argument("board_id")
@click.argument("card_id")
@click.option("--title", default=None, help="New title.")
@click.option("--description", default=None, help="New description.")
@click.option("--tag", "tags", multiple=True, help="Replace tags (repeatable).")
@click.option("--priority", type=enum_choice(Priority), default=None)
@click.option("--assignee", default=None, help="New assignee.")
@click.option("--due", "due_date", default=None, help="New due date (ISO-8601 datetime).")
@click.option(
    "--clear",
    "clear",
    multiple=True,
    type=click.Choice(_CLEARABLE),
    help="Clear an optional field (repeatable).",
)
@click.pass_obj
def update_cmd(
    app: AppContext,
    board_id: str,
    card_id: str,
    title: str | None,
    description: str | None,
    tags: tuple[str, ...],
    priority: str | None,
    assignee: str | None,
    due_date: str | None,
    clear: tuple[str, ...],
) -> None:
    """Update card fields. Use 'card move' to change column or position."""
    from kanbanctl.services.card import CardService

    changes: dict[str, Any] = {field: None for field in clear}
    for key, value in (
        ("title", title),
        ("description", description),
        ("priority", priority),
        ("assignee", assignee),
        ("due_date", due_date),
    ):
        if value is not None:
            changes[key] = value
    if tags:
        changes["tags"] = list(tags)
    app.emit(CardService(app.workspace).update_card(board_id, card_id, changes))


@card.command("delete")
@click.argument("board_id")
@click.argument("card_id")
@click.pass_obj
def delete_cmd(app: AppContext, board_id: str, card_id: str) -> None:
    """Delete a card; the rest of its column closes up."""
    from kanbanctl.services.card import CardService

    app.emit(CardService(app.workspace).delete_card(board_id, card_id))


@card.command("move")
@click.argument("board_id")
@click.argument("card_id")
@click.argument("column_id")
@click.option("--position", type=int, default=None, help="Target position (default: end).")
@click.option("--override-wip", is_flag=True, help="Ignore the target column WIP limit.")
@click.pass_obj
def move_cmd(
    app: AppContext,
    board_id: str,
    card_id: str,
    column_id: str,
    position: int | None,
    override_wip: bool,
) -> None:
    """Move a card to a column, optionally at a position."""
    from kanbanctl.services.card import CardService

    app.emit(
        CardService(app.workspace).move_card(
            board_id, card_id, column_id, position, override_wip=override_wip
        )
    )


@card.command("list")
@click.argument("board_id")
@click.option("--column", "column_id", default=None, help="Only cards in this column id.")
@click.option("--title", default=None, help="Case-insensitive title substring.")
@click.option("--content", default=None, help="Case-insensitive description substring.")
@click.option("--priority", type=enum_choice(Priority), default=None)
@click.option("--status", default=None, help="Column title the card sits in.")
@click.option("--assignee", default=None, help="Exact assignee.")
@click.option("--tag", "tags", multiple=True, help="Match any of these tags.")
@click.option("--sort-by", type=enum_choice(CardSortField), default=None)
@click.option("--desc", is_flag=True, help="Sort descending.")
@click.option("--limit", type=int, default=None, help="Maximum cards to return.")
@click.option("--offset", type=int, default=0, help="Cards to skip.")
@click.pass_obj
def list_cmd(
    app: AppContext,
    board_id: str,
    column_id: str | None,
    title: str | None,
    content: str | None,
    priority: str | None,
    status: str | None,
    assignee: str | None,
    tags: tuple[str, ...],
    sort_by: str | None,
    desc: bool,
    limit: int | None,
    offset: int,
) -> None:
    """List cards with optional filters, sorting, and pagination."""
    from kanbanctl.domain.query import CardQuery
    from kanbanctl.services.card import CardService

    query = CardQuery(
        title=title,
        content=content,
        column_id=column_id,
        priority=priority,
        status=status,
        assignee=assignee,
        tags=tags or None,
        sort_by=sort_by,
        sort_order="desc" if desc else "asc",
        offset=offset,
        limit=limit,
    )
    app.emit(CardService(app.workspace).query_cards(board_id, query))


@card.command("search")
@click.argument("board_id")
@click.argument("text")
@click.pass_obj
def search_cmd(app: AppContext, board_id: str, text: str) -> None:
    """Search card titles, descriptions, tags, and assignees."""
    from kanbanctl.services.card import CardService

    app.emit(CardService(app.workspace).search_cards(board_id, text))
