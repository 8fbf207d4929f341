"""Pure aggregate mutations over a loaded board.

Every function takes a :class:`Board`, checks input and rules, and returns
a new board (plus the affected entity where there is one). Nothing is
written here; the board repository persists whatever comes back.

INVARIANT: All checks run before the copy is built, so a raised error
never leaves a partially changed board behind.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from kanbanctl.domain.errors import ValidationError
from kanbanctl.domain.factories import (
    merge_settings,
    new_board,
    new_card,
    new_column,
    normalize_tags,
    touch,
)
from kanbanctl.domain.ids import new_id
from kanbanctl.domain.models import Board, BoardDefaults, Card, Column
from kanbanctl.domain.positions import (
    insert_at_position,
    next_position,
    normalize_positions,
    remove_at_position,
    reorder_items,
)
from kanbanctl.domain.rules import (
    check_card_position,
    check_column_empty,
    check_column_position,
    check_unique_column_title,
    check_wip_limit,
    require_card,
    require_column,
)
from kanbanctl.domain.timestamps import now_iso
from kanbanctl.domain.types import Priority
from kanbanctl.domain.validation import (
    ensure_valid,
    validate_board_fields,
    validate_card_fields,
    validate_column_fields,
    validate_column_titles,
)

# ---------------------------------------------------------------------------
# Boards
# ---------------------------------------------------------------------------


def create_board(
    *,
    title: str,
    defaults: BoardDefaults,
    columns: Sequence[str] | None = None,
    description: str | None = None,
    settings: Mapping[str, Any] | None = None,
) -> Board:
    """Build a new board; missing columns and settings come from *defaults*."""
    fields: dict[str, Any] = {"title": title, "description": description}
    if columns is not None:
        fields["columns"] = list(columns)
    if settings is not None:
        fields["settings"] = dict(settings)
    ensure_valid(validate_board_fields(fields), what="board")
    if columns is None:
        ensure_valid(
            validate_column_titles(list(defaults.columns), name="defaults.columns"),
            what="board defaults",
        )
    titles = [c.strip() for c in (columns if columns is not None else defaults.columns)]
    return new_board(
        title=title,
        column_titles=titles,
        description=description,
        settings=defaults.settings,
        settings_overrides=settings,
    )


def update_board(board: Board, changes: Mapping[str, Any]) -> Board:
    """Patch title, description, and a partial settings override."""
    ensure_valid(validate_board_fields(changes, partial=True), what="board update")
    update: dict[str, Any] = {}
    if "title" in changes:
        update["title"] = changes["title"].strip()
    if "description" in changes:
        update["description"] = changes["description"]
    if changes.get("settings"):
        update["settings"] = merge_settings(board.settings, changes["settings"])
    return touch(board, **update)


def clone_board(board: Board, *, title: str) -> Board:
    """Copy *board* under fresh ids for the board, its columns, and its cards.

    Cards follow their column through an explicit old-to-new id map and
    keep their positions. Cards whose column is missing are not carried.
    """
    ts = now_iso()
    column_ids = {col.id: new_id() for col in board.columns}
    columns = [col.model_copy(update={"id": column_ids[col.id]}) for col in board.columns]
    cards = [
        card.model_copy(
            update={
                "id": new_id(),
                "column_id": column_ids[card.column_id],
                "tags": list(card.tags),
                "created_at": ts,
                "updated_at": ts,
            }
        )
        for card in board.cards
        if card.column_id in column_ids
    ]
    return board.model_copy(
        update={
            "id": new_id(),
            "title": title.strip(),
            "columns": columns,
            "cards": cards,
            "created_at": ts,
            "updated_at": ts,
        },
        deep=True,
    )


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------


def _with_column_cards(board: Board, column_id: str, column_cards: Iterable[Card]) -> list[Card]:
    """All cards of *board* with one column's cards swapped for *column_cards*."""
    return [card for card in board.cards if card.column_id != column_id] + list(column_cards)


def add_card(
    board: Board,
    *,
    column_id: str,
    title: str,
    description: str | None = None,
    tags: Sequence[str] | None = None,
    priority: str | None = None,
    assignee: str | None = None,
    due_date: str | None = None,
    position: int | None = None,
    override_wip: bool = False,
) -> tuple[Board, Card]:
    """Add a card to a column, appended or inserted at *position*."""
    fields = {
        "column_id": column_id,
        "title": title,
        "description": description,
        "tags": list(tags) if tags is not None else None,
        "priority": priority,
        "assignee": assignee,
        "due_date": due_date,
        "position": position,
    }
    ensure_valid(validate_card_fields(fields), what="card")
    column = require_column(board, column_id)
    check_wip_limit(board, column, override_wip=override_wip)

    siblings = board.cards_in(column.id)
    card = new_card(
        title=title,
        column_id=column.id,
        position=next_position(siblings),
        description=description,
        tags=tags,
        priority=priority or Priority.MEDIUM,
        assignee=assignee,
        due_date=due_date,
    )
    if position is None:
        cards = [*board.cards, card]
    else:
        check_card_position(board, column.id, position)
        column_cards = insert_at_position(siblings, card, position)
        card = next(c for c in column_cards if c.id == card.id)
        cards = _with_column_cards(board, column.id, column_cards)
    return touch(board, cards=cards), card


def update_card(board: Board, card_id: str, changes: Mapping[str, Any]) -> tuple[Board, Card]:
    """Patch editable card fields; ``None`` clears an optional field."""
    ensure_valid(validate_card_fields(changes, partial=True), what="card update")
    card = require_card(board, card_id)

    update: dict[str, Any] = {}
    for key, value in changes.items():
        if key == "title":
            update[key] = value.strip()
        elif key == "tags":
            update[key] = normalize_tags(value)
        elif key == "priority":
            update[key] = Priority(value) if value is not None else Priority.MEDIUM
        else:
            update[key] = value
    update["updated_at"] = now_iso()
    updated = card.model_copy(update=update)
    cards = [updated if c.id == card.id else c for c in board.cards]
    return touch(board, cards=cards), updated


def delete_card(board: Board, card_id: str) -> tuple[Board, Card]:
    """Remove a card and renumber the rest of its column."""
    card = require_card(board, card_id)
    siblings = board.cards_in(card.column_id)
    index = [c.id for c in siblings].index(card.id)
    cards = _with_column_cards(board, card.column_id, remove_at_position(siblings, index))
    return touch(board, cards=cards), card


def move_card(
    board: Board,
    card_id: str,
    to_column_id: str,
    to_position: int | None = None,
    *,
    override_wip: bool = False,
) -> tuple[Board, Card]:
    """Move a card to *to_column_id* at *to_position* (clamped; end if None).

    The source column is renumbered right away, like a delete.
    """
    card = require_card(board, card_id)
    destination = require_column(board, to_column_id)
    if to_position is not None and to_position < 0:
        raise ValidationError(
            f"Card position must be >= 0, got {to_position}",
            code="INVALID_POSITION",
            detail={"position": to_position},
        )
    if destination.id != card.column_id:
        check_wip_limit(board, destination, exclude_card_id=card.id, override_wip=override_wip)

    source_id = card.column_id
    remaining = [c for c in board.cards if c.id != card.id]
    source_cards = normalize_positions([c for c in remaining if c.column_id == source_id])
    untouched = [c for c in remaining if c.column_id not in (source_id, destination.id)]
    if destination.id == source_id:
        base, carried = source_cards, []
    else:
        base = [c for c in remaining if c.column_id == destination.id]
        carried = source_cards

    moved = card.model_copy(update={"column_id": destination.id, "updated_at": now_iso()})
    position = len(base) if to_position is None else to_position
    destination_cards = insert_at_position(base, moved, position)
    moved = next(c for c in destination_cards if c.id == card.id)
    return touch(board, cards=untouched + carried + destination_cards), moved


# ---------------------------------------------------------------------------
# Columns
# ---------------------------------------------------------------------------


def _column_index(board: Board, column_id: str) -> int:
    return [col.id for col in board.ordered_columns()].index(column_id)


def add_column(
    board: Board,
    *,
    title: str,
    wip_limit: int | None = None,
    color: str | None = None,
    position: int | None = None,
) -> tuple[Board, Column]:
    """Append a column, or insert it at *position* and renumber."""
    fields = {"title": title, "wip_limit": wip_limit, "color": color, "position": position}
    ensure_valid(validate_column_fields(fields), what="column")
    check_unique_column_title(board, title.strip())

    column = new_column(
        title=title,
        position=next_position(board.columns),
        wip_limit=wip_limit,
        color=color,
    )
    if position is None:
        columns = normalize_positions([*board.columns, column])
    else:
        check_column_position(board, position, inserting=True)
        columns = insert_at_position(board.columns, column, position)
    column = next(c for c in columns if c.id == column.id)
    return touch(board, columns=columns), column


def update_column(
    board: Board, column_id: str, changes: Mapping[str, Any]
) -> tuple[Board, Column]:
    """Patch title, WIP limit, or color; a ``position`` moves the column."""
    ensure_valid(validate_column_fields(changes, partial=True), what="column update")
    column = require_column(board, column_id)
    if "title" in changes:
        check_unique_column_title(board, changes["title"].strip(), exclude_id=column.id)
    new_position = changes.get("position")
    if new_position is not None:
        check_column_position(board, new_position)

    update: dict[str, Any] = {}
    if "title" in changes:
        update["title"] = changes["title"].strip()
    if "wip_limit" in changes:
        update["wip_limit"] = changes["wip_limit"]
    if "color" in changes:
        color = changes["color"]
        update["color"] = color.upper() if color else None
    updated = column.model_copy(update=update)
    columns = [updated if c.id == column.id else c for c in board.columns]
    if new_position is not None:
        columns = reorder_items(columns, _column_index(board, column.id), new_position)
    else:
        columns = normalize_positions(columns)
    updated = next(c for c in columns if c.id == column.id)
    return touch(board, columns=columns), updated


def delete_column(board: Board, column_id: str) -> tuple[Board, Column]:
    """Remove an empty column and renumber the remaining ones."""
    column = require_column(board, column_id)
    check_column_empty(board, column)
    columns = remove_at_position(board.ordered_columns(), _column_index(board, column.id))
    return touch(board, columns=columns), column


def reorder_columns(board: Board, column_ids: Sequence[str]) -> Board:
    """Assign position = index for an exact permutation of all column ids."""
    existing = [col.id for col in board.ordered_columns()]
    if len(column_ids) != len(existing) or set(column_ids) != set(existing):
        raise ValidationError(
            "Column order must list every existing column id exactly once",
            code="INVALID_COLUMN_ORDER",
            detail={"expected": existing, "received": list(column_ids)},
        )
    by_id = board.column_index()
    columns = [by_id[cid].model_copy(update={"position": i}) for i, cid in enumerate(column_ids)]
    return touch(board, columns=columns)
