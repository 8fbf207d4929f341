"""Query engine: filter, then sort, then paginate.

Queries are immutable value objects. Callers validate them with
:func:`~kanbanctl.domain.validation.validate_board_query` or
:func:`~kanbanctl.domain.validation.validate_card_query` first; the
functions here assume well-formed input.

Without ``sort_by`` boards keep repository order and cards come out in
board order (column position, then card position).
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from kanbanctl.domain.models import Board, Card
from kanbanctl.domain.timestamps import parse_iso_datetime
from kanbanctl.domain.types import PRIORITY_RANK, SortOrder


@dataclass(frozen=True)
class BoardQuery:
    title: str | None = None
    tags: tuple[str, ...] | None = None
    created_after: str | None = None
    created_before: str | None = None
    updated_after: str | None = None
    updated_before: str | None = None
    sort_by: str | None = None
    sort_order: str = SortOrder.ASC
    offset: int = 0
    limit: int | None = None


@dataclass(frozen=True)
class CardQuery:
    title: str | None = None
    content: str | None = None
    column_id: str | None = None
    priority: str | None = None
    status: str | None = None
    assignee: str | None = None
    tags: tuple[str, ...] | None = None
    created_after: str | None = None
    created_before: str | None = None
    updated_after: str | None = None
    updated_before: str | None = None
    sort_by: str | None = None
    sort_order: str = SortOrder.ASC
    offset: int = 0
    limit: int | None = None


# ---------------------------------------------------------------------------
# Shared filter helpers
# ---------------------------------------------------------------------------


def _contains(haystack: str | None, needle: str) -> bool:
    return haystack is not None and needle.casefold() in haystack.casefold()


def _in_range(value: str, after: str | None, before: str | None) -> bool:
    moment = parse_iso_datetime(value)
    if after is not None and moment < parse_iso_datetime(after):
        return False
    return not (before is not None and moment > parse_iso_datetime(before))


def _date_filters(query: BoardQuery | CardQuery) -> list[Callable[[Any], bool]]:
    filters: list[Callable[[Any], bool]] = []
    if query.created_after or query.created_before:
        filters.append(
            lambda item: _in_range(item.created_at, query.created_after, query.created_before)
        )
    if query.updated_after or query.updated_before:
        filters.append(
            lambda item: _in_range(item.updated_at, query.updated_after, query.updated_before)
        )
    return filters


def _paginate[T](items: Sequence[T], offset: int, limit: int | None) -> list[T]:
    end = None if limit is None else offset + limit
    return list(items[offset:end])


def _timestamp_key(value: str) -> datetime:
    return parse_iso_datetime(value)


# ---------------------------------------------------------------------------
# Boards
# ---------------------------------------------------------------------------

_BOARD_SORT_KEYS: dict[str, Callable[[Board], Any]] = {
    "title": lambda board: board.title.casefold(),
    "createdAt": lambda board: _timestamp_key(board.created_at),
    "updatedAt": lambda board: _timestamp_key(board.updated_at),
}


def query_boards(boards: Iterable[Board], query: BoardQuery) -> list[Board]:
    """Filter, sort, and paginate *boards*. An empty result is valid."""
    filters: list[Callable[[Board], bool]] = []
    if query.title:
        filters.append(lambda board: _contains(board.title, query.title or ""))
    if query.tags:
        wanted = set(query.tags)
        filters.append(lambda board: bool(wanted.intersection(board.tags)))
    filters.extend(_date_filters(query))

    matched = [board for board in boards if all(f(board) for f in filters)]
    if query.sort_by:
        matched.sort(
            key=_BOARD_SORT_KEYS[query.sort_by],
            reverse=query.sort_order == SortOrder.DESC,
        )
    return _paginate(matched, query.offset, query.limit)


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------


def cards_in_board_order(board: Board) -> list[Card]:
    """Every card, ordered by column position and then card position."""
    column_rank = {col.id: col.position for col in board.columns}
    missing = len(column_rank)
    return sorted(
        board.cards,
        key=lambda card: (column_rank.get(card.column_id, missing), card.position),
    )


def card_status(board: Board, card: Card) -> str | None:
    """A card's status is the title of the column it sits in."""
    column = board.find_column(card.column_id)
    return column.title if column else None


def query_cards(board: Board, query: CardQuery) -> list[Card]:
    """Filter, sort, and paginate the cards of one board."""
    status_of = {col.id: col.title for col in board.columns}
    column_rank = {col.id: col.position for col in board.columns}

    filters: list[Callable[[Card], bool]] = []
    if query.title:
        filters.append(lambda card: _contains(card.title, query.title or ""))
    if query.content:
        filters.append(lambda card: _contains(card.description, query.content or ""))
    if query.column_id:
        filters.append(lambda card: card.column_id == query.column_id)
    if query.priority:
        filters.append(lambda card: card.priority == query.priority)
    if query.status:
        filters.append(lambda card: status_of.get(card.column_id) == query.status)
    if query.assignee:
        filters.append(lambda card: card.assignee == query.assignee)
    if query.tags:
        wanted = set(query.tags)
        filters.append(lambda card: bool(wanted.intersection(card.tags)))
    filters.extend(_date_filters(query))

    matched = [card for card in cards_in_board_order(board) if all(f(card) for f in filters)]
    if query.sort_by:
        sort_keys: dict[str, Callable[[Card], Any]] = {
            "title": lambda card: card.title.casefold(),
            "priority": lambda card: PRIORITY_RANK[card.priority],
            "createdAt": lambda card: _timestamp_key(card.created_at),
            "updatedAt": lambda card: _timestamp_key(card.updated_at),
            "status": lambda card: column_rank.get(card.column_id, len(column_rank)),
        }
        matched.sort(
            key=sort_keys[query.sort_by],
            reverse=query.sort_order == SortOrder.DESC,
        )
    return _paginate(matched, query.offset, query.limit)


def search_cards(board: Board, text: str) -> list[Card]:
    """Case-insensitive match across title, description, tags, and assignee."""
    needle = text.strip()
    return [
        card
        for card in cards_in_board_order(board)
        if _contains(card.title, needle)
        or _contains(card.description, needle)
        or any(_contains(tag, needle) for tag in card.tags)
        or _contains(card.assignee, needle)
    ]
