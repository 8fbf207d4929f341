"""CardService: card CRUD, moves, queries, and search.

Every write goes through :meth:`BoardRepository.mutate`, so the pure
operation in :mod:`kanbanctl.domain.operations` runs against a freshly
loaded board under the board lock.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from kanbanctl.domain.errors import KanbanError, ValidationError
from kanbanctl.domain.models import Board, Card, card_payload
from kanbanctl.domain.operations import add_card, delete_card, move_card, update_card
from kanbanctl.domain.query import CardQuery, query_cards, search_cards
from kanbanctl.domain.rules import require_card, require_column
from kanbanctl.domain.validation import Violation, ensure_valid, validate_card_query
from kanbanctl.services._helpers import require_id
from kanbanctl.services.base import BaseService
from kanbanctl.services.contracts import CardListData, dump_validated
from kanbanctl.services.result import ServiceResult


def _wip_warnings(board: Board, column_id: str) -> list[str]:
    """Warn when an override left a column above its WIP limit."""
    column = board.find_column(column_id)
    if column is None or column.wip_limit is None:
        return []
    count = len(board.cards_in(column_id))
    if count <= column.wip_limit:
        return []
    return [f"Column '{column.title}' now holds {count} cards (WIP limit {column.wip_limit})"]


def _card_list(board_id: str, cards: Sequence[Card], query: str | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "board_id": board_id,
        "count": len(cards),
        "items": [card_payload(card) for card in cards],
    }
    if query is not None:
        payload["query"] = query
    return dump_validated(CardListData, payload)


class CardService(BaseService):
    """Operations on the cards of one board."""

    def add_card(
        self,
        board_id: str,
        column_id: str,
        title: str,
        *,
        description: str | None = None,
        tags: Sequence[str] | None = None,
        priority: str | None = None,
        assignee: str | None = None,
        due_date: str | None = None,
        position: int | None = None,
        override_wip: bool = False,
    ) -> ServiceResult:
        """Add a card, appended to the column or inserted at *position*."""
        op = "add_card"
        try:
            board_id = require_id(board_id, "board_id")
            column_id = require_id(column_id, "column_id")
            board, card = self._workspace.boards.mutate(
                board_id,
                lambda b: add_card(
                    b,
                    column_id=column_id,
                    title=title,
                    description=description,
                    tags=tags,
                    priority=priority,
                    assignee=assignee,
                    due_date=due_date,
                    position=position,
                    override_wip=override_wip,
                ),
            )
        except KanbanError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"board_id": board.id, "card": card_payload(card)},
            warnings=_wip_warnings(board, card.column_id),
        )

    def get_card(self, board_id: str, card_id: str) -> ServiceResult:
        op = "get_card"
        try:
            board = self._workspace.boards.get(require_id(board_id, "board_id"))
            card = require_card(board, require_id(card_id, "card_id"))
        except KanbanError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True, op=op, data={"board_id": board.id, "card": card_payload(card)}
        )

    def update_card(
        self, board_id: str, card_id: str, changes: Mapping[str, Any]
    ) -> ServiceResult:
        """Patch card fields. ``None`` clears description, assignee, or due date."""
        op = "update_card"
        try:
            board_id = require_id(board_id, "board_id")
            card_id = require_id(card_id, "card_id")
            board, card = self._workspace.boards.mutate(
                board_id, lambda b: update_card(b, card_id, changes)
            )
        except KanbanError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True, op=op, data={"board_id": board.id, "card": card_payload(card)}
        )

    def delete_card(self, board_id: str, card_id: str) -> ServiceResult:
        op = "delete_card"
        try:
            board_id = require_id(board_id, "board_id")
            card_id = require_id(card_id, "card_id")
            board, card = self._workspace.boards.mutate(
                board_id, lambda b: delete_card(b, card_id)
            )
        except KanbanError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"board_id": board.id, "id": card.id, "column_id": card.column_id},
        )

    def move_card(
        self,
        board_id: str,
        card_id: str,
        to_column_id: str,
        position: int | None = None,
        *,
        override_wip: bool = False,
    ) -> ServiceResult:
        """Move a card within or across columns; no position appends it."""
        op = "move_card"
        try:
            board_id = require_id(board_id, "board_id")
            card_id = require_id(card_id, "card_id")
            to_column_id = require_id(to_column_id, "column_id")
            board, card = self._workspace.boards.mutate(
                board_id,
                lambda b: move_card(b, card_id, to_column_id, position, override_wip=override_wip),
            )
        except KanbanError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"board_id": board.id, "card": card_payload(card)},
            warnings=_wip_warnings(board, card.column_id),
        )

    def list_cards(self, board_id: str, column_id: str | None = None) -> ServiceResult:
        """Cards of the board (or one column) in board order."""
        op = "list_cards"
        try:
            board = self._workspace.boards.get(require_id(board_id, "board_id"))
            if column_id is not None:
                require_column(board, require_id(column_id, "column_id"))
            cards = query_cards(board, CardQuery(column_id=column_id))
        except KanbanError as exc:
            return self._fail(op, exc)
        return ServiceResult(ok=True, op=op, data=_card_list(board.id, cards))

    def query_cards(self, board_id: str, query: CardQuery | None = None) -> ServiceResult:
        """Filter, sort, and paginate the cards of one board."""
        op = "query_cards"
        query = query or CardQuery()
        try:
            board_id = require_id(board_id, "board_id")
            ensure_valid(validate_card_query(query), what="card query")
            board = self._workspace.boards.get(board_id)
            cards = query_cards(board, query)
        except KanbanError as exc:
            return self._fail(op, exc)
        return ServiceResult(ok=True, op=op, data=_card_list(board.id, cards))

    def search_cards(self, board_id: str, text: str) -> ServiceResult:
        """Case-insensitive text search across title, description, tags, assignee."""
        op = "search_cards"
        try:
            board_id = require_id(board_id, "board_id")
            if not isinstance(text, str) or not text.strip():
                raise ValidationError(
                    "Search text cannot be empty",
                    violations=[Violation("text", "must not be blank", text)],
                )
            board = self._workspace.boards.get(board_id)
            cards = search_cards(board, text)
        except KanbanError as exc:
            return self._fail(op, exc)
        return ServiceResult(ok=True, op=op, data=_card_list(board.id, cards, query=text))
