"""ColumnService: column CRUD and reordering."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from kanbanctl.domain.errors import KanbanError
from kanbanctl.domain.models import column_payload
from kanbanctl.domain.operations import (
    add_column,
    delete_column,
    reorder_columns,
    update_column,
)
from kanbanctl.domain.rules import require_column
from kanbanctl.services._helpers import require_id
from kanbanctl.services.base import BaseService
from kanbanctl.services.result import ServiceResult


class ColumnService(BaseService):
    """Operations on the columns of one board."""

    def add_column(
        self,
        board_id: str,
        title: str,
        *,
        wip_limit: int | None = None,
        color: str | None = None,
        position: int | None = None,
    ) -> ServiceResult:
        """Append a column, or insert it at *position* shifting the rest."""
        op = "add_column"
        try:
            board_id = require_id(board_id, "board_id")
            board, column = self._workspace.boards.mutate(
                board_id,
                lambda b: add_column(
                    b, title=title, wip_limit=wip_limit, color=color, position=position
                ),
            )
        except KanbanError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True, op=op, data={"board_id": board.id, "column": column_payload(column)}
        )

    def get_column(self, board_id: str, column_id: str) -> ServiceResult:
        op = "get_column"
        try:
            board = self._workspace.boards.get(require_id(board_id, "board_id"))
            column = require_column(board, require_id(column_id, "column_id"))
        except KanbanError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "board_id": board.id,
                "column": column_payload(column),
                "card_count": len(board.cards_in(column.id)),
            },
        )

    def list_columns(self, board_id: str) -> ServiceResult:
        op = "list_columns"
        try:
            board = self._workspace.boards.get(require_id(board_id, "board_id"))
        except KanbanError as exc:
            return self._fail(op, exc)
        columns = board.ordered_columns()
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "board_id": board.id,
                "count": len(columns),
                "items": [
                    {**column_payload(col), "cardCount": len(board.cards_in(col.id))}
                    for col in columns
                ],
            },
        )

    def update_column(
        self, board_id: str, column_id: str, changes: Mapping[str, Any]
    ) -> ServiceResult:
        """Patch title, WIP limit, or color; ``position`` moves the column."""
        op = "update_column"
        try:
            board_id = require_id(board_id, "board_id")
            column_id = require_id(column_id, "column_id")
            board, column = self._workspace.boards.mutate(
                board_id, lambda b: update_column(b, column_id, changes)
            )
        except KanbanError as exc:
            return self._fail(op, exc)
        warnings: list[str] = []
        count = len(board.cards_in(column.id))
        if column.wip_limit is not None and count > column.wip_limit:
            warnings.append(
                f"Column '{column.title}' holds {count} cards, above its new WIP limit"
            )
        return ServiceResult(
            ok=True,
            op=op,
            data={"board_id": board.id, "column": column_payload(column)},
            warnings=warnings,
        )

    def delete_column(self, board_id: str, column_id: str) -> ServiceResult:
        """Delete an empty column; columns that still hold cards are refused."""
        op = "delete_column"
        try:
            board_id = require_id(board_id, "board_id")
            column_id = require_id(column_id, "column_id")
            board, column = self._workspace.boards.mutate(
                board_id, lambda b: delete_column(b, column_id)
            )
        except KanbanError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True, op=op, data={"board_id": board.id, "id": column.id, "title": column.title}
        )

    def reorder_columns(self, board_id: str, column_ids: Sequence[str]) -> ServiceResult:
        """Set the column order to *column_ids*, which must list every column once."""
        op = "reorder_columns"
        try:
            board_id = require_id(board_id, "board_id")
            ids = [require_id(cid, "column_ids") for cid in column_ids]
            board, _ = self._workspace.boards.mutate(
                board_id, lambda b: (reorder_columns(b, ids), None)
            )
        except KanbanError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "board_id": board.id,
                "columns": [column_payload(col) for col in board.ordered_columns()],
            },
        )
