"""BoardService: board lifecycle, duplication, export/import, and audit.

Extends BaseService. Board-level title uniqueness is checked here against
the repository and backed by the unique index on ``boards.title``.
"""

from __future__ import annotations

import csv
import io
import json
from collections import Counter
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pydantic
import structlog

from kanbanctl.domain.errors import ConflictError, KanbanError, ValidationError
from kanbanctl.domain.models import Board
from kanbanctl.domain.operations import clone_board, create_board, update_board
from kanbanctl.domain.query import BoardQuery, cards_in_board_order, query_boards
from kanbanctl.domain.rules import SEVERITY_ERROR, SEVERITY_WARNING, audit_board
from kanbanctl.domain.timestamps import parse_iso_datetime
from kanbanctl.domain.types import ExportFormat, Priority
from kanbanctl.domain.validation import (
    Violation,
    ensure_valid,
    validate_board_document,
    validate_board_fields,
    validate_board_query,
)
from kanbanctl.infrastructure.filesystem import atomic_write_text
from kanbanctl.services._helpers import copy_title, require_id
from kanbanctl.services.base import BaseService
from kanbanctl.services.contracts import (
    BoardListData,
    BoardStatsData,
    ExportData,
    IntegrityResultData,
    dump_validated,
)
from kanbanctl.services.result import ServiceError, ServiceResult

logger = structlog.get_logger(__name__)

CSV_HEADERS = [
    "Card ID",
    "Title",
    "Description",
    "Column",
    "Priority",
    "Assignee",
    "Due Date",
    "Tags",
    "Created",
    "Updated",
]


def _summary(board: Board) -> dict[str, Any]:
    return {
        "id": board.id,
        "title": board.title,
        "description": board.description,
        "column_count": len(board.columns),
        "card_count": len(board.cards),
        "created_at": board.created_at,
        "updated_at": board.updated_at,
    }


def render_csv(board: Board) -> str:
    """One row per card, in board order, with the column title joined in."""
    titles = {col.id: col.title for col in board.columns}
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for card in cards_in_board_order(board):
        writer.writerow(
            [
                card.id,
                card.title,
                card.description or "",
                titles.get(card.column_id, ""),
                card.priority,
                card.assignee or "",
                card.due_date or "",
                ", ".join(card.tags),
                card.created_at,
                card.updated_at,
            ]
        )
    return buffer.getvalue()


class BoardService(BaseService):
    """Create, read, update, delete, copy, and audit whole boards."""

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create_board(
        self,
        title: str,
        *,
        description: str | None = None,
        columns: Sequence[str] | None = None,
        settings: Mapping[str, Any] | None = None,
    ) -> ServiceResult:
        """Create a board; columns and settings default from the config document."""
        op = "create_board"
        try:
            defaults = self._workspace.config.get().defaults
            board = create_board(
                title=title,
                defaults=defaults,
                columns=columns,
                description=description,
                settings=settings,
            )
            self._ensure_unique_title(board.title)
            self._workspace.boards.insert(board)
        except KanbanError as exc:
            return self._fail(op, exc)
        logger.info("board_created", board_id=board.id, columns=len(board.columns))
        return ServiceResult(ok=True, op=op, data={"board": board.to_document()})

    def get_board(self, board_id: str) -> ServiceResult:
        op = "get_board"
        try:
            board = self._workspace.boards.get(require_id(board_id, "board_id"))
        except KanbanError as exc:
            return self._fail(op, exc)
        return ServiceResult(ok=True, op=op, data={"board": board.to_document()})

    def query_boards(self, query: BoardQuery | None = None) -> ServiceResult:
        """Filter, sort, and paginate all boards. No query lists everything."""
        op = "query_boards"
        query = query or BoardQuery()
        try:
            ensure_valid(validate_board_query(query), what="board query")
            boards = query_boards(self._workspace.boards.list_all(), query)
        except KanbanError as exc:
            return self._fail(op, exc)
        data = dump_validated(
            BoardListData,
            {"count": len(boards), "items": [_summary(b) for b in boards]},
        )
        return ServiceResult(ok=True, op=op, data=data)

    def update_board(self, board_id: str, changes: Mapping[str, Any]) -> ServiceResult:
        """Patch title, description, or settings."""
        op = "update_board"
        try:
            board_id = require_id(board_id, "board_id")
            if changes.get("title"):
                ensure_valid(validate_board_fields(changes, partial=True), what="board update")
                self._ensure_unique_title(changes["title"].strip(), exclude_id=board_id)
            board, _ = self._workspace.boards.mutate(
                board_id, lambda b: (update_board(b, changes), None)
            )
        except KanbanError as exc:
            return self._fail(op, exc)
        return ServiceResult(ok=True, op=op, data={"board": board.to_document()})

    def delete_board(self, board_id: str) -> ServiceResult:
        """Delete a board after writing a backup of its document."""
        op = "delete_board"
        try:
            board_id = require_id(board_id, "board_id")
            board = self._workspace.boards.get(board_id)
            backup = self._workspace.boards.delete(board_id)
        except KanbanError as exc:
            return self._fail(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": board.id, "title": board.title, "backup": str(backup)},
        )

    def restore_board(self, board_id: str) -> ServiceResult:
        """Restore the newest backup of a (usually deleted) board."""
        op = "restore_board"
        try:
            board_id = require_id(board_id, "board_id")
            board = self._workspace.boards.restore(board_id)
        except KanbanError as exc:
            return self._fail(op, exc)
        return ServiceResult(ok=True, op=op, data={"board": board.to_document()})

    # ------------------------------------------------------------------
    # Copy, export, import
    # ------------------------------------------------------------------

    def duplicate_board(self, board_id: str, title: str | None = None) -> ServiceResult:
        """Copy a board under fresh ids; default title is ``"<title> (Copy)"``."""
        op = "duplicate_board"
        try:
            source = self._workspace.boards.get(require_id(board_id, "board_id"))
            new_title = title if title is not None else copy_title(source.title)
            ensure_valid(validate_board_fields({"title": new_title}, partial=True), what="title")
            self._ensure_unique_title(new_title.strip())
            board = clone_board(source, title=new_title)
            self._workspace.boards.insert(board)
        except KanbanError as exc:
            return self._fail(op, exc)
        logger.info("board_duplicated", source_id=source.id, board_id=board.id)
        return ServiceResult(
            ok=True,
            op=op,
            data={"source_id": source.id, "board": board.to_document()},
        )

    def export_board(
        self,
        board_id: str,
        format: str = ExportFormat.JSON,
        *,
        output: Path | None = None,
    ) -> ServiceResult:
        """Render a board as a JSON document or a CSV card table.

        With *output* the content is written atomically to that path and the
        payload carries ``output_file`` instead of ``content``.
        """
        op = "export_board"
        try:
            if format not in tuple(ExportFormat):
                raise ValidationError(
                    f"Unsupported export format: {format}",
                    code="UNSUPPORTED_FORMAT",
                    violations=[
                        Violation("format", f"must be one of: {', '.join(ExportFormat)}", format)
                    ],
                )
            board = self._workspace.boards.get(require_id(board_id, "board_id"))
        except KanbanError as exc:
            return self._fail(op, exc)

        if format == ExportFormat.CSV:
            content = render_csv(board)
        else:
            content = json.dumps(board.to_document(), indent=2, ensure_ascii=False)
        payload: dict[str, Any] = {"board_id": board.id, "format": str(format)}
        if output is None:
            payload["content"] = content
        else:
            try:
                written = atomic_write_text(output, content)
            except OSError as exc:
                return ServiceResult(
                    ok=False,
                    op=op,
                    error=ServiceError(
                        code="EXPORT_WRITE_FAILED",
                        message=f"Cannot write {output}: {exc}",
                        detail={"path": str(output)},
                    ),
                )
            payload["output_file"] = str(written)
            logger.info("board_exported", board_id=board.id, path=str(written))
        return ServiceResult(ok=True, op=op, data=dump_validated(ExportData, payload))

    def import_board(
        self,
        document: Mapping[str, Any] | str,
        *,
        title: str | None = None,
    ) -> ServiceResult:
        """Create a new board from a JSON export under fresh ids.

        The document must pass the structural checks and the audit with no
        errors. Its title must be free unless *title* overrides it.
        """
        op = "import_board"
        try:
            raw = self._parse_document(document)
            ensure_valid(validate_board_document(raw), what="board document")
            try:
                source = Board.model_validate(raw)
            except pydantic.ValidationError as exc:
                raise ValidationError(f"Invalid board document: {exc}") from exc
            errors = [i for i in audit_board(source) if i["severity"] == SEVERITY_ERROR]
            if errors:
                raise ValidationError(
                    f"Board document fails integrity audit ({len(errors)} error(s))",
                    detail={"issues": errors},
                )
            new_title = title if title is not None else source.title
            ensure_valid(validate_board_fields({"title": new_title}, partial=True), what="title")
            self._ensure_unique_title(new_title.strip())
            board = clone_board(source, title=new_title)
            self._workspace.boards.insert(board)
        except KanbanError as exc:
            return self._fail(op, exc)
        logger.info("board_imported", source_id=source.id, board_id=board.id)
        return ServiceResult(
            ok=True,
            op=op,
            data={"source_id": source.id, "board": board.to_document()},
        )

    # ------------------------------------------------------------------
    # Audit and stats
    # ------------------------------------------------------------------

    def validate_board_integrity(
        self, board_id: str, *, min_severity: str = SEVERITY_WARNING
    ) -> ServiceResult:
        """Read-only audit. Fails only when the board cannot be loaded.

        ``min_severity="error"`` hides warnings from ``issues``; the counts
        and ``is_valid`` always cover the full audit.
        """
        op = "validate_board_integrity"
        try:
            board = self._workspace.boards.get(require_id(board_id, "board_id"))
        except KanbanError as exc:
            return self._fail(op, exc)

        issues = audit_board(board)
        error_count = sum(1 for i in issues if i["severity"] == SEVERITY_ERROR)
        warning_count = sum(1 for i in issues if i["severity"] == SEVERITY_WARNING)
        if min_severity == SEVERITY_ERROR:
            issues = [i for i in issues if i["severity"] == SEVERITY_ERROR]
        data = dump_validated(
            IntegrityResultData,
            {
                "board_id": board.id,
                "is_valid": error_count == 0,
                "issues": issues,
                "count": len(issues),
                "error_count": error_count,
                "warning_count": warning_count,
            },
        )
        return ServiceResult(ok=True, op=op, data=data)

    def get_board_stats(self, board_id: str) -> ServiceResult:
        """Card totals per column and priority, overdue count, completion rate.

        The last column (highest position) counts as done.
        """
        op = "get_board_stats"
        try:
            board = self._workspace.boards.get(require_id(board_id, "board_id"))
        except KanbanError as exc:
            return self._fail(op, exc)

        counts = Counter(card.column_id for card in board.cards)
        ordered = board.ordered_columns()
        done_id = ordered[-1].id if ordered else None
        now = datetime.now(UTC)
        overdue = sum(
            1
            for card in board.cards
            if card.due_date
            and card.column_id != done_id
            and parse_iso_datetime(card.due_date) < now
        )
        completed = counts[done_id] if done_id else 0
        total = len(board.cards)
        priorities = Counter(str(card.priority) for card in board.cards)
        data = dump_validated(
            BoardStatsData,
            {
                "board_id": board.id,
                "title": board.title,
                "total_cards": total,
                "columns": [
                    {
                        "id": col.id,
                        "title": col.title,
                        "position": col.position,
                        "card_count": counts[col.id],
                        "wip_limit": col.wip_limit,
                        "over_limit": col.wip_limit is not None and counts[col.id] > col.wip_limit,
                    }
                    for col in ordered
                ],
                "by_priority": {str(p): priorities[str(p)] for p in Priority},
                "overdue_cards": overdue,
                "completed_cards": completed,
                "completion_rate": round(completed / total, 4) if total else 0.0,
            },
        )
        return ServiceResult(ok=True, op=op, data=data)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_unique_title(self, title: str, *, exclude_id: str | None = None) -> None:
        existing = self._workspace.boards.find_by_title(title)
        if existing is not None and existing.id != exclude_id:
            raise ConflictError(
                f"Board with title '{title}' already exists",
                code="DUPLICATE_TITLE",
                detail={"title": title, "existing_id": existing.id},
            )

    @staticmethod
    def _parse_document(document: Mapping[str, Any] | str) -> Any:
        if not isinstance(document, str):
            return dict(document)
        try:
            return json.loads(document)
        except json.JSONDecodeError as exc:
            raise ValidationError(
                f"Board document is not valid JSON: {exc.msg}",
                violations=[Violation("document", "must be valid JSON", None)],
            ) from exc
