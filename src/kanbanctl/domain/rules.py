"""Business rules (phase B) and the whole-board audit.

Rule checks take the entity being changed plus its owning board and raise
on the first broken rule. :func:`audit_board` never raises; it reports
every problem it finds as an issue dict, linter style.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from typing import Any

from kanbanctl.domain.errors import ConflictError, NotFoundError, ValidationError
from kanbanctl.domain.models import Board, Card, Column
from kanbanctl.domain.validation import validate_board_document

# ---------------------------------------------------------------------------
# Issue severity and category constants
# ---------------------------------------------------------------------------

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

CAT_STRUCTURE = "structural_validation"
CAT_COLUMN_ORDER = "column_order"
CAT_COLUMN_TITLES = "column_titles"
CAT_CARD_REFERENCES = "card_references"
CAT_CARD_ORDER = "card_order"
CAT_WIP = "wip_limits"


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def require_column(board: Board, column_id: str) -> Column:
    column = board.find_column(column_id)
    if column is None:
        raise NotFoundError("Column", column_id)
    return column


def require_card(board: Board, card_id: str) -> Card:
    card = board.find_card(card_id)
    if card is None:
        raise NotFoundError("Card", card_id)
    return card


# ---------------------------------------------------------------------------
# Rule checks
# ---------------------------------------------------------------------------


def check_card_position(board: Board, column_id: str, position: int) -> None:
    """A requested card position must lie within [0, sibling count]."""
    siblings = len(board.cards_in(column_id))
    if not 0 <= position <= siblings:
        raise ValidationError(
            f"Card position {position} is out of range; column has {siblings} card(s)",
            code="INVALID_POSITION",
            detail={"column_id": column_id, "position": position, "max_position": siblings},
        )


def wip_enforced(board: Board, *, override_wip: bool = False) -> bool:
    return not (override_wip or board.settings.allow_wip_limit_exceeding)


def check_wip_limit(
    board: Board,
    column: Column,
    *,
    exclude_card_id: str | None = None,
    override_wip: bool = False,
) -> None:
    """Reject one more card in *column* when it would exceed ``wip_limit``.

    *exclude_card_id* leaves the moving card out of the count.
    """
    if column.wip_limit is None or not wip_enforced(board, override_wip=override_wip):
        return
    current = sum(
        1 for card in board.cards if card.column_id == column.id and card.id != exclude_card_id
    )
    if current >= column.wip_limit:
        raise ConflictError(
            f"Column '{column.title}' has reached its WIP limit of {column.wip_limit}",
            code="WIP_LIMIT_EXCEEDED",
            detail={
                "column_id": column.id,
                "current_count": current,
                "limit": column.wip_limit,
            },
        )


def check_column_position(board: Board, position: int, *, inserting: bool = False) -> None:
    """Bounds for a column position; inserting allows one past the end."""
    upper = len(board.columns) if inserting else len(board.columns) - 1
    if not 0 <= position <= upper:
        raise ValidationError(
            f"Column position {position} is out of range (0..{upper})",
            code="INVALID_POSITION",
            detail={"position": position, "max_position": upper},
        )


def check_unique_column_title(board: Board, title: str, *, exclude_id: str | None = None) -> None:
    for column in board.columns:
        if column.id != exclude_id and column.title == title:
            raise ConflictError(
                f"Column with title '{title}' already exists",
                code="DUPLICATE_TITLE",
                detail={"title": title, "existing_id": column.id},
            )


def check_column_empty(board: Board, column: Column) -> None:
    count = sum(1 for card in board.cards if card.column_id == column.id)
    if count:
        raise ConflictError(
            f"Column '{column.title}' still holds {count} card(s)",
            code="COLUMN_NOT_EMPTY",
            detail={"column_id": column.id, "card_count": count},
        )


# ---------------------------------------------------------------------------
# Whole-board audit
# ---------------------------------------------------------------------------


def _issue(category: str, severity: str, entity_id: str | None, message: str) -> dict[str, Any]:
    return {
        "category": category,
        "severity": severity,
        "entity_id": entity_id,
        "message": message,
    }


def audit_board(board: Board) -> list[dict[str, Any]]:
    """Report every integrity problem of *board* without modifying it.

    Issues come out in a fixed order (category, then board order) so two
    audits of the same document are identical.
    """
    issues: list[dict[str, Any]] = []
    issues.extend(_audit_structure(board))
    issues.extend(_audit_columns(board))
    issues.extend(_audit_cards(board))
    issues.extend(_audit_wip(board))
    return issues


def _audit_structure(board: Board) -> list[dict[str, Any]]:
    result = validate_board_document(board.to_document())
    return [
        _issue(CAT_STRUCTURE, SEVERITY_ERROR, board.id, f"{v.field}: {v.message}")
        for v in result.violations
    ]


def _audit_columns(board: Board) -> list[dict[str, Any]]:
    issues: list[dict[str, Any]] = []
    if not board.columns:
        issues.append(_issue(CAT_COLUMN_ORDER, SEVERITY_WARNING, board.id, "Board has no columns"))
        return issues

    positions = sorted(col.position for col in board.columns)
    if positions != list(range(len(board.columns))):
        issues.append(
            _issue(
                CAT_COLUMN_ORDER,
                SEVERITY_ERROR,
                board.id,
                f"Column positions are not sequential: {positions}",
            )
        )

    title_counts = Counter(col.title.strip() for col in board.columns)
    for column in board.columns:
        if title_counts[column.title.strip()] > 1:
            issues.append(
                _issue(
                    CAT_COLUMN_TITLES,
                    SEVERITY_ERROR,
                    column.id,
                    f"Duplicate column title '{column.title}'",
                )
            )
    return issues


def _audit_cards(board: Board) -> list[dict[str, Any]]:
    issues: list[dict[str, Any]] = []
    column_ids = {col.id for col in board.columns}
    by_column: dict[str, list[Card]] = defaultdict(list)

    for card in board.cards:
        if card.column_id not in column_ids:
            issues.append(
                _issue(
                    CAT_CARD_REFERENCES,
                    SEVERITY_ERROR,
                    card.id,
                    f"Card {card.id} references non-existent column {card.column_id}",
                )
            )
        by_column[card.column_id].append(card)

    for column_id, cards in by_column.items():
        positions = sorted(card.position for card in cards)
        if len(set(positions)) != len(positions):
            issues.append(
                _issue(
                    CAT_CARD_ORDER,
                    SEVERITY_ERROR,
                    column_id,
                    f"Column {column_id} has duplicate card positions",
                )
            )
        elif positions != list(range(len(positions))):
            issues.append(
                _issue(
                    CAT_CARD_ORDER,
                    SEVERITY_ERROR,
                    column_id,
                    f"Column {column_id} has gaps in card positions: {positions}",
                )
            )
    return issues


def _audit_wip(board: Board) -> list[dict[str, Any]]:
    counts = Counter(card.column_id for card in board.cards)
    return [
        _issue(
            CAT_WIP,
            SEVERITY_WARNING,
            column.id,
            f"Column '{column.title}' holds {counts[column.id]} card(s), "
            f"over its WIP limit of {column.wip_limit}",
        )
        for column in board.ordered_columns()
        if column.wip_limit is not None and counts[column.id] > column.wip_limit
    ]
