"""Typed payload contracts for service and adapter boundaries.

These models validate operation payload shapes before they leave the
service layer so key regressions (for example ``items`` vs ``boards``)
fail fast in tests and during development.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


def dump_validated[T: BaseModel](model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="python")


class BoardSummary(BaseModel):
    """One row of a board listing."""

    id: str
    title: str
    description: str | None = None
    column_count: int
    card_count: int
    created_at: str
    updated_at: str


class BoardListData(BaseModel):
    """Payload contract for ``BoardService.query_boards``."""

    count: int
    items: list[BoardSummary]


class CardListData(BaseModel):
    """Payload contract for card listings, queries, and searches.

    Items are camelCase card documents.
    """

    board_id: str
    count: int
    items: list[dict[str, Any]]
    query: str | None = None


class IntegrityIssue(BaseModel):
    """One finding of the board audit."""

    model_config = ConfigDict(extra="allow")

    category: str
    severity: Literal["warning", "error"]
    entity_id: str | None = None
    message: str


class IntegrityResultData(BaseModel):
    """Payload contract for ``BoardService.validate_board_integrity``."""

    board_id: str
    is_valid: bool
    issues: list[IntegrityIssue]
    count: int
    error_count: int
    warning_count: int


class ColumnStats(BaseModel):
    id: str
    title: str
    position: int
    card_count: int
    wip_limit: int | None = None
    over_limit: bool = False


class BoardStatsData(BaseModel):
    """Payload contract for ``BoardService.get_board_stats``."""

    board_id: str
    title: str
    total_cards: int
    columns: list[ColumnStats]
    by_priority: dict[str, int] = Field(default_factory=dict)
    overdue_cards: int
    completed_cards: int
    completion_rate: float


class ExportData(BaseModel):
    """Payload contract for ``BoardService.export_board``."""

    board_id: str
    format: Literal["json", "csv"]
    content: str | None = None
    output_file: str | None = None
