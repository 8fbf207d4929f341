"""Enumerations shared by the board entities and the query engine."""

from __future__ import annotations

from enum import StrEnum


class Priority(StrEnum):
    """Card priority levels, ordered low < medium < high."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Theme(StrEnum):
    """Board display themes."""

    LIGHT = "light"
    DARK = "dark"
    AUTO = "auto"


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"


class BoardSortField(StrEnum):
    """Fields a board query may sort on."""

    TITLE = "title"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"


class CardSortField(StrEnum):
    """Fields a card query may sort on."""

    TITLE = "title"
    PRIORITY = "priority"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    STATUS = "status"


class ExportFormat(StrEnum):
    JSON = "json"
    CSV = "csv"


# Explicit priority ranking for sorting (low < medium < high).
PRIORITY_RANK: dict[str, int] = {
    Priority.LOW: 0,
    Priority.MEDIUM: 1,
    Priority.HIGH: 2,
}
