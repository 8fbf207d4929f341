"""Structural validation (phase A): types, lengths, enums, and formats.

Each ``validate_*`` function returns a :class:`ValidationResult` listing
every violation it found. Nothing here looks at the owning board; the
business rules that need one live in :mod:`kanbanctl.domain.rules`.

Callers that want an exception use :func:`ensure_valid`.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from kanbanctl.domain.errors import ValidationError
from kanbanctl.domain.ids import is_valid_id
from kanbanctl.domain.timestamps import is_iso_datetime
from kanbanctl.domain.types import BoardSortField, CardSortField, Priority, SortOrder, Theme

if TYPE_CHECKING:
    from kanbanctl.domain.query import BoardQuery, CardQuery

CARD_TITLE_MAX = 200
COLUMN_TITLE_MAX = 100
BOARD_TITLE_MAX = 100
WIP_LIMIT_MIN = 1

HEX_COLOR = re.compile(r"^#[0-9A-F]{6}$", re.IGNORECASE)

CARD_UPDATE_FIELDS = frozenset({"title", "description", "tags", "priority", "assignee", "due_date"})
CARD_CREATE_FIELDS = CARD_UPDATE_FIELDS | {"column_id", "position"}
COLUMN_FIELDS = frozenset({"title", "wip_limit", "color", "position"})
BOARD_UPDATE_FIELDS = frozenset({"title", "description", "settings"})
BOARD_CREATE_FIELDS = BOARD_UPDATE_FIELDS | {"columns"}
SETTINGS_FIELDS = frozenset(
    {"allow_wip_limit_exceeding", "show_card_count", "enable_drag_drop", "theme"}
)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Violation:
    """One violated field constraint."""

    field: str
    message: str
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "message": self.message, "value": self.value}


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a structural check."""

    valid: bool
    violations: list[Violation] = field(default_factory=list)

    @classmethod
    def of(cls, violations: list[Violation]) -> ValidationResult:
        return cls(valid=not violations, violations=list(violations))

    @property
    def messages(self) -> list[str]:
        return [f"{v.field}: {v.message}" for v in self.violations]


def ensure_valid(result: ValidationResult, *, what: str = "input") -> None:
    """Raise :class:`ValidationError` carrying every violation in *result*."""
    if result.valid:
        return
    summary = "; ".join(result.messages)
    raise ValidationError(f"Invalid {what}: {summary}", violations=result.violations)


# ---------------------------------------------------------------------------
# Field checks
# ---------------------------------------------------------------------------


class _Checks:
    """Accumulates violations for one validated object."""

    def __init__(self, prefix: str = "") -> None:
        self._prefix = prefix
        self.violations: list[Violation] = []

    def _name(self, name: str) -> str:
        return f"{self._prefix}{name}"

    def fail(self, name: str, message: str, value: Any = None) -> None:
        self.violations.append(Violation(self._name(name), message, value))

    def unknown_keys(self, data: Mapping[str, Any], allowed: frozenset[str]) -> None:
        for key in sorted(set(data) - allowed):
            self.fail(key, "is not a recognised field", data[key])

    def text(
        self,
        name: str,
        value: Any,
        *,
        max_len: int | None = None,
        required: bool = False,
    ) -> None:
        if value is None:
            if required:
                self.fail(name, "is required")
            return
        if not isinstance(value, str):
            self.fail(name, "must be a string", value)
            return
        if required and not value.strip():
            self.fail(name, "must not be blank", value)
        elif max_len is not None and len(value.strip()) > max_len:
            self.fail(name, f"must be at most {max_len} characters", value)

    def choice(self, name: str, value: Any, choices: type[Any]) -> None:
        if value is None:
            return
        allowed = [str(c) for c in choices]
        if str(value) not in allowed or not isinstance(value, str):
            self.fail(name, f"must be one of: {', '.join(allowed)}", value)

    def integer(self, name: str, value: Any, *, minimum: int) -> None:
        if value is None:
            return
        if isinstance(value, bool) or not isinstance(value, int):
            self.fail(name, "must be an integer", value)
        elif value < minimum:
            self.fail(name, f"must be >= {minimum}", value)

    def boolean(self, name: str, value: Any) -> None:
        if value is not None and not isinstance(value, bool):
            self.fail(name, "must be a boolean", value)

    def identifier(self, name: str, value: Any, *, required: bool = False) -> None:
        if value is None:
            if required:
                self.fail(name, "is required")
            return
        if not is_valid_id(value):
            self.fail(name, "must be a valid UUID", value)

    def timestamp(self, name: str, value: Any, *, required: bool = False) -> None:
        if value is None:
            if required:
                self.fail(name, "is required")
            return
        if not is_iso_datetime(value):
            self.fail(name, "must be an ISO-8601 datetime", value)

    def color(self, name: str, value: Any) -> None:
        if value is None:
            return
        if not isinstance(value, str) or not HEX_COLOR.match(value):
            self.fail(name, "must be a hex color like #FF5733", value)

    def string_list(self, name: str, value: Any, *, non_empty_items: bool = True) -> None:
        if value is None:
            return
        if not isinstance(value, (list, tuple)):
            self.fail(name, "must be a list of strings", value)
            return
        for i, item in enumerate(value):
            if not isinstance(item, str):
                self.fail(f"{name}[{i}]", "must be a string", item)
            elif non_empty_items and not item.strip():
                self.fail(f"{name}[{i}]", "must not be blank", item)

    def column_titles(self, name: str, value: Any) -> None:
        """A non-empty list of column titles, unique once stripped."""
        self.string_list(name, value)
        if not isinstance(value, (list, tuple)):
            return
        if not value:
            self.fail(name, "must contain at least one column title", value)
        stripped: list[str] = []
        for i, title in enumerate(value):
            if not isinstance(title, str):
                continue
            if len(title.strip()) > COLUMN_TITLE_MAX:
                self.fail(
                    f"{name}[{i}]", f"must be at most {COLUMN_TITLE_MAX} characters", title
                )
            stripped.append(title.strip())
        duplicates = sorted({t for t in stripped if t and stripped.count(t) > 1})
        if duplicates:
            self.fail(name, f"column titles must be unique: {', '.join(duplicates)}", value)

    def result(self) -> ValidationResult:
        return ValidationResult.of(self.violations)


# ---------------------------------------------------------------------------
# Entity inputs
# ---------------------------------------------------------------------------


def validate_card_fields(fields: Mapping[str, Any], *, partial: bool = False) -> ValidationResult:
    """Check card create input, or a patch when *partial* is True.

    Patches may not touch ``column_id`` or ``position``; moving a card is a
    separate operation.
    """
    checks = _Checks()
    checks.unknown_keys(fields, CARD_UPDATE_FIELDS if partial else CARD_CREATE_FIELDS)
    if partial and "title" in fields and fields["title"] is None:
        checks.fail("title", "cannot be cleared")
    checks.text(
        "title",
        fields.get("title"),
        max_len=CARD_TITLE_MAX,
        required=not partial or "title" in fields,
    )
    checks.text("description", fields.get("description"))
    checks.string_list("tags", fields.get("tags"), non_empty_items=False)
    checks.choice("priority", fields.get("priority"), Priority)
    checks.text("assignee", fields.get("assignee"))
    checks.timestamp("due_date", fields.get("due_date"))
    if not partial:
        checks.identifier("column_id", fields.get("column_id"), required=True)
        checks.integer("position", fields.get("position"), minimum=0)
    return checks.result()


def validate_column_fields(fields: Mapping[str, Any], *, partial: bool = False) -> ValidationResult:
    """Check column create input, or a patch when *partial* is True."""
    checks = _Checks()
    checks.unknown_keys(fields, COLUMN_FIELDS)
    if partial and "title" in fields and fields["title"] is None:
        checks.fail("title", "cannot be cleared")
    checks.text(
        "title",
        fields.get("title"),
        max_len=COLUMN_TITLE_MAX,
        required=not partial or "title" in fields,
    )
    checks.integer("wip_limit", fields.get("wip_limit"), minimum=WIP_LIMIT_MIN)
    checks.color("color", fields.get("color"))
    checks.integer("position", fields.get("position"), minimum=0)
    return checks.result()


def validate_settings_fields(fields: Any, *, prefix: str = "settings.") -> ValidationResult:
    """Check a (possibly partial) board settings override mapping."""
    checks = _Checks(prefix)
    if not isinstance(fields, Mapping):
        return ValidationResult.of([Violation(prefix.rstrip("."), "must be a mapping", fields)])
    checks.unknown_keys(fields, SETTINGS_FIELDS)
    checks.boolean("allow_wip_limit_exceeding", fields.get("allow_wip_limit_exceeding"))
    checks.boolean("show_card_count", fields.get("show_card_count"))
    checks.boolean("enable_drag_drop", fields.get("enable_drag_drop"))
    checks.choice("theme", fields.get("theme"), Theme)
    return checks.result()


def validate_column_titles(columns: Any, *, name: str = "columns") -> ValidationResult:
    """Check a list of column titles as used to seed a new board."""
    checks = _Checks()
    checks.column_titles(name, columns)
    return checks.result()


def validate_board_fields(fields: Mapping[str, Any], *, partial: bool = False) -> ValidationResult:
    """Check board create input, or a patch when *partial* is True."""
    checks = _Checks()
    checks.unknown_keys(fields, BOARD_UPDATE_FIELDS if partial else BOARD_CREATE_FIELDS)
    if partial and "title" in fields and fields["title"] is None:
        checks.fail("title", "cannot be cleared")
    checks.text(
        "title",
        fields.get("title"),
        max_len=BOARD_TITLE_MAX,
        required=not partial or "title" in fields,
    )
    checks.text("description", fields.get("description"))
    columns = fields.get("columns")
    if columns is not None:
        checks.column_titles("columns", columns)
    violations = list(checks.violations)
    if fields.get("settings") is not None:
        violations.extend(validate_settings_fields(fields["settings"]).violations)
    return ValidationResult.of(violations)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def _query_checks(checks: _Checks, query: BoardQuery | CardQuery) -> None:
    checks.text("title", query.title)
    checks.string_list("tags", query.tags, non_empty_items=False)
    checks.timestamp("created_after", query.created_after)
    checks.timestamp("created_before", query.created_before)
    checks.timestamp("updated_after", query.updated_after)
    checks.timestamp("updated_before", query.updated_before)
    checks.choice("sort_order", query.sort_order, SortOrder)
    checks.integer("offset", query.offset, minimum=0)
    checks.integer("limit", query.limit, minimum=1)


def validate_board_query(query: BoardQuery) -> ValidationResult:
    checks = _Checks()
    _query_checks(checks, query)
    checks.choice("sort_by", query.sort_by, BoardSortField)
    return checks.result()


def validate_card_query(query: CardQuery) -> ValidationResult:
    checks = _Checks()
    _query_checks(checks, query)
    checks.choice("sort_by", query.sort_by, CardSortField)
    checks.text("content", query.content)
    checks.identifier("column_id", query.column_id)
    checks.choice("priority", query.priority, Priority)
    checks.text("status", query.status)
    checks.text("assignee", query.assignee)
    return checks.result()


# ---------------------------------------------------------------------------
# Whole documents (import and audit)
# ---------------------------------------------------------------------------


def validate_board_document(document: Any) -> ValidationResult:
    """Check a raw camelCase board document as persisted or exported."""
    if not isinstance(document, Mapping):
        return ValidationResult.of([Violation("board", "must be a JSON object", None)])

    checks = _Checks()
    checks.identifier("id", document.get("id"), required=True)
    checks.text("title", document.get("title"), max_len=BOARD_TITLE_MAX, required=True)
    checks.text("description", document.get("description"))
    checks.timestamp("createdAt", document.get("createdAt"), required=True)
    checks.timestamp("updatedAt", document.get("updatedAt"), required=True)
    violations = list(checks.violations)

    settings = document.get("settings", {})
    if not isinstance(settings, Mapping):
        violations.append(Violation("settings", "must be a JSON object", settings))
    else:
        inner = _Checks("settings.")
        inner.boolean("allowWipLimitExceeding", settings.get("allowWipLimitExceeding"))
        inner.boolean("showCardCount", settings.get("showCardCount"))
        inner.boolean("enableDragDrop", settings.get("enableDragDrop"))
        inner.choice("theme", settings.get("theme"), Theme)
        violations.extend(inner.violations)

    columns = document.get("columns", [])
    if not isinstance(columns, list):
        violations.append(Violation("columns", "must be a list", columns))
        columns = []
    for i, column in enumerate(columns):
        violations.extend(_column_document_violations(column, f"columns[{i}]."))
    titles = [
        column["title"].strip()
        for column in columns
        if isinstance(column, Mapping) and isinstance(column.get("title"), str)
    ]
    duplicates = sorted({t for t in titles if t and titles.count(t) > 1})
    if duplicates:
        violations.append(
            Violation("columns", f"column titles must be unique: {', '.join(duplicates)}", None)
        )

    cards = document.get("cards", [])
    if not isinstance(cards, list):
        violations.append(Violation("cards", "must be a list", cards))
        cards = []
    for i, card in enumerate(cards):
        violations.extend(_card_document_violations(card, f"cards[{i}]."))

    return ValidationResult.of(violations)


def _column_document_violations(column: Any, prefix: str) -> list[Violation]:
    if not isinstance(column, Mapping):
        return [Violation(prefix.rstrip("."), "must be a JSON object", column)]
    checks = _Checks(prefix)
    checks.identifier("id", column.get("id"), required=True)
    checks.text("title", column.get("title"), max_len=COLUMN_TITLE_MAX, required=True)
    if column.get("position") is None:
        checks.fail("position", "is required")
    checks.integer("position", column.get("position"), minimum=0)
    checks.integer("wipLimit", column.get("wipLimit"), minimum=WIP_LIMIT_MIN)
    checks.color("color", column.get("color"))
    return checks.violations


def _card_document_violations(card: Any, prefix: str) -> list[Violation]:
    if not isinstance(card, Mapping):
        return [Violation(prefix.rstrip("."), "must be a JSON object", card)]
    checks = _Checks(prefix)
    checks.identifier("id", card.get("id"), required=True)
    checks.text("title", card.get("title"), max_len=CARD_TITLE_MAX, required=True)
    checks.text("description", card.get("description"))
    if card.get("position") is None:
        checks.fail("position", "is required")
    checks.integer("position", card.get("position"), minimum=0)
    checks.identifier("columnId", card.get("columnId"), required=True)
    checks.string_list("tags", card.get("tags"))
    checks.choice("priority", card.get("priority"), Priority)
    checks.text("assignee", card.get("assignee"))
    checks.timestamp("dueDate", card.get("dueDate"))
    checks.timestamp("createdAt", card.get("createdAt"), required=True)
    checks.timestamp("updatedAt", card.get("updatedAt"), required=True)
    return checks.violations
