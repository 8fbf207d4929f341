"""Board, Column, Card, and Settings entity models.

Attributes are snake_case in Python and camelCase in the persisted JSON
document (``columnId``, ``wipLimit``, ``allowWipLimitExceeding``, ...).
Models are frozen: every mutation goes through ``model_copy(update=...)``
so a loaded document is never modified in place.

Field constraints are deliberately absent here. Structural checks live in
:mod:`kanbanctl.domain.validation` so that every violation is reported at
once instead of failing on the first one.

INVARIANT: Cards reference their column by id; columns never hold cards.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from kanbanctl.domain.types import Priority, Theme

_ENTITY_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


class BoardSettings(BaseModel):
    """Per-board behaviour toggles."""

    model_config = _ENTITY_CONFIG

    allow_wip_limit_exceeding: bool = False
    show_card_count: bool = True
    enable_drag_drop: bool = True
    theme: Theme = Theme.LIGHT


class Card(BaseModel):
    """A unit of work belonging to exactly one column."""

    model_config = _ENTITY_CONFIG

    id: str
    title: str
    description: str | None = None
    position: int = 0
    column_id: str
    tags: list[str] = Field(default_factory=list)
    priority: Priority = Priority.MEDIUM
    assignee: str | None = None
    due_date: str | None = None
    created_at: str
    updated_at: str


class Column(BaseModel):
    """A named workflow stage with an ordering position and optional WIP limit."""

    model_config = _ENTITY_CONFIG

    id: str
    title: str
    position: int = 0
    wip_limit: int | None = None
    color: str | None = None


class Board(BaseModel):
    """Aggregate root holding the columns, cards, and settings of one board."""

    model_config = _ENTITY_CONFIG

    id: str
    title: str
    description: str | None = None
    columns: list[Column] = Field(default_factory=list)
    cards: list[Card] = Field(default_factory=list)
    settings: BoardSettings = Field(default_factory=BoardSettings)
    created_at: str
    updated_at: str

    # -- lookups -------------------------------------------------------

    def column_index(self) -> dict[str, Column]:
        return {col.id: col for col in self.columns}

    def find_column(self, column_id: str) -> Column | None:
        return next((col for col in self.columns if col.id == column_id), None)

    def find_card(self, card_id: str) -> Card | None:
        return next((card for card in self.cards if card.id == card_id), None)

    def cards_in(self, column_id: str) -> list[Card]:
        """Cards of one column, ordered by position."""
        return sorted(
            (card for card in self.cards if card.column_id == column_id),
            key=lambda card: card.position,
        )

    def ordered_columns(self) -> list[Column]:
        return sorted(self.columns, key=lambda col: col.position)

    @property
    def tags(self) -> list[str]:
        """Union of all card tags, in first-seen order."""
        seen: dict[str, None] = {}
        for card in self.cards:
            for tag in card.tags:
                seen.setdefault(tag, None)
        return list(seen)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the persisted camelCase JSON document."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class BoardDefaults(BaseModel):
    """Columns and settings applied to boards created without overrides."""

    model_config = _ENTITY_CONFIG

    columns: list[str] = Field(default_factory=lambda: ["To Do", "In Progress", "Done"])
    settings: BoardSettings = Field(default_factory=BoardSettings)


class ConfigDocument(BaseModel):
    """The singleton global configuration document."""

    model_config = _ENTITY_CONFIG

    defaults: BoardDefaults = Field(default_factory=BoardDefaults)
    updated_at: str | None = None

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def card_payload(card: Card) -> dict[str, Any]:
    """Camel-case dict for one card (service payloads share the document format)."""
    return card.model_dump(mode="json", by_alias=True, exclude_none=True)


def column_payload(column: Column) -> dict[str, Any]:
    return column.model_dump(mode="json", by_alias=True, exclude_none=True)
