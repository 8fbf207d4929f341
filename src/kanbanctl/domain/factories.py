"""Factories that produce fully initialised entities.

Factories assign ids and timestamps and normalise free-text input. They do
not validate; callers run :mod:`kanbanctl.domain.validation` first.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from kanbanctl.domain.ids import new_id
from kanbanctl.domain.models import Board, BoardSettings, Card, Column
from kanbanctl.domain.timestamps import now_iso
from kanbanctl.domain.types import Priority


def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    """Strip, drop blanks, and de-duplicate tags keeping first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags or ():
        cleaned = tag.strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


def new_card(
    *,
    title: str,
    column_id: str,
    position: int,
    description: str | None = None,
    tags: Iterable[str] | None = None,
    priority: str | Priority = Priority.MEDIUM,
    assignee: str | None = None,
    due_date: str | None = None,
    timestamp: str | None = None,
) -> Card:
    ts = timestamp or now_iso()
    return Card(
        id=new_id(),
        title=title.strip(),
        description=description,
        position=position,
        column_id=column_id,
        tags=normalize_tags(tags),
        priority=Priority(priority),
        assignee=assignee,
        due_date=due_date,
        created_at=ts,
        updated_at=ts,
    )


def new_column(
    *,
    title: str,
    position: int,
    wip_limit: int | None = None,
    color: str | None = None,
) -> Column:
    return Column(
        id=new_id(),
        title=title.strip(),
        position=position,
        wip_limit=wip_limit,
        color=color.upper() if color else None,
    )


def new_board(
    *,
    title: str,
    column_titles: Iterable[str],
    description: str | None = None,
    settings: BoardSettings | None = None,
    settings_overrides: Mapping[str, Any] | None = None,
) -> Board:
    """Build a board whose columns take positions 0..n-1 in the given order."""
    ts = now_iso()
    base = settings or BoardSettings()
    if settings_overrides:
        base = merge_settings(base, settings_overrides)
    columns = [new_column(title=name, position=i) for i, name in enumerate(column_titles)]
    return Board(
        id=new_id(),
        title=title.strip(),
        description=description,
        columns=columns,
        cards=[],
        settings=base,
        created_at=ts,
        updated_at=ts,
    )


def merge_settings(settings: BoardSettings, overrides: Mapping[str, Any]) -> BoardSettings:
    """Apply a partial snake_case override on top of *settings*."""
    return BoardSettings.model_validate({**settings.model_dump(), **dict(overrides)})


def touch(board: Board, **changes: Any) -> Board:
    """Copy *board* with *changes* applied and ``updated_at`` refreshed."""
    return board.model_copy(update={**changes, "updated_at": now_iso()})
