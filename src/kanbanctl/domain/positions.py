"""Dense position ordering for columns and cards.

Positions within one scope (the columns of a board, or the cards of one
column) are always renumbered to 0..n-1. Every function returns new
instances via ``model_copy``; inputs are never modified.

INVARIANT: The output of every function here has dense positions.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, Self

from kanbanctl.domain.errors import ValidationError


class Positioned(Protocol):
    """Anything with an integer position that can be copied with updates."""

    @property
    def position(self) -> int: ...

    def model_copy(self, *, update: dict[str, object] | None = None, deep: bool = False) -> Self: ...


def _renumber[T: Positioned](ordered: Sequence[T]) -> list[T]:
    return [
        item if item.position == i else item.model_copy(update={"position": i})
        for i, item in enumerate(ordered)
    ]


def _ordered[T: Positioned](items: Sequence[T]) -> list[T]:
    return sorted(items, key=lambda item: item.position)


def _invalid_position(position: int, size: int) -> ValidationError:
    return ValidationError(
        f"Position {position} is out of range for {size} item(s)",
        code="INVALID_POSITION",
        detail={"position": position, "size": size},
    )


def normalize_positions[T: Positioned](items: Sequence[T]) -> list[T]:
    """Stable-sort by current position, then reassign 0..n-1."""
    return _renumber(_ordered(items))


def insert_at_position[T: Positioned](items: Sequence[T], new_item: T, position: int) -> list[T]:
    """Splice *new_item* in at *position* (clamped to [0, len]) and renumber."""
    ordered = _ordered(items)
    index = max(0, min(position, len(ordered)))
    ordered.insert(index, new_item)
    return _renumber(ordered)


def remove_at_position[T: Positioned](items: Sequence[T], index: int) -> list[T]:
    """Drop the item at *index* of the position-ordered list and renumber."""
    ordered = _ordered(items)
    if not 0 <= index < len(ordered):
        raise _invalid_position(index, len(ordered))
    del ordered[index]
    return _renumber(ordered)


def reorder_items[T: Positioned](
    items: Sequence[T], from_position: int, to_position: int
) -> list[T]:
    """Move the item at *from_position* to *to_position* and renumber."""
    ordered = _ordered(items)
    for position in (from_position, to_position):
        if not 0 <= position < len(ordered):
            raise _invalid_position(position, len(ordered))
    item = ordered.pop(from_position)
    ordered.insert(to_position, item)
    return _renumber(ordered)


def next_position(items: Sequence[Positioned]) -> int:
    """One past the highest position, or 0 for an empty scope."""
    return max((item.position for item in items), default=-1) + 1
