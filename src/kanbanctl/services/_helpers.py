"""Shared service-layer helper functions."""

from __future__ import annotations

from kanbanctl.domain.errors import ValidationError
from kanbanctl.domain.ids import is_valid_id
from kanbanctl.domain.validation import Violation


def require_id(value: object, field: str) -> str:
    """Reject malformed entity ids before any lookup happens."""
    if not is_valid_id(value):
        raise ValidationError(
            f"Invalid {field}: {value!r} is not a valid UUID",
            code="INVALID_ID",
            violations=[Violation(field, "must be a valid UUID", value)],
        )
    return str(value)


def copy_title(title: str) -> str:
    """Default title for a duplicated board."""
    return f"{title} (Copy)"
