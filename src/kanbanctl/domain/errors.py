"""Error taxonomy for the board aggregate engine.

Every error carries a stable machine-readable ``code``, a human-readable
``message``, and a structured ``detail`` dict. ``category`` groups codes
for the adapters (HTTP status, CLI exit code); ``retryable`` marks the
optimistic-concurrency conflict, the only failure that is safe to retry
blindly.

Services convert these into :class:`~kanbanctl.services.result.ServiceError`
so no exception crosses the service boundary.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from kanbanctl.domain.validation import Violation

CATEGORY_VALIDATION = "validation"
CATEGORY_NOT_FOUND = "not_found"
CATEGORY_CONFLICT = "conflict"
CATEGORY_INTERNAL = "internal"


class KanbanError(Exception):
    """Base class for all domain and persistence errors."""

    category: ClassVar[str] = CATEGORY_INTERNAL
    default_code: ClassVar[str] = "INTERNAL_ERROR"
    retryable: ClassVar[bool] = False

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.detail: dict[str, Any] = detail or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "detail": self.detail,
            "category": self.category,
            "retryable": self.retryable,
        }


class ValidationError(KanbanError):
    """Malformed or out-of-range input, detected before any mutation."""

    category = CATEGORY_VALIDATION
    default_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        violations: list[Violation] | None = None,
        detail: dict[str, Any] | None = None,
    ) -> None:
        payload = dict(detail or {})
        self.violations = list(violations or [])
        if self.violations:
            payload["violations"] = [v.to_dict() for v in self.violations]
        super().__init__(message, code=code, detail=payload)


class NotFoundError(KanbanError):
    """A board, column, card, or backup id did not resolve."""

    category = CATEGORY_NOT_FOUND
    default_code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: str) -> None:
        super().__init__(
            f"{resource} with id '{resource_id}' not found",
            code=f"{resource.upper()}_NOT_FOUND",
            detail={"resource": resource.lower(), "id": resource_id},
        )
        self.resource = resource
        self.resource_id = resource_id


class ConflictError(KanbanError):
    """A business rule rejected the change (duplicate title, WIP, ...)."""

    category = CATEGORY_CONFLICT
    default_code = "CONFLICT"


class VersionConflictError(ConflictError):
    """The stored document changed between load and write."""

    default_code = "VERSION_CONFLICT"
    retryable = True

    def __init__(self, board_id: str, expected_version: int) -> None:
        super().__init__(
            f"Board '{board_id}' was modified concurrently (expected version {expected_version})",
            detail={"board_id": board_id, "expected_version": expected_version},
        )


class InternalError(KanbanError):
    """Persistence failure (database or filesystem I/O, corrupt document)."""

    default_code = "STORAGE_ERROR"
