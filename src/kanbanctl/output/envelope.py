"""API response envelope and status mapping for ServiceResult.

HTTP routing is not part of this package; API-layer callers use
:func:`to_envelope` to turn a result into ``(status, body)``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from kanbanctl.domain.timestamps import now_iso

if TYPE_CHECKING:
    from kanbanctl.services.result import ServiceResult

HTTP_STATUS: dict[str, int] = {
    "validation": 400,
    "unauthorized": 401,
    "forbidden": 403,
    "not_found": 404,
    "conflict": 409,
    "rate_limited": 429,
    "internal": 500,
}

EXIT_CODES: dict[str, int] = {
    "validation": 2,
    "unauthorized": 3,
    "forbidden": 4,
    "not_found": 5,
    "conflict": 6,
    "rate_limited": 7,
}
EXIT_GENERIC = 1

# Operations that create a resource answer 201 on success.
_CREATED_OPS = frozenset(
    {"create_board", "duplicate_board", "import_board", "add_card", "add_column"}
)


def http_status(result: ServiceResult) -> int:
    if result.ok:
        return 201 if result.op in _CREATED_OPS else 200
    category = result.error.category if result.error else "internal"
    return HTTP_STATUS.get(category, 500)


def exit_code(result: ServiceResult) -> int:
    """Process exit code for the CLI: 0 on success, category-specific otherwise."""
    if result.ok:
        return 0
    category = result.error.category if result.error else "internal"
    return EXIT_CODES.get(category, EXIT_GENERIC)


def to_envelope(result: ServiceResult) -> tuple[int, dict[str, Any]]:
    """Map a result to ``(status, {success, data | error, timestamp})``."""
    body: dict[str, Any] = {"success": result.ok}
    if result.ok:
        body["data"] = result.data
        if result.warnings:
            body["warnings"] = list(result.warnings)
    else:
        error = result.error
        body["error"] = {
            "code": error.code if error else "INTERNAL_ERROR",
            "message": error.message if error else "Unknown error",
            "details": error.detail if error else {},
            "retryable": error.retryable if error else False,
        }
    body["timestamp"] = now_iso()
    return http_status(result), body
