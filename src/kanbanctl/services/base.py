"""BaseService: abstract foundation for all kanbanctl services.

Every service receives a :class:`Workspace` at construction time. The
Workspace provides the board and config repositories; services own the
conversion of domain errors into failed :class:`ServiceResult` objects.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from kanbanctl.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from kanbanctl.domain.errors import KanbanError
    from kanbanctl.infrastructure.workspace import Workspace

logger = structlog.get_logger(__name__)


class BaseService:
    """Abstract base for all service-layer classes.

    Subclasses implement board, card, column, and config operations using
    the workspace for all data access.

    Usage::

        class CardService(BaseService):
            def delete_card(self, board_id: str, card_id: str) -> ServiceResult:
                try:
                    board, card = self._workspace.boards.mutate(...)
                except KanbanError as exc:
                    return self._fail("delete_card", exc)
                ...
    """

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace

    @staticmethod
    def _fail(op: str, exc: KanbanError) -> ServiceResult:
        """Turn a domain or storage error into a failed result."""
        log = logger.error if exc.category == "internal" else logger.info
        log("service_failed", op=op, error=exc)
        return ServiceResult(
            ok=False,
            op=op,
            error=ServiceError(
                code=exc.code,
                message=exc.message,
                detail=exc.detail,
                category=exc.category,
                retryable=exc.retryable,
            ),
        )
