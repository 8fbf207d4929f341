"""Tests for the ServiceResult contract and service error conversion."""

from __future__ import annotations

import pydantic
import pytest

from kanbanctl.infrastructure.workspace import Workspace
from kanbanctl.services.board import BoardService
from kanbanctl.services.result import ServiceError, ServiceResult


class TestServiceResult:
    def test_defaults(self) -> None:
        result = ServiceResult(ok=True, op="noop")
        assert result.data == {}
        assert result.warnings == []
        assert result.error is None
        assert result.meta is None

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="noop")
        with pytest.raises(pydantic.ValidationError):
            result.ok = False  # type: ignore[misc]

    def test_json_shape(self) -> None:
        result = ServiceResult(
            ok=False,
            op="get_board",
            error=ServiceError(code="BOARD_NOT_FOUND", message="gone", category="not_found"),
        )
        dumped = result.model_dump(mode="json")
        assert set(dumped) == {"ok", "op", "data", "warnings", "error", "meta"}
        assert dumped["error"]["retryable"] is False


class TestErrorConversion:
    def test_invalid_id_never_raises(self, workspace: Workspace) -> None:
        result = BoardService(workspace).get_board("not-a-uuid")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "INVALID_ID"
        assert result.error.category == "validation"
        assert result.error.detail["violations"][0]["field"] == "board_id"
