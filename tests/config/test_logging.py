"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator

import pytest
import structlog

from kanbanctl.config.logging import configure_logging, expand_kanban_error, log_context
from kanbanctl.domain.errors import NotFoundError, VersionConflictError


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    kanban = logging.getLogger("kanbanctl")
    kanban_level = kanban.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    kanban.setLevel(kanban_level)


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True, log_json=False)
        assert logging.getLogger("kanbanctl").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_non_verbose_sets_warning(self) -> None:
        configure_logging(verbose=False, log_json=False)
        assert logging.getLogger("kanbanctl").level == logging.WARNING

    def test_json_mode_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        log = structlog.get_logger("kanbanctl.test")
        log.warning("board_version_conflict", attempts=4)
        captured = capfd.readouterr()
        parsed = json.loads(captured.err.strip())
        assert parsed["event"] == "board_version_conflict"
        assert parsed["attempts"] == 4
        assert parsed["level"] == "warning"

    def test_debug_suppressed_when_quiet(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=False, log_json=True)
        structlog.get_logger("kanbanctl.test").debug("board_saved")
        assert capfd.readouterr().err == ""


class TestKanbanContext:
    def test_log_context_binds_board_and_op(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        log = structlog.get_logger("kanbanctl.test")
        with log_context(op="move_card", board_id="b-1", card_id=None):
            log.info("board_saved", version=3)
        log.info("outside")
        first, second = (json.loads(line) for line in capfd.readouterr().err.splitlines())
        assert first["op"] == "move_card"
        assert first["board_id"] == "b-1"
        assert "card_id" not in first
        assert "board_id" not in second

    def test_log_context_rejects_unknown_keys(self) -> None:
        with pytest.raises(ValueError, match="title"), log_context(title="x"):
            pass

    def test_error_is_flattened(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        structlog.get_logger("kanbanctl.test").warning(
            "service_failed", op="get_board", error=NotFoundError("Board", "b-9")
        )
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["code"] == "BOARD_NOT_FOUND"
        assert parsed["category"] == "not_found"
        assert parsed["retryable"] is False
        assert "b-9" in parsed["message"]
        assert "error" not in parsed

    def test_non_domain_errors_untouched(self) -> None:
        event = {"event": "x", "error": "plain text"}
        assert expand_kanban_error(None, "info", dict(event)) == event

    def test_retryable_conflict(self) -> None:
        event = expand_kanban_error(None, "warning", {"error": VersionConflictError("b-1", 2)})
        assert event["code"] == "VERSION_CONFLICT"
        assert event["retryable"] is True
