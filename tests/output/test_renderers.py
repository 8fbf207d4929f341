"""Tests for the Rich renderers and quiet mode."""

from __future__ import annotations

from kanbanctl.output.renderers import render_quiet, render_result
from kanbanctl.services.result import ServiceError, ServiceResult


def _flat(text: str) -> str:
    return " ".join(text.split())


def _card(card_id: str, title: str, **extra: object) -> dict[str, object]:
    return {
        "id": card_id,
        "title": title,
        "priority": "medium",
        "position": 0,
        "columnId": "col",
        "tags": [],
        **extra,
    }


class TestRenderQuiet:
    def test_items_one_id_per_line(self) -> None:
        result = ServiceResult(
            ok=True, op="query_cards", data={"items": [_card("a", "A"), _card("b", "B")]}
        )
        assert render_quiet(result) == "a\nb"

    def test_reordered_columns(self) -> None:
        result = ServiceResult(
            ok=True, op="reorder_columns", data={"columns": [{"id": "x"}, {"id": "y"}]}
        )
        assert render_quiet(result) == "x\ny"

    def test_export_content_verbatim(self) -> None:
        result = ServiceResult(
            ok=True, op="export_board", data={"board_id": "b", "content": "a,b\n1,2"}
        )
        assert render_quiet(result) == "a,b\n1,2"

    def test_deleted_id(self) -> None:
        result = ServiceResult(ok=True, op="delete_card", data={"board_id": "b", "id": "c"})
        assert render_quiet(result) == "c"

    def test_fallback(self) -> None:
        assert render_quiet(ServiceResult(ok=True, op="reset_config")) == "OK: reset_config"


class TestRenderResult:
    def test_error_shows_code(self) -> None:
        result = ServiceResult(
            ok=False,
            op="add_card",
            error=ServiceError(
                code="WIP_LIMIT_EXCEEDED",
                message="Column 'Doing' has reached its WIP limit of 1",
                category="conflict",
                detail={"limit": 1},
            ),
        )
        output = render_result(result)
        assert "ERROR" in output
        assert "code: WIP_LIMIT_EXCEEDED" in output
        assert "limit: 1" not in output
        assert "limit: 1" in _flat(render_result(result, verbose=True))

    def test_mutation(self) -> None:
        result = ServiceResult(
            ok=True,
            op="move_card",
            data={"board_id": "b1", "card": _card("c1", "Fix login", position=2)},
        )
        output = _flat(render_result(result))
        assert "OK move_card" in output
        assert "title: Fix login" in output
        assert "position: 2" in output

    def test_card_table(self) -> None:
        result = ServiceResult(
            ok=True,
            op="search_cards",
            data={"count": 1, "items": [_card("c1", "Fix login", assignee="alice")]},
        )
        output = render_result(result)
        assert "Fix login" in output
        assert "alice" in output
        assert "1 cards" in output

    def test_integrity_clean(self) -> None:
        result = ServiceResult(
            ok=True, op="validate_board_integrity", data={"issues": [], "count": 0}
        )
        assert "No issues found" in render_result(result)

    def test_integrity_grouped(self) -> None:
        result = ServiceResult(
            ok=True,
            op="validate_board_integrity",
            data={
                "issues": [
                    {
                        "category": "wip_limits",
                        "severity": "warning",
                        "entity_id": "c",
                        "message": "Column 'Doing' holds 3 card(s)",
                    }
                ],
                "count": 1,
                "error_count": 0,
                "warning_count": 1,
            },
        )
        output = render_result(result)
        assert "wip_limits" in output
        assert "0 errors, 1 warnings" in output

    def test_export_to_file(self) -> None:
        result = ServiceResult(
            ok=True,
            op="export_board",
            data={"board_id": "b", "format": "csv", "output_file": "/tmp/b.csv", "content": None},
        )
        output = _flat(render_result(result))
        assert "output_file: /tmp/b.csv" in output

    def test_generic_fallback(self) -> None:
        result = ServiceResult(ok=True, op="show_config", data={"stored": False})
        assert "stored: False" in _flat(render_result(result))
