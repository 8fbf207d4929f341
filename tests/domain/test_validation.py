"""Tests for structural validation: every violation is reported at once."""

from __future__ import annotations

import pytest

from kanbanctl.domain.errors import ValidationError
from kanbanctl.domain.ids import new_id
from kanbanctl.domain.query import BoardQuery, CardQuery
from kanbanctl.domain.validation import (
    ensure_valid,
    validate_board_document,
    validate_board_fields,
    validate_board_query,
    validate_card_fields,
    validate_card_query,
    validate_column_fields,
    validate_column_titles,
    validate_settings_fields,
)
from tests.conftest import make_board


def _fields(result: object) -> list[str]:
    return [v.field for v in result.violations]  # type: ignore[attr-defined]


class TestCardFields:
    def test_valid_minimal(self) -> None:
        result = validate_card_fields({"title": "Task", "column_id": new_id()})
        assert result.valid
        assert result.violations == []

    def test_collects_every_violation(self) -> None:
        result = validate_card_fields(
            {
                "title": "",
                "column_id": "nope",
                "priority": "urgent",
                "due_date": "2024-01-15",
                "position": -1,
                "tags": ["ok", 3],
            }
        )
        assert not result.valid
        assert set(_fields(result)) == {
            "title",
            "column_id",
            "priority",
            "due_date",
            "position",
            "tags[1]",
        }

    def test_blank_tags_are_left_to_normalisation(self) -> None:
        result = validate_card_fields({"title": "T", "column_id": new_id(), "tags": ["a", " ", ""]})
        assert result.valid

    def test_title_too_long(self) -> None:
        result = validate_card_fields({"title": "x" * 201, "column_id": new_id()})
        assert _fields(result) == ["title"]

    def test_title_at_limit(self) -> None:
        assert validate_card_fields({"title": "x" * 200, "column_id": new_id()}).valid

    def test_partial_patch_cannot_move(self) -> None:
        result = validate_card_fields({"column_id": new_id(), "position": 0}, partial=True)
        assert set(_fields(result)) == {"column_id", "position"}

    def test_partial_title_cannot_be_cleared(self) -> None:
        result = validate_card_fields({"title": None}, partial=True)
        assert "title" in _fields(result)

    def test_partial_clearing_optional_fields(self) -> None:
        result = validate_card_fields(
            {"description": None, "assignee": None, "due_date": None}, partial=True
        )
        assert result.valid

    def test_position_rejects_bool(self) -> None:
        result = validate_card_fields({"title": "T", "column_id": new_id(), "position": True})
        assert _fields(result) == ["position"]


class TestColumnFields:
    def test_valid(self) -> None:
        assert validate_column_fields({"title": "Review", "wip_limit": 3, "color": "#ff5733"}).valid

    @pytest.mark.parametrize("color", ["red", "#FFF", "FF5733", "#GG5733"])
    def test_bad_color(self, color: str) -> None:
        result = validate_column_fields({"title": "Review", "color": color})
        assert _fields(result) == ["color"]

    def test_wip_limit_must_be_positive(self) -> None:
        result = validate_column_fields({"title": "Review", "wip_limit": 0})
        assert _fields(result) == ["wip_limit"]

    def test_title_limit(self) -> None:
        assert not validate_column_fields({"title": "x" * 101}).valid

    def test_unknown_key(self) -> None:
        result = validate_column_fields({"title": "A", "cards": []})
        assert _fields(result) == ["cards"]


class TestBoardFields:
    def test_create_requires_title(self) -> None:
        result = validate_board_fields({})
        assert _fields(result) == ["title"]

    def test_duplicate_column_titles(self) -> None:
        result = validate_board_fields({"title": "B", "columns": ["A", "A"]})
        assert _fields(result) == ["columns"]

    def test_column_titles_compared_after_stripping(self) -> None:
        result = validate_board_fields({"title": "B", "columns": ["Done", "Done "]})
        assert _fields(result) == ["columns"]
        assert "Done" in result.violations[0].message

    def test_empty_column_list(self) -> None:
        result = validate_board_fields({"title": "B", "columns": []})
        assert _fields(result) == ["columns"]

    def test_title_length_measured_after_stripping(self) -> None:
        assert validate_board_fields({"title": "x" * 100 + " "}).valid
        assert _fields(validate_board_fields({"title": "x" * 101})) == ["title"]
        assert validate_column_fields({"title": " " + "c" * 100}).valid

    def test_settings_are_checked(self) -> None:
        result = validate_board_fields(
            {"title": "B", "settings": {"theme": "neon", "show_card_count": "yes"}}
        )
        assert set(_fields(result)) == {"settings.theme", "settings.show_card_count"}

    def test_partial_allows_missing_title(self) -> None:
        assert validate_board_fields({"description": "d"}, partial=True).valid

    def test_settings_must_be_mapping(self) -> None:
        assert _fields(validate_settings_fields(["dark"])) == ["settings"]


class TestColumnTitles:
    def test_valid_list(self) -> None:
        assert validate_column_titles(["To Do", "Done"]).valid

    def test_blank_empty_and_duplicates(self) -> None:
        assert _fields(validate_column_titles([])) == ["columns"]
        assert _fields(validate_column_titles(["A", "  "])) == ["columns[1]"]
        assert _fields(validate_column_titles([" A", "A"])) == ["columns"]

    def test_custom_field_name(self) -> None:
        result = validate_column_titles(["X", "X"], name="defaults.columns")
        assert _fields(result) == ["defaults.columns"]


class TestQueries:
    def test_defaults_are_valid(self) -> None:
        assert validate_board_query(BoardQuery()).valid
        assert validate_card_query(CardQuery()).valid

    def test_board_query_violations(self) -> None:
        result = validate_board_query(
            BoardQuery(sort_by="priority", sort_order="up", limit=0, offset=-1)
        )
        assert set(_fields(result)) == {"sort_by", "sort_order", "limit", "offset"}

    def test_card_query_violations(self) -> None:
        result = validate_card_query(
            CardQuery(priority="urgent", column_id="bad", created_after="yesterday")
        )
        assert set(_fields(result)) == {"priority", "column_id", "created_after"}

    def test_card_query_accepts_status_sort(self) -> None:
        assert validate_card_query(CardQuery(sort_by="status", sort_order="desc")).valid


class TestBoardDocument:
    def test_fresh_board_is_valid(self) -> None:
        assert validate_board_document(make_board().to_document()).valid

    def test_not_an_object(self) -> None:
        result = validate_board_document([1, 2])
        assert _fields(result) == ["board"]

    def test_nested_violations_are_prefixed(self) -> None:
        doc = make_board().to_document()
        doc["columns"][1]["wipLimit"] = 0
        doc["settings"]["theme"] = "neon"
        result = validate_board_document(doc)
        assert set(_fields(result)) == {"columns[1].wipLimit", "settings.theme"}

    def test_duplicate_column_titles(self) -> None:
        doc = make_board(["A", "B"]).to_document()
        doc["columns"][1]["title"] = "A "
        assert _fields(validate_board_document(doc)) == ["columns"]

    def test_card_requires_column_reference(self) -> None:
        doc = make_board().to_document()
        doc["cards"] = [
            {
                "id": new_id(),
                "title": "Card",
                "position": 0,
                "createdAt": doc["createdAt"],
                "updatedAt": doc["updatedAt"],
            }
        ]
        assert _fields(validate_board_document(doc)) == ["cards[0].columnId"]


class TestEnsureValid:
    def test_raises_with_all_violations(self) -> None:
        result = validate_card_fields({"title": "", "column_id": "x"})
        with pytest.raises(ValidationError) as exc_info:
            ensure_valid(result, what="card")
        err = exc_info.value
        assert err.code == "VALIDATION_ERROR"
        assert err.category == "validation"
        assert len(err.detail["violations"]) == 2
        assert "Invalid card" in err.message

    def test_passes_silently(self) -> None:
        ensure_valid(validate_column_fields({"title": "A"}))
