"""Tests for ColumnService: CRUD and reordering."""

from __future__ import annotations

from kanbanctl.domain.ids import new_id
from kanbanctl.infrastructure.workspace import Workspace
from kanbanctl.services.card import CardService
from kanbanctl.services.column import ColumnService
from tests.conftest import add_card, column_id, create_board, get_board


def _order(workspace: Workspace, board_id: str) -> list[tuple[str, int]]:
    columns = sorted(get_board(workspace, board_id)["columns"], key=lambda c: c["position"])
    return [(c["title"], c["position"]) for c in columns]


class TestAddColumn:
    def test_append(self, workspace: Workspace) -> None:
        board = create_board(workspace, "B")
        result = ColumnService(workspace).add_column(board["id"], "Review", wip_limit=2)
        assert result.ok, result.error
        assert result.data["column"]["position"] == 3
        assert result.data["column"]["wipLimit"] == 2

    def test_insert_shifts(self, workspace: Workspace) -> None:
        board = create_board(workspace, "B")
        ColumnService(workspace).add_column(board["id"], "Ideas", position=1)
        assert _order(workspace, board["id"]) == [
            ("To Do", 0),
            ("Ideas", 1),
            ("In Progress", 2),
            ("Done", 3),
        ]

    def test_duplicate_title(self, workspace: Workspace) -> None:
        board = create_board(workspace, "B")
        result = ColumnService(workspace).add_column(board["id"], "Done")
        assert result.error is not None
        assert result.error.code == "DUPLICATE_TITLE"

    def test_bad_color(self, workspace: Workspace) -> None:
        board = create_board(workspace, "B")
        result = ColumnService(workspace).add_column(board["id"], "X", color="blue")
        assert result.error is not None
        assert result.error.detail["violations"][0]["field"] == "color"


class TestReadColumns:
    def test_list_with_counts(self, workspace: Workspace) -> None:
        board = create_board(workspace, "B")
        add_card(workspace, board["id"], column_id(board, "Done"), "Card")
        result = ColumnService(workspace).list_columns(board["id"])
        assert result.data["count"] == 3
        assert [c["cardCount"] for c in result.data["items"]] == [0, 0, 1]

    def test_get(self, workspace: Workspace) -> None:
        board = create_board(workspace, "B")
        result = ColumnService(workspace).get_column(board["id"], column_id(board, "Done"))
        assert result.data["column"]["title"] == "Done"
        assert result.data["card_count"] == 0

    def test_get_missing(self, workspace: Workspace) -> None:
        board = create_board(workspace, "B")
        result = ColumnService(workspace).get_column(board["id"], new_id())
        assert result.error is not None
        assert result.error.code == "COLUMN_NOT_FOUND"


class TestUpdateColumn:
    def test_rename_and_move(self, workspace: Workspace) -> None:
        board = create_board(workspace, "B")
        result = ColumnService(workspace).update_column(
            board["id"], column_id(board, "Done"), {"title": "Shipped", "position": 0}
        )
        assert result.ok, result.error
        assert _order(workspace, board["id"]) == [
            ("Shipped", 0),
            ("To Do", 1),
            ("In Progress", 2),
        ]

    def test_lowering_wip_limit_warns(self, workspace: Workspace) -> None:
        board = create_board(workspace, "B")
        doing = column_id(board, "In Progress")
        add_card(workspace, board["id"], doing, "A")
        add_card(workspace, board["id"], doing, "B")
        result = ColumnService(workspace).update_column(board["id"], doing, {"wip_limit": 1})
        assert result.ok, result.error
        assert result.warnings

    def test_position_out_of_range(self, workspace: Workspace) -> None:
        board = create_board(workspace, "B")
        result = ColumnService(workspace).update_column(
            board["id"], column_id(board, "Done"), {"position": 3}
        )
        assert result.error is not None
        assert result.error.code == "INVALID_POSITION"


class TestDeleteColumn:
    def test_non_empty_then_empty(self, workspace: Workspace) -> None:
        board = create_board(workspace, "B", columns=["Backlog", "Doing", "Done"])
        doing = column_id(board, "Doing")
        card = add_card(workspace, board["id"], doing, "Blocker")
        svc = ColumnService(workspace)

        refused = svc.delete_column(board["id"], doing)
        assert refused.error is not None
        assert refused.error.code == "COLUMN_NOT_EMPTY"
        assert refused.error.category == "conflict"

        moved = CardService(workspace).move_card(board["id"], card["id"], column_id(board, "Done"))
        assert moved.ok, moved.error
        deleted = svc.delete_column(board["id"], doing)
        assert deleted.ok, deleted.error
        assert _order(workspace, board["id"]) == [("Backlog", 0), ("Done", 1)]


class TestReorderColumns:
    def test_subset_rejected(self, workspace: Workspace) -> None:
        board = create_board(workspace, "B")
        ids = [c["id"] for c in board["columns"]]
        result = ColumnService(workspace).reorder_columns(board["id"], ids[:2])
        assert result.error is not None
        assert result.error.code == "INVALID_COLUMN_ORDER"
        assert result.error.category == "validation"

    def test_full_permutation(self, workspace: Workspace) -> None:
        board = create_board(workspace, "B")
        ids = [c["id"] for c in board["columns"]]
        order = [ids[2], ids[0], ids[1]]
        result = ColumnService(workspace).reorder_columns(board["id"], order)
        assert result.ok, result.error
        assert [c["id"] for c in result.data["columns"]] == order
        stored = {c["id"]: c["position"] for c in get_board(workspace, board["id"])["columns"]}
        assert [stored[cid] for cid in order] == [0, 1, 2]

    def test_malformed_id(self, workspace: Workspace) -> None:
        board = create_board(workspace, "B")
        result = ColumnService(workspace).reorder_columns(board["id"], ["x", "y", "z"])
        assert result.error is not None
        assert result.error.code == "INVALID_ID"
