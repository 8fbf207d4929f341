"""Tests for the check CLI command."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from kanbanctl.cli import cli
from tests.conftest import column_id, run_json


@pytest.mark.usefixtures("_isolated_workspace")
class TestCheckCommand:
    def test_clean_board(self, cli_runner: CliRunner) -> None:
        board = run_json(cli_runner, ["board", "create", "Clean"])["data"]["board"]
        result = cli_runner.invoke(cli, ["check", board["id"]])
        assert result.exit_code == 0
        assert "No issues found" in result.output

    def test_json_counts(self, cli_runner: CliRunner) -> None:
        board = run_json(cli_runner, ["board", "create", "Counts"])["data"]["board"]
        data = run_json(cli_runner, ["check", board["id"]])
        assert data["data"]["is_valid"] is True
        assert data["data"]["count"] == 0
        assert data["data"]["error_count"] == 0
        assert data["data"]["warning_count"] == 0

    def test_errors_only_hides_wip_warning(self, cli_runner: CliRunner) -> None:
        board = run_json(
            cli_runner, ["board", "create", "Over", "--allow-wip-exceeding"]
        )["data"]["board"]
        doing = column_id(board, "In Progress")
        run_json(cli_runner, ["column", "update", board["id"], doing, "--wip-limit", "1"])
        run_json(cli_runner, ["card", "add", board["id"], doing, "One"])
        run_json(cli_runner, ["card", "add", board["id"], doing, "Two"])

        full = run_json(cli_runner, ["check", board["id"]])["data"]
        assert full["warning_count"] == 1
        assert full["issues"][0]["category"] == "wip_limits"
        assert full["is_valid"] is True

        filtered = run_json(cli_runner, ["check", board["id"], "--errors-only"])["data"]
        assert filtered["issues"] == []
        assert filtered["count"] == 0
        assert filtered["warning_count"] == 1

    def test_missing_board(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--json", "check", "00000000-0000-4000-8000-000000000000"]
        )
        assert result.exit_code == 5
