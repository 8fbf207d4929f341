"""Tests for the root kanbanctl CLI."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from kanbanctl import __version__
from kanbanctl.cli import cli


def test_cli_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "kanbanctl" in result.output
    for group in ("board", "card", "column", "check", "export", "config"):
        assert group in result.output


def test_cli_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_no_args(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, [])
    assert result.exit_code == 0
    assert "Usage" in result.output


def test_help_does_not_create_workspace(
    cli_runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)
    cli_runner.invoke(cli, ["board", "--help"])
    assert not (tmp_path / ".kanbanctl").exists()


@pytest.mark.usefixtures("_isolated_workspace")
class TestGlobalFlags:
    def test_json_envelope_keys(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "config", "show"])
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert set(payload) == {"ok", "op", "data", "warnings", "error", "meta"}

    def test_failure_goes_to_stderr(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["board", "show", "bad-id"])
        assert result.exit_code == 2
        assert result.stdout == ""
        assert "INVALID_ID" in result.stderr

    def test_explicit_config_flag(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "elsewhere" / "custom.toml"
        config.parent.mkdir()
        config.write_text('[defaults]\ncolumns = ["Only"]\n', encoding="utf-8")
        result = cli_runner.invoke(cli, ["--json", "-c", str(config), "board", "create", "C"])
        assert result.exit_code == 0
        board = json.loads(result.stdout)["data"]["board"]
        assert [c["title"] for c in board["columns"]] == ["Only"]
        assert (config.parent / ".kanbanctl").is_dir()

    def test_config_with_duplicate_columns_is_rejected(
        self, cli_runner: CliRunner, tmp_path: Path
    ) -> None:
        config = tmp_path / "kanbanctl.toml"
        config.write_text('[defaults]\ncolumns = ["X", "X"]\n', encoding="utf-8")
        result = cli_runner.invoke(cli, ["-c", str(config), "board", "create", "C"])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.stderr
        assert not (tmp_path / ".kanbanctl").exists()
