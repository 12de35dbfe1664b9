"""Unit tests for the top-level CLI group."""

from __future__ import annotations

from pathlib import Path

from click.testing import CliRunner

from patent_query import __version__
from patent_query.cli import Context, cli
from patent_query.commands import discover_commands


class TestGroup:
    def test_version(self) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_commands_registered(self) -> None:
        for name in ("render", "parse", "import", "init-config", "help"):
            assert name in cli.commands

    def test_discover_commands(self) -> None:
        names = [c.name for c in discover_commands()]
        assert names == ["import", "init-config", "parse", "render"]

    def test_missing_config_warns(self, temp_dir: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(
            cli, ["--config", str(temp_dir / "none.toml"), "parse", "A"]
        )
        assert result.exit_code == 0
        assert "No config file found" in result.output

    def test_quiet_suppresses_warnings(self, temp_dir: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(
            cli, ["-q", "--config", str(temp_dir / "none.toml"), "parse", "A"]
        )
        assert result.exit_code == 0
        assert "No config file found" not in result.output

    def test_invalid_config_exits(self, temp_dir: Path) -> None:
        path = temp_dir / "config.toml"
        path.write_text("[output]\nformat = 3\n")
        runner = CliRunner()
        result = runner.invoke(cli, ["--config", str(path), "parse", "A"])
        assert result.exit_code == 1
        assert "output.format" in result.output

    def test_help_command(self) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["-q", "help", "render"])
        assert result.exit_code == 0
        assert "workbook" in result.output

    def test_help_unknown_command(self) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["-q", "help", "frobnicate"])
        assert result.exit_code == 1


class TestContext:
    def test_repository_defaults_without_config(self) -> None:
        ctx = Context()
        repo = ctx.new_repository()
        assert repo.max_entities_per_kind == 30
        assert len(repo) == 0

    def test_repository_is_fresh_each_time(self) -> None:
        ctx = Context()
        assert ctx.new_repository() is not ctx.new_repository()
