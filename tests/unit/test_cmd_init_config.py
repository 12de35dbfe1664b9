"""Unit tests for the init-config command."""

from __future__ import annotations

import tomllib
from pathlib import Path

from click.testing import CliRunner

from patent_query.cli import cli as main_cli
from patent_query.commands.init_config import _load_example_config, cli
from patent_query.config import Config, load_config


class TestLoadExampleConfig:
    def test_loads_non_empty_content(self) -> None:
        content = _load_example_config()
        assert len(content) > 0

    def test_contains_all_sections(self) -> None:
        content = _load_example_config()
        for section in ("[store]", "[display]", "[import]", "[output]"):
            assert section in content, f"Missing section {section}"

    def test_is_valid_toml(self) -> None:
        data = tomllib.loads(_load_example_config())
        assert data["store"]["max_entities_per_kind"] == Config().max_entities_per_kind
        assert data["output"]["format"] == "text"


class TestInitConfigCommand:
    def test_creates_config_file(self) -> None:
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["--output", "test-config.toml"])
            assert result.exit_code == 0
            assert Path("test-config.toml").exists()
            assert "[store]" in Path("test-config.toml").read_text()

    def test_created_file_matches_example(self) -> None:
        runner = CliRunner()
        with runner.isolated_filesystem():
            runner.invoke(cli, ["--output", "test-config.toml"])
            content = Path("test-config.toml").read_text(encoding="utf-8")
            assert content == _load_example_config()

    def test_created_file_loads_as_defaults(self) -> None:
        runner = CliRunner()
        with runner.isolated_filesystem():
            runner.invoke(cli, ["--output", "test-config.toml"])
            config, warnings = load_config(Path("test-config.toml"))
            assert warnings == []
            assert config.max_entities_per_kind == Config().max_entities_per_kind
            assert config.expand_variants is True

    def test_creates_parent_directories(self) -> None:
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["-o", "a/b/config.toml"])
            assert result.exit_code == 0
            assert Path("a/b/config.toml").exists()

    def test_fails_if_exists_without_force(self) -> None:
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("test-config.toml").write_text("existing")
            result = runner.invoke(cli, ["--output", "test-config.toml"])
            assert result.exit_code == 1
            assert Path("test-config.toml").read_text() == "existing"

    def test_force_overwrites(self) -> None:
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("test-config.toml").write_text("existing")
            result = runner.invoke(cli, ["--output", "test-config.toml", "--force"])
            assert result.exit_code == 0
            assert "[store]" in Path("test-config.toml").read_text()

    def test_quiet_suppresses_status(self) -> None:
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(
                main_cli,
                ["-q", "--config", "none.toml", "init-config", "-o", "test-config.toml"],
            )
            assert result.exit_code == 0
            assert Path("test-config.toml").exists()
            assert result.output == ""
