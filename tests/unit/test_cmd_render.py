"""Unit tests for the render command."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from patent_query.cli import cli as main_cli
from patent_query.commands.render import cli

WORKBOOK = """\
# sample
NB = 基地局+NB+eNB
F = H04W16/24+H04W36/00 /CP
NB*UE*F
NB,10n,UE
"""


class TestRenderText:
    def test_renders_query_lines(self) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["-"], input=WORKBOOK)
        assert result.exit_code == 0
        lines = [line for line in result.output.splitlines() if line.strip()]
        assert lines == [
            "(基地局+NB+eNB)/TX*UE/TX*"
            "[(H04W16/24+H04W36/00)/CP+(H04W16/24+H04W36/00)/FI]",
            "[(基地局+NB+eNB),10n,UE/TX]",
        ]

    def test_logical_form_option(self) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["--logical", "-"], input="A*(B+C)\n")
        assert result.exit_code == 0
        assert "A/TX*((B)+(C))/TX" in result.output
        assert "A*(B+C)" in result.output

    def test_errors_reported_with_line_number(self) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["-"], input="A+\nB\n")
        assert result.exit_code == 1
        assert "line 1: Unexpected end of expression" in result.output
        assert "B/TX" in result.output

    def test_reads_file(self) -> None:
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("queries.txt").write_text("X*Y\n", encoding="utf-8")
            result = runner.invoke(cli, ["queries.txt"])
            assert result.exit_code == 0
            assert "X/TX*Y/TX" in result.output

    def test_missing_file(self) -> None:
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["nope.txt"])
            assert result.exit_code == 2


class TestRenderJson:
    def test_json_output(self) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["--format", "json", "-"], input=WORKBOOK)
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [item["line"] for item in data] == [2, 3, 4, 5]
        assert [item["kind"] for item in data] == [
            "word",
            "classification",
            "query",
            "query",
        ]
        assert data[0]["entity_id"] == "WB-0001"
        assert data[3]["query"] == "[(基地局+NB+eNB),10n,UE/TX]"
        assert data[2]["logical"] == "NB*UE*F"
        assert all(item["error"] is None for item in data)

    def test_json_includes_errors(self) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["-f", "json", "-"], input="(A\n")
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data[0]["kind"] is None
        assert data[0]["query"] is None
        assert data[0]["error"].startswith("Expected")

    def test_format_from_config(self, sample_config: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(
            main_cli, ["-q", "--config", str(sample_config), "render", "-"], input="A*B\n"
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data[0]["query"] == "A/TX*B/TX"

    def test_entity_limit_from_config(self, sample_config: Path) -> None:
        workbook = "".join(f"W{i} = w{i}\n" for i in range(6))
        runner = CliRunner()
        result = runner.invoke(
            main_cli, ["-q", "--config", str(sample_config), "render", "-"], input=workbook
        )
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data[-1]["error"].startswith("At most 5 word entities")
