"""Render the query lines of a workbook file."""

from __future__ import annotations

import json
from typing import IO

import click
from rich.markup import escape

from patent_query.cli import Context, pass_context
from patent_query.config import OUTPUT_FORMATS
from patent_query.utils.output import console, error, print_query, verbose
from patent_query.workbook import BatchResult, LineKind, Workbook

EXIT_SUCCESS = 0
EXIT_LINE_ERRORS = 1


def _result_dict(result) -> dict:
    return {
        "line": result.line_number,
        "text": result.text,
        "kind": result.kind.value if result.kind else None,
        "entity_id": result.entity_id,
        "query": result.query,
        "logical": result.logical,
        "error": result.error,
    }


def _print_json(batch: BatchResult) -> None:
    click.echo(json.dumps([_result_dict(r) for r in batch.lines], ensure_ascii=False, indent=2))


def _print_text(batch: BatchResult, show_logical: bool) -> None:
    for result in batch.lines:
        if not result.ok:
            error(escape(f"line {result.line_number}: {result.error}"))
            continue
        if result.kind is not LineKind.QUERY:
            verbose(f"line {result.line_number}: defined {result.kind.value} {result.entity_id}")
            continue
        print_query(result.query or "")
        if show_logical and result.logical:
            console.print(
                f"  {result.logical}", style="logical", markup=False, soft_wrap=True
            )


@click.command("render")
@click.argument("file", type=click.File("r", encoding="utf-8"))
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS),
    default=None,
    help="Output format (default: from config, usually text)",
)
@click.option(
    "--logical",
    "-l",
    is_flag=True,
    default=False,
    help="Also show the logical form of each query",
)
@pass_context
def cli(ctx: Context, file: IO[str], output_format: str | None, logical: bool) -> None:
    """Render every query line of a workbook FILE.

    FILE holds one statement per line. Use - to read from stdin.

    \b
    Statements:
      # comment
      NB = 基地局+NB+eNB                 word definition
      F = H04W16/24+H04W36/00 /CP        classification group
      P = NB,10n,UE                      named expression
      NB*UE*F                            query (rendered)

    Every line is processed even if an earlier one fails; the exit
    status is 1 when any line failed.

    \b
    Examples:
      patent-query render queries.txt
      patent-query render --logical --format json queries.txt
      echo "(A+B)*C" | patent-query render -
    """
    if output_format is None:
        output_format = ctx.config.output_format if ctx.config else "text"

    workbook = Workbook(ctx.new_repository())
    batch = workbook.process_text(file.read())

    if output_format == "json":
        _print_json(batch)
    else:
        _print_text(batch, logical)

    raise SystemExit(EXIT_SUCCESS if batch.ok else EXIT_LINE_ERRORS)
