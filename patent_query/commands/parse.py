"""Parse a single line and show its expression tree."""

from __future__ import annotations

import json

import click
from rich.markup import escape

from patent_query.cli import Context, pass_context
from patent_query.exceptions import QueryParseError
from patent_query.expr.ast_nodes import logical_form
from patent_query.expr.lexer import tokenize
from patent_query.expr.parser import parse_line
from patent_query.expr.serialize import node_to_dict
from patent_query.utils.output import console, create_table, error


def _print_tokens(line: str) -> None:
    table = create_table(title="Tokens")
    table.add_column("#", justify="right")
    table.add_column("Kind", style="info")
    table.add_column("Text")
    for index, token in enumerate(tokenize(line)):
        table.add_row(str(index), token.kind.value, escape(token.text))
    console.print(table)


@click.command("parse")
@click.argument("line")
@click.option(
    "--tokens",
    "-t",
    "show_tokens",
    is_flag=True,
    default=False,
    help="Show the token table before the tree",
)
@pass_context
def cli(ctx: Context, line: str, show_tokens: bool) -> None:
    """Parse LINE and print its tree as JSON.

    \b
    Examples:
      patent-query parse "NB = 基地局+NB+eNB"
      patent-query parse --tokens "{A,B,C},5n /TX"
    """
    if show_tokens:
        _print_tokens(line)

    try:
        parsed = parse_line(line)
    except QueryParseError as e:
        error(
            escape(f"Invalid expression: {e}"),
            hint=escape(f"stopped at {e.token_kind} token '{e.token_text}'"),
        )
        raise SystemExit(1)

    document = {
        "name": parsed.name,
        "field": parsed.field.value if parsed.field else None,
        "logical": logical_form(parsed.expr),
        "expr": node_to_dict(parsed.expr),
    }
    click.echo(json.dumps(document, ensure_ascii=False, indent=2))
