"""Import an existing query string as entities."""

from __future__ import annotations

import click
from rich.markup import escape

from patent_query.cli import Context, pass_context
from patent_query.exceptions import QueryImportError
from patent_query.expr.ast_nodes import EntityRef, Logical, LogicalOp, logical_form
from patent_query.expr.translate import render_query
from patent_query.importer import ImportResult, import_query
from patent_query.store.entities import ClassificationEntity, ExpressionEntity, WordEntity
from patent_query.store.repository import EntityRepository
from patent_query.utils.output import console, create_table, error, info, print_query


def _describe(entity, repository: EntityRepository) -> str:
    if isinstance(entity, WordEntity):
        return entity.definition
    if isinstance(entity, ClassificationEntity):
        return entity.search_expr
    if isinstance(entity, ExpressionEntity) and entity.root is not None:
        return logical_form(entity.root, repository)
    return ""


def _print_entities(result: ImportResult, repository: EntityRepository) -> None:
    table = create_table(title="Imported entities")
    table.add_column("ID", style="entity.id", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Label")
    table.add_column("Token")
    table.add_column("Content")
    for entity in result.entities:
        kind = entity.kind.value
        table.add_row(
            entity.id,
            f"[entity.{kind}]{kind}[/entity.{kind}]",
            escape(entity.label),
            escape(getattr(entity, "token", "")),
            escape(_describe(entity, repository)),
        )
    console.print(table)


def _recombined(result: ImportResult) -> Logical | None:
    """AND of the top-level entities, in import order."""
    refs = [
        EntityRef(e.id)
        for e in result.entities
        if isinstance(e, (ClassificationEntity, ExpressionEntity))
    ]
    if not refs:
        return None
    return Logical(LogicalOp.AND, tuple(refs))


@click.command("import")
@click.argument("query", nargs=-1, required=True)
@click.option(
    "--variants/--no-variants",
    default=None,
    help="Expand Latin-letter words into case/width variants (default: from config)",
)
@pass_context
def cli(ctx: Context, query: tuple[str, ...], variants: bool | None) -> None:
    """Split a rendered QUERY into word, classification and expression entities.

    QUERY is a search string such as the output of ``render``. Multiple
    arguments are joined with spaces.

    \b
    Examples:
      patent-query import "(基地局+NB)/TX*[NB,10n,UE/TX]"
      patent-query import "[(H04W16/24)/CP+(H04W16/24)/FI]" --no-variants
    """
    if variants is None:
        variants = ctx.config.expand_variants if ctx.config else True

    query_string = " ".join(query)
    repository = ctx.new_repository()
    try:
        result = import_query(query_string, repository, expand_variants=variants)
    except QueryImportError as e:
        error(escape(str(e)))
        raise SystemExit(1)

    if result.entities:
        _print_entities(result, repository)
        recombined = _recombined(result)
        if recombined is not None:
            print_query(render_query(recombined, repository), prefix="Re-rendered:")
    elif not ctx.quiet:
        info("Nothing to import")

    for message in result.errors:
        error(escape(message))
    raise SystemExit(0 if result.ok else 1)
