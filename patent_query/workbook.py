"""Multi-line workbooks of definitions and queries.

A workbook is plain text, one statement per line::

    # comments start with '#'
    NB = 基地局+NB+eNB
    F = H04W16/24+H04W36/00 /CP
    NB*UE*F

Lines with a ``/CP`` or ``/FI`` suffix define classification groups, other
named lines define words or expressions, and unnamed lines are queries to
render. Each line is processed on its own; a failing line is reported and
the rest of the workbook still runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from patent_query.exceptions import PatentQueryError, QueryParseError
from patent_query.expr.ast_nodes import (
    EntityRef,
    ExprNode,
    Logical,
    Proximity,
    SimultaneousProximity,
    WordToken,
    collect_entity_refs,
    contains_proximity,
    copy_node,
    iter_word_tokens,
    logical_form,
)
from patent_query.expr.classification import classification_codes
from patent_query.expr.context import EntityKind
from patent_query.expr.field_parts import PartsKind
from patent_query.expr.parser import ParsedLine, parse_line
from patent_query.expr.tokens import FieldName
from patent_query.expr.translate import classify_node, render_query
from patent_query.store.entities import (
    ClassificationEntity,
    ExpressionEntity,
    NamedEntity,
    WordEntity,
)
from patent_query.store.repository import EntityRepository

logger = logging.getLogger(__name__)

COMMENT_PREFIX = "#"

_CLASSIFICATION_FIELDS = (FieldName.CLASSIFICATION_PRIMARY, FieldName.CLASSIFICATION_FURTHER)


class LineKind(str, Enum):
    """What a workbook line turned out to be."""

    CLASSIFICATION = "classification"
    WORD = "word"
    EXPRESSION = "expression"
    QUERY = "query"


@dataclass
class LineResult:
    """Outcome of one processed line.

    Exactly one of ``error`` or ``kind`` is set.
    """

    line_number: int
    text: str
    kind: LineKind | None = None
    entity_id: str | None = None
    query: str | None = None
    logical: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchResult:
    lines: list[LineResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(line.ok for line in self.lines)

    @property
    def errors(self) -> list[str]:
        """Failures formatted as ``line N: <message>``."""
        return [f"line {r.line_number}: {r.error}" for r in self.lines if not r.ok]

    @property
    def queries(self) -> list[LineResult]:
        return [r for r in self.lines if r.ok and r.kind is LineKind.QUERY]


def link_references(node: ExprNode, repository: EntityRepository) -> ExprNode:
    """Return a copy of ``node`` with entity names resolved.

    Identifiers naming a classification group (by token) become
    ``EntityRef`` nodes. An identifier naming an expression (by label) is
    replaced by a copy of that expression's tree, so later redefinitions
    do not change statements already made. Other identifiers stay words;
    word entities are looked up by token at translation time.
    """
    if isinstance(node, WordToken):
        classification = repository.find_classification_by_token(node.text)
        if classification is not None:
            return EntityRef(classification.id)
        expression = repository.find_by_label(node.text, EntityKind.EXPRESSION)
        if isinstance(expression, ExpressionEntity) and expression.root is not None:
            return copy_node(expression.root)
        return WordToken(node.text)
    if isinstance(node, EntityRef):
        return EntityRef(node.entity_id)
    if isinstance(node, Logical):
        return Logical(node.op, tuple(link_references(c, repository) for c in node.children))
    if isinstance(node, Proximity):
        return Proximity(
            node.mode,
            node.k,
            link_references(node.left, repository),
            link_references(node.right, repository),
        )
    if isinstance(node, SimultaneousProximity):
        return SimultaneousProximity(
            node.k, tuple(link_references(c, repository) for c in node.children)
        )
    raise TypeError(f"Unsupported expression node: {node!r}")


class Workbook:
    """Processes workbook text against one repository."""

    def __init__(self, repository: EntityRepository) -> None:
        self.repository = repository

    def process_text(self, text: str) -> BatchResult:
        result = BatchResult()
        for number, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line or line.startswith(COMMENT_PREFIX):
                continue
            result.lines.append(self.process_line(line, number))
        logger.debug(
            "Processed %d statement(s), %d failed", len(result.lines), len(result.errors)
        )
        return result

    def process_line(self, line: str, line_number: int = 1) -> LineResult:
        """Process one statement, capturing any failure in the result."""
        try:
            parsed = parse_line(line)
            return self._dispatch(parsed, line, line_number)
        except QueryParseError as exc:
            exc.line = line_number
            logger.debug("Line %d: %s", line_number, exc)
            return LineResult(line_number, line, error=str(exc))
        except PatentQueryError as exc:
            logger.debug("Line %d: %s", line_number, exc)
            return LineResult(line_number, line, error=str(exc))

    def _dispatch(self, parsed: ParsedLine, line: str, line_number: int) -> LineResult:
        if parsed.field in _CLASSIFICATION_FIELDS:
            entity = self.define_classification(parsed)
            return LineResult(
                line_number, line, LineKind.CLASSIFICATION, entity.id, query=entity.search_expr
            )

        linked = link_references(parsed.expr, self.repository)
        if parsed.name:
            entity = self.define_named(parsed.name, linked)
            kind = LineKind.WORD if isinstance(entity, WordEntity) else LineKind.EXPRESSION
            return LineResult(
                line_number,
                line,
                kind,
                entity.id,
                query=render_query(EntityRef(entity.id), self.repository),
                logical=logical_form(parsed.expr),
            )

        return LineResult(
            line_number,
            line,
            LineKind.QUERY,
            query=render_query(linked, self.repository),
            logical=logical_form(parsed.expr),
        )

    def define_classification(self, parsed: ParsedLine) -> ClassificationEntity:
        codes = classification_codes(parsed.expr)
        label = parsed.name or codes[0]
        if parsed.name:
            self._release_name(label, EntityKind.CLASSIFICATION)

        entity_id = self.repository.find_or_create_id_for_label(label, EntityKind.CLASSIFICATION)
        existing = self.repository.resolve(entity_id)
        if parsed.name:
            token = parsed.name
        elif isinstance(existing, ClassificationEntity) and existing.token:
            token = existing.token
        else:
            token = self.repository.new_classification_token()

        entity = ClassificationEntity(id=entity_id, label=label, token=token, codes=tuple(codes))
        self.repository.upsert(entity)
        logger.debug("Defined classification %s = %s", label, entity.classification_expr)
        return entity

    def define_named(self, name: str, linked: ExprNode) -> NamedEntity:
        """Bind ``name`` to a word definition or a stored expression."""
        refs: set[str] = set()
        collect_entity_refs(linked, refs)
        nested_words = [
            t for t in iter_word_tokens(linked)
            if t != name and self.repository.find_word_by_token(t) is not None
        ]
        is_word = (
            not refs
            and not nested_words
            and not contains_proximity(linked)
            and classify_node(linked, self.repository) is PartsKind.WORD_ONLY
        )

        if is_word:
            self._release_name(name, EntityKind.WORD)
            entity_id = self.repository.find_or_create_id_for_label(name, EntityKind.WORD)
            existing = self.repository.resolve(entity_id)
            word = WordEntity(
                id=entity_id,
                label=name,
                token=name,
                definition=f"({logical_form(linked)})",
            )
            if isinstance(existing, WordEntity):
                word.expression_key = existing.expression_key
                word.variants = existing.variants
            self.repository.upsert(word)
            return word

        self._release_name(name, EntityKind.EXPRESSION)
        entity_id = self.repository.find_or_create_id_for_label(name, EntityKind.EXPRESSION)
        expression = ExpressionEntity(id=entity_id, label=name, root=linked)
        expression.can_use_for_proximity = (
            classify_node(linked, self.repository) is PartsKind.WORD_ONLY
        )
        self.repository.upsert(expression)
        return expression

    def _release_name(self, name: str, keep: EntityKind) -> None:
        """Drop entities of other kinds that use ``name``, so a name means one thing."""
        for kind in EntityKind:
            if kind is keep:
                continue
            other = self.repository.find_by_label(name, kind)
            if other is not None:
                logger.info("Redefining %s: removing %s %s", name, kind.value, other.id)
                self.repository.remove(other.id)
