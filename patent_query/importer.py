"""Import existing downstream query strings as entities.

The query is parsed with a Lark grammar into expression trees and split
into its top-level ``*`` factors. Each factor is turned into the entity
that best describes it: a classification group, a word (with spelling
variants), or a stored expression.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from importlib import resources
from typing import Any

from lark import Lark, Token, Transformer, UnexpectedInput
from lark.exceptions import VisitError

from patent_query.exceptions import PatentQueryError, QueryImportError
from patent_query.expr.ast_nodes import (
    EntityRef,
    ExprNode,
    Logical,
    LogicalOp,
    Proximity,
    SimultaneousProximity,
    WordToken,
    copy_node,
    logical_form,
)
from patent_query.expr.classification import classification_codes, is_plain_disjunction
from patent_query.expr.context import EntityKind
from patent_query.expr.field_parts import PartsKind
from patent_query.expr.parser import parse_prox_spec
from patent_query.expr.tokens import FieldName
from patent_query.expr.translate import classify_node
from patent_query.normalize import display_label, expression_key, normalize_inline, word_variants
from patent_query.store.entities import (
    ClassificationEntity,
    ExpressionEntity,
    NamedEntity,
    WordEntity,
)
from patent_query.store.repository import EntityRepository

logger = logging.getLogger(__name__)


def _load_grammar() -> str:
    """Load the Lark grammar from the package resources."""
    return resources.files("patent_query").joinpath("query.lark").read_text(encoding="utf-8")


_parser = Lark(
    _load_grammar(),
    parser="earley",
    ambiguity="resolve",
)


@dataclass(frozen=True)
class ClassificationSpan:
    """Classification codes searched in one or more classification fields."""

    codes: tuple[str, ...]
    fields: frozenset[FieldName]


class _InvalidQuery(Exception):
    """Raised inside the transformer; becomes a QueryImportError."""


def _require_expr(item: Any, where: str) -> ExprNode:
    if isinstance(item, ClassificationSpan):
        raise _InvalidQuery(f"Classification codes cannot be used {where}")
    return item


class _QueryTransformer(Transformer):
    """Transform the Lark parse tree into expression nodes."""

    def start(self, items: list[Any]) -> list[ExprNode | ClassificationSpan]:
        return list(items)

    def product(self, items: list[Any]) -> Logical:
        children = tuple(_require_expr(i, "inside a product") for i in items)
        return Logical(LogicalOp.AND, children)

    def sum(self, items: list[Any]) -> ExprNode | ClassificationSpan:
        spans = [i for i in items if isinstance(i, ClassificationSpan)]
        if not spans:
            return Logical(LogicalOp.OR, tuple(items))
        if len(spans) != len(items):
            raise _InvalidQuery("Cannot combine words and classification codes with '+'")
        codes = tuple(dict.fromkeys(code for span in spans for code in span.codes))
        fields = frozenset().union(*(span.fields for span in spans))
        return ClassificationSpan(codes, fields)

    def fielded(self, items: list[Any]) -> ExprNode | ClassificationSpan:
        inner, suffix = items
        field_name = FieldName(str(suffix).upper())
        if isinstance(inner, ClassificationSpan):
            raise _InvalidQuery(f"Unexpected {field_name.value} after classification codes")
        if field_name is FieldName.TEXT:
            return inner
        try:
            codes = classification_codes(inner)
        except PatentQueryError as exc:
            raise _InvalidQuery(str(exc)) from exc
        return ClassificationSpan(tuple(codes), frozenset({field_name}))

    def group(self, items: list[Any]) -> Any:
        return items[0]

    def bracket(self, items: list[Any]) -> Any:
        return items[0]

    def proximity(self, items: list[Any]) -> Proximity:
        left, spec, right = items
        mode, k = parse_prox_spec(str(spec))
        return Proximity(
            mode,
            k,
            _require_expr(left, "in a proximity operator"),
            _require_expr(right, "in a proximity operator"),
        )

    def simul(self, items: list[Any]) -> SimultaneousProximity:
        *children, spec = items
        if str(spec)[-1:].lower() != "n":
            raise _InvalidQuery("Simultaneous proximity supports word distance (n) only")
        _, k = parse_prox_spec(str(spec))
        return SimultaneousProximity(
            k, tuple(_require_expr(c, "in a proximity operator") for c in children)
        )

    def term(self, items: list[Any]) -> WordToken:
        return WordToken(str(items[0]))

    def PROX(self, token: Token) -> str:
        return str(token)


_transformer = _QueryTransformer()


def parse_query_string(query: str) -> list[ExprNode | ClassificationSpan]:
    """Parse a query string into its top-level ``*`` factors.

    Raises:
        QueryImportError: If the query does not match the grammar.
    """
    text = normalize_inline(query).strip()
    if not text:
        return []
    try:
        tree = _parser.parse(text)
        return _transformer.transform(tree)
    except UnexpectedInput as e:
        raise QueryImportError(query, str(e)) from e
    except VisitError as e:
        raise QueryImportError(query, str(e.orig_exc)) from e.orig_exc


@dataclass
class ImportResult:
    """Entities produced by one import, plus per-factor failures."""

    query: str
    entities: list[NamedEntity] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def _record(self, entity: NamedEntity) -> None:
        if all(e.id != entity.id for e in self.entities):
            self.entities.append(entity)


class QueryImporter:
    """Turns query factors into entities of ``repository``."""

    def __init__(self, repository: EntityRepository, expand_variants: bool = True) -> None:
        self.repository = repository
        self.expand_variants = expand_variants

    def import_query(self, query: str) -> ImportResult:
        result = ImportResult(query=query)
        for number, factor in enumerate(parse_query_string(query), start=1):
            try:
                if isinstance(factor, ClassificationSpan):
                    result._record(self.import_classification(factor))
                else:
                    for entity in self.import_factor(factor):
                        result._record(entity)
            except PatentQueryError as exc:
                logger.debug("Factor %d of %r: %s", number, query, exc)
                result.errors.append(f"factor {number}: {exc}")
        return result

    def import_classification(self, span: ClassificationSpan) -> ClassificationEntity:
        existing = self.repository.find_classification_by_codes(span.codes)
        if existing is not None:
            logger.debug("Reusing classification %s", existing.id)
            return existing
        self.repository.check_limit(EntityKind.CLASSIFICATION)
        entity = ClassificationEntity(
            id=self.repository.next_id(EntityKind.CLASSIFICATION),
            label=span.codes[0],
            token=self.repository.new_classification_token(),
            codes=span.codes,
        )
        self.repository.add(entity)
        return entity

    def import_word(self, node: ExprNode) -> WordEntity:
        """Word entity for a plain ``A+B+C`` disjunction."""
        key = expression_key(logical_form(node))
        if self.expand_variants:
            variants = word_variants(key)
        else:
            variants = list(dict.fromkeys(w for w in key.split("+") if w))
        return self.repository.create_word_from_expression(
            key, variants, display_label(variants)
        )

    def import_factor(self, node: ExprNode) -> list[NamedEntity]:
        """Entities for one word-side factor; the expression entity comes last."""
        created: list[NamedEntity] = []

        def operand(child: ExprNode) -> ExprNode:
            if is_plain_disjunction(child):
                word = self.import_word(child)
                created.append(word)
                return EntityRef(word.id)
            return copy_node(child)

        if isinstance(node, Proximity):
            root: ExprNode = Proximity(node.mode, node.k, operand(node.left), operand(node.right))
        elif isinstance(node, SimultaneousProximity):
            root = SimultaneousProximity(node.k, tuple(operand(c) for c in node.children))
        elif is_plain_disjunction(node):
            root = operand(node)
        else:
            root = copy_node(node)

        label = logical_form(node)
        entity_id = self.repository.find_or_create_id_for_label(label, EntityKind.EXPRESSION)
        expression = ExpressionEntity(id=entity_id, label=label, root=root)
        expression.can_use_for_proximity = (
            classify_node(root, self.repository) is PartsKind.WORD_ONLY
        )
        self.repository.upsert(expression)
        created.append(expression)
        return created


def import_query(
    text: str, repository: EntityRepository, expand_variants: bool = True
) -> ImportResult:
    """Import ``text`` into ``repository``.

    Raises:
        QueryImportError: If the query string cannot be parsed at all.
    """
    return QueryImporter(repository, expand_variants).import_query(text)
