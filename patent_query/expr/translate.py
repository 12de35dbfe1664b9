"""Translate expression trees into field parts.

Each subtree is classified as word-only, classification-only, mixed or
empty (see :func:`classify_parts`). AND concatenates factors; OR merges
same-kind branches; proximity operators only accept word content.
Combinations the query language cannot express are never an error: the
subtree falls back to its logical form as a single opaque word factor.
"""

from __future__ import annotations

import logging

from patent_query.expr.ast_nodes import (
    EntityRef,
    ExprNode,
    Logical,
    LogicalOp,
    Proximity,
    SimultaneousProximity,
    WordToken,
    logical_form,
)
from patent_query.expr.context import EntityKind, ResolutionContext
from patent_query.expr.field_parts import (
    FieldParts,
    PartsKind,
    ProximityTerm,
    WordFactor,
    classify_parts,
)
from patent_query.expr.render import (
    group_if_compound,
    render_field_parts,
    strip_outer_brackets,
)

logger = logging.getLogger(__name__)


def _factor_text(factor: WordFactor) -> str:
    if isinstance(factor, ProximityTerm):
        left = group_if_compound(strip_outer_brackets(factor.left))
        rights = [strip_outer_brackets(r) for r in factor.right_alternatives]
        if len(rights) == 1:
            right = group_if_compound(rights[0])
        else:
            right = "(" + "+".join(rights) + ")"
        return f"{left},{factor.k}{factor.mode.suffix},{right}"
    return factor.strip()


def words_text(parts: FieldParts) -> str:
    """Collapse the word factors of ``parts`` into one undecorated string."""
    texts = [_factor_text(w) for w in parts.words]
    texts = [t for t in texts if t]
    if len(texts) == 1:
        return texts[0]
    return "*".join(group_if_compound(strip_outer_brackets(t)) for t in texts)


def _classes_text(parts: FieldParts) -> str:
    exprs = [strip_outer_brackets(c) for c in parts.classes if c.strip()]
    if len(exprs) == 1:
        return exprs[0]
    return "*".join(f"({e})" for e in exprs)


def _concat(parts_list: list[FieldParts]) -> FieldParts:
    result = FieldParts()
    for parts in parts_list:
        result.words.extend(parts.words)
        result.classes.extend(parts.classes)
    return result


class Translator:
    """Single-use translation pass over one tree.

    Tracks the expression entities currently being expanded so that a
    self-referencing entity degrades instead of recursing forever.
    """

    def __init__(self, context: ResolutionContext | None = None) -> None:
        self.context = context
        self._expanding: list[str] = []

    def translate(self, node: ExprNode) -> FieldParts:
        if isinstance(node, WordToken):
            return self._word_token(node)
        if isinstance(node, EntityRef):
            return self._entity_ref(node)
        if isinstance(node, Logical):
            parts_list = [self.translate(child) for child in node.children]
            if node.op is LogicalOp.AND:
                return _concat(parts_list)
            return self._or(node, parts_list)
        if isinstance(node, Proximity):
            return self._proximity(node)
        if isinstance(node, SimultaneousProximity):
            return self._simultaneous(node)
        raise TypeError(f"Unsupported expression node: {node!r}")

    def _opaque(self, node: ExprNode) -> FieldParts:
        return FieldParts(words=[logical_form(node, self.context)])

    def _word_token(self, node: WordToken) -> FieldParts:
        text = node.text.strip()
        if self.context is not None:
            word = self.context.word_for_token(node.text)
            if word is not None and word.definition.strip():
                text = word.definition.strip()
        if not text:
            return FieldParts()
        return FieldParts(words=[text])

    def _entity_ref(self, node: EntityRef) -> FieldParts:
        if self.context is None:
            logger.debug("No context to resolve %s", node.entity_id)
            return FieldParts()

        entity = self.context.resolve(node.entity_id)
        if entity is None:
            logger.warning("Unresolved entity reference: %s", node.entity_id)
            return FieldParts()

        if entity.kind is EntityKind.WORD:
            text = (entity.definition or entity.token).strip()
            return FieldParts(words=[text]) if text else FieldParts()

        if entity.kind is EntityKind.CLASSIFICATION:
            if not entity.codes:
                return FieldParts()
            return FieldParts(classes=["(" + "+".join(entity.codes) + ")"])

        if entity.root is None:
            return FieldParts()
        if entity.id in self._expanding:
            logger.warning("Circular reference through %s, rendering it verbatim", entity.id)
            return self._opaque(node)
        self._expanding.append(entity.id)
        try:
            return self.translate(entity.root)
        finally:
            self._expanding.pop()

    def _or(self, node: Logical, parts_list: list[FieldParts]) -> FieldParts:
        kinds = [classify_parts(p) for p in parts_list]
        present = set(kinds) - {PartsKind.EMPTY}

        if PartsKind.MIXED in present or {PartsKind.WORD_ONLY, PartsKind.CLASS_ONLY} <= present:
            logger.debug("OR over mixed word/classification branches: %s", node)
            return self._opaque(node)

        if PartsKind.WORD_ONLY in present:
            branches = [p for p, k in zip(parts_list, kinds) if k is PartsKind.WORD_ONLY]
            return self._or_words(branches)

        if PartsKind.CLASS_ONLY in present:
            exprs = [
                _classes_text(p)
                for p, k in zip(parts_list, kinds)
                if k is PartsKind.CLASS_ONLY
            ]
            return FieldParts(classes=["(" + "+".join(exprs) + ")"])

        return FieldParts()

    def _or_words(self, branches: list[FieldParts]) -> FieldParts:
        prox_index = next(
            (
                i
                for i, p in enumerate(branches)
                if len(p.words) == 1 and isinstance(p.words[0], ProximityTerm)
            ),
            None,
        )
        if prox_index is not None:
            # The first proximity term takes every other branch as a right-hand alternative
            base = branches[prox_index].words[0]
            term = ProximityTerm(base.left, list(base.right_alternatives), base.mode, base.k)
            for i, branch in enumerate(branches):
                if i != prox_index:
                    term.right_alternatives.append(words_text(branch))
            return FieldParts(words=[term])

        texts = [f"({strip_outer_brackets(words_text(b))})" for b in branches]
        return FieldParts(words=["+".join(texts)])

    def _proximity(self, node: Proximity) -> FieldParts:
        left = self.translate(node.left)
        right = self.translate(node.right)
        if any(classify_parts(p) is not PartsKind.WORD_ONLY for p in (left, right)):
            logger.debug("Proximity operand without pure word content: %s", node)
            return self._opaque(node)
        term = ProximityTerm(
            left=words_text(left),
            right_alternatives=[words_text(right)],
            mode=node.mode,
            k=node.k,
        )
        return FieldParts(words=[term])

    def _simultaneous(self, node: SimultaneousProximity) -> FieldParts:
        parts_list = [self.translate(child) for child in node.children]
        if any(classify_parts(p) is not PartsKind.WORD_ONLY for p in parts_list):
            logger.debug("Simultaneous proximity operand without pure word content: %s", node)
            return self._opaque(node)
        inner = ",".join(
            group_if_compound(strip_outer_brackets(words_text(p))) for p in parts_list
        )
        return FieldParts(words=[f"{{{inner}}},{node.k}n"])


def translate(node: ExprNode, context: ResolutionContext | None = None) -> FieldParts:
    """Translate ``node`` into field parts, resolving entities through ``context``."""
    return Translator(context).translate(node)


def classify_node(node: ExprNode, context: ResolutionContext | None = None) -> PartsKind:
    """Kind of content ``node`` translates to."""
    return classify_parts(translate(node, context))


def render_query(node: ExprNode, context: ResolutionContext | None = None) -> str:
    """Translate and render ``node`` as the downstream query string."""
    return render_field_parts(translate(node, context))
