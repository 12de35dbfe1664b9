"""Compose stored entities into new expression entities.

Every operation takes entity ids, builds a new tree and stores it as an
expression entity labelled after its sources (``OR:A+B``, ``P2:A+B``, ...).
Building again from the same sources updates that entity in place.
Word and classification sources are referenced by id; expression sources
contribute a copy of their tree, so later edits to the source do not leak
into the result.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from patent_query.exceptions import ValidationError
from patent_query.expr.ast_nodes import (
    EntityRef,
    ExprNode,
    Logical,
    LogicalOp,
    Proximity,
    ProximityMode,
    SimultaneousProximity,
    collect_word_tokens,
    copy_node,
)
from patent_query.expr.context import EntityKind
from patent_query.expr.field_parts import PartsKind
from patent_query.expr.translate import classify_node
from patent_query.store.entities import ExpressionEntity, NamedEntity, WordEntity
from patent_query.store.repository import EntityRepository

logger = logging.getLogger(__name__)


class ExpressionBuilder:
    """Build expression entities from entities in ``repository``."""

    def __init__(self, repository: EntityRepository) -> None:
        self.repository = repository

    def _sources(self, ids: Sequence[str]) -> list[NamedEntity]:
        return [self.repository.get(entity_id) for entity_id in ids]

    def _operand(self, entity: NamedEntity) -> ExprNode:
        if isinstance(entity, ExpressionEntity):
            if entity.root is None:
                raise ValidationError("source", entity.id, "expression has no tree")
            return copy_node(entity.root)
        return EntityRef(entity.id)

    def _content_kind(self, entity: NamedEntity) -> PartsKind:
        if entity.kind is EntityKind.WORD:
            return PartsKind.WORD_ONLY
        if entity.kind is EntityKind.CLASSIFICATION:
            return PartsKind.CLASS_ONLY
        if entity.root is None:
            return PartsKind.EMPTY
        return classify_node(entity.root, self.repository)

    def _check_proximity_sources(self, sources: list[NamedEntity]) -> None:
        for entity in sources:
            if self._content_kind(entity) is not PartsKind.WORD_ONLY:
                raise ValidationError(
                    "source",
                    entity.id,
                    "classification content cannot be used in a proximity operator",
                )

    def _store(self, label: str, root: ExprNode) -> ExpressionEntity:
        entity_id = self.repository.find_or_create_id_for_label(label, EntityKind.EXPRESSION)
        entity = ExpressionEntity(id=entity_id, label=label, root=root)
        entity.can_use_for_proximity = (
            classify_node(root, self.repository) is PartsKind.WORD_ONLY
        )
        self.repository.upsert(entity)
        logger.debug("Built %s as %s", label, entity_id)
        return entity

    @staticmethod
    def _label(prefix: str, sources: list[NamedEntity]) -> str:
        return prefix + "+".join(e.label or e.id for e in sources)

    def build_single(self, entity_id: str) -> ExpressionEntity:
        """Wrap one entity as an expression (``L1:<label>``)."""
        (source,) = self._sources([entity_id])
        return self._store(f"L1:{source.label or source.id}", self._operand(source))

    def build_or(self, ids: Sequence[str]) -> ExpressionEntity:
        """Union of two or more entities.

        Raises:
            ValidationError: If the sources mix word and classification content.
        """
        sources = self._check_count(ids, minimum=2)
        kinds = {self._content_kind(e) for e in sources} - {PartsKind.EMPTY}
        if PartsKind.MIXED in kinds or len(kinds) > 1:
            raise ValidationError(
                "sources",
                list(ids),
                "OR only combines word content or classification content, not both",
            )
        root = Logical(LogicalOp.OR, tuple(self._operand(e) for e in sources))
        return self._store(self._label("OR:", sources), root)

    def build_and(self, ids: Sequence[str]) -> ExpressionEntity:
        """Intersection of two or more entities."""
        sources = self._check_count(ids, minimum=2)
        root = Logical(LogicalOp.AND, tuple(self._operand(e) for e in sources))
        return self._store(self._label("AND:", sources), root)

    def build_proximity(
        self,
        left_id: str,
        right_id: str,
        mode: ProximityMode = ProximityMode.WORD_DISTANCE,
        k: int = 10,
    ) -> ExpressionEntity:
        """``left,kn,right`` or ``left,kc,right`` over two word sources."""
        sources = self._sources([left_id, right_id])
        self._check_proximity_sources(sources)
        root = Proximity(mode, k, self._operand(sources[0]), self._operand(sources[1]))
        return self._store(self._label("P2:", sources), root)

    def build_simultaneous(self, ids: Sequence[str], k: int = 10) -> ExpressionEntity:
        """``{a,b,c},kn`` over exactly three word sources."""
        if len(ids) != 3:
            raise ValidationError("sources", list(ids), "exactly three entities are required")
        sources = self._sources(ids)
        self._check_proximity_sources(sources)
        root = SimultaneousProximity(k, tuple(self._operand(e) for e in sources))
        return self._store(self._label("P3:", sources), root)

    def _check_count(self, ids: Sequence[str], minimum: int) -> list[NamedEntity]:
        if len(ids) < minimum:
            raise ValidationError(
                "sources", list(ids), f"at least {minimum} entities are required"
            )
        return self._sources(ids)

    def regenerate_words(self, expression_id: str) -> list[WordEntity]:
        """Create a ``(<token>)`` word for each unbound token of an expression."""
        entity = self.repository.get(expression_id)
        if not isinstance(entity, ExpressionEntity):
            raise ValidationError("entity", expression_id, "not an expression entity")
        if entity.root is None:
            return []

        tokens: set[str] = set()
        collect_word_tokens(entity.root, tokens)
        created = []
        for token in sorted(tokens):
            if self.repository.find_word_by_token(token) is None:
                created.append(self.repository.create_word_from_token(token, f"({token})"))
        return created
