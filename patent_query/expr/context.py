"""Resolution context: how the translation engine sees named entities.

The engine never owns entities. It only reads them through this protocol,
which :class:`patent_query.store.repository.EntityRepository` implements.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from patent_query.expr.ast_nodes import ExprNode


class EntityKind(str, Enum):
    """The three kinds of named entity."""

    WORD = "word"
    CLASSIFICATION = "classification"
    EXPRESSION = "expression"

    @property
    def id_prefix(self) -> str:
        return _ID_PREFIXES[self]


_ID_PREFIXES = {
    EntityKind.WORD: "WB",
    EntityKind.CLASSIFICATION: "CB",
    EntityKind.EXPRESSION: "EB",
}


class Entity(Protocol):
    id: str
    label: str

    @property
    def kind(self) -> EntityKind: ...


class WordLike(Entity, Protocol):
    definition: str
    token: str


class ClassificationLike(Entity, Protocol):
    codes: tuple[str, ...]


class ExpressionLike(Entity, Protocol):
    root: ExprNode | None


@runtime_checkable
class ResolutionContext(Protocol):
    """Read-only lookups the translation engine needs."""

    def resolve(self, entity_id: str) -> Entity | None:
        """Return the entity with this id, or None."""
        ...

    def word_for_token(self, token: str) -> WordLike | None:
        """Return the word entity bound to ``token``, or None."""
        ...

    def display_name(self, entity_id: str) -> str | None:
        """Return a human-readable name for the entity, or None."""
        ...
