"""In-memory entity repository.

The repository is the resolution context handed to the translation
engine. It owns id allocation and the token and expression-key indexes
used to find words and classification groups again.
"""

from __future__ import annotations

import logging

from patent_query.config import DEFAULT_MAX_ENTITIES_PER_KIND, DEFAULT_TOKEN_LENGTH, Config
from patent_query.exceptions import EntityLimitError, EntityNotFoundError
from patent_query.expr.context import EntityKind
from patent_query.store.entities import (
    ClassificationEntity,
    ExpressionEntity,
    NamedEntity,
    WordEntity,
)
from patent_query.store.tokens import TokenGenerator

logger = logging.getLogger(__name__)

_KIND_NAMES = {
    EntityKind.WORD: "word",
    EntityKind.CLASSIFICATION: "classification",
    EntityKind.EXPRESSION: "expression",
}


class EntityRepository:
    """Entities keyed by id, with per-kind counters and lookup indexes.

    Args:
        max_entities_per_kind: Cap enforced when adding a new entity.
        token_length: Length of generated anonymous tokens.
        token_generator: Override the token source (mainly for tests).
    """

    def __init__(
        self,
        max_entities_per_kind: int = DEFAULT_MAX_ENTITIES_PER_KIND,
        token_length: int = DEFAULT_TOKEN_LENGTH,
        token_generator: TokenGenerator | None = None,
    ) -> None:
        self.max_entities_per_kind = max_entities_per_kind
        self.token_generator = token_generator or TokenGenerator(length=token_length)
        self._entities: dict[str, NamedEntity] = {}
        self._counters = {kind: 0 for kind in EntityKind}
        self._word_tokens: dict[str, str] = {}
        self._class_tokens: dict[str, str] = {}
        self._word_keys: dict[str, str] = {}

    @classmethod
    def from_config(cls, config: Config) -> EntityRepository:
        """Build a repository using the ``[store]`` settings of ``config``."""
        return cls(
            max_entities_per_kind=config.max_entities_per_kind,
            token_length=config.token_length,
        )

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def add(self, entity: NamedEntity) -> NamedEntity:
        """Store ``entity``, replacing any entity with the same id.

        Raises:
            EntityLimitError: If ``entity`` is new and its kind is at the cap.
        """
        previous = self._entities.get(entity.id)
        if previous is None:
            self.check_limit(entity.kind)
        else:
            self._unindex(previous)
        self._entities[entity.id] = entity
        self._index(entity)
        logger.debug("Stored %s entity %s (%s)", entity.kind.value, entity.id, entity.label)
        return entity

    upsert = add

    def get(self, entity_id: str) -> NamedEntity:
        """Return the entity with ``entity_id``.

        Raises:
            EntityNotFoundError: If there is no such entity.
        """
        try:
            return self._entities[entity_id]
        except KeyError:
            raise EntityNotFoundError(entity_id) from None

    def resolve(self, entity_id: str) -> NamedEntity | None:
        return self._entities.get(entity_id)

    def remove(self, entity_id: str) -> None:
        entity = self._entities.pop(entity_id, None)
        if entity is not None:
            self._unindex(entity)
            logger.debug("Removed entity %s", entity_id)

    def all(self) -> list[NamedEntity]:
        return list(self._entities.values())

    def of_kind(self, kind: EntityKind) -> list[NamedEntity]:
        return [e for e in self._entities.values() if e.kind is kind]

    def words(self) -> list[WordEntity]:
        return self.of_kind(EntityKind.WORD)

    def classifications(self) -> list[ClassificationEntity]:
        return self.of_kind(EntityKind.CLASSIFICATION)

    def expressions(self) -> list[ExpressionEntity]:
        return self.of_kind(EntityKind.EXPRESSION)

    def _index(self, entity: NamedEntity) -> None:
        if isinstance(entity, WordEntity):
            if entity.token:
                self._word_tokens[entity.token] = entity.id
            if entity.expression_key:
                self._word_keys[entity.expression_key] = entity.id
        elif isinstance(entity, ClassificationEntity) and entity.token:
            self._class_tokens[entity.token] = entity.id

    def _unindex(self, entity: NamedEntity) -> None:
        if isinstance(entity, WordEntity):
            if self._word_tokens.get(entity.token) == entity.id:
                del self._word_tokens[entity.token]
            if self._word_keys.get(entity.expression_key) == entity.id:
                del self._word_keys[entity.expression_key]
        elif isinstance(entity, ClassificationEntity):
            if self._class_tokens.get(entity.token) == entity.id:
                del self._class_tokens[entity.token]

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_word_by_token(self, token: str) -> WordEntity | None:
        entity_id = self._word_tokens.get(token)
        return self._entities.get(entity_id) if entity_id else None

    def find_classification_by_token(self, token: str) -> ClassificationEntity | None:
        entity_id = self._class_tokens.get(token)
        return self._entities.get(entity_id) if entity_id else None

    def find_word_by_expression_key(self, key: str) -> WordEntity | None:
        if not key:
            return None
        entity_id = self._word_keys.get(key)
        return self._entities.get(entity_id) if entity_id else None

    def find_classification_by_codes(self, codes) -> ClassificationEntity | None:
        wanted = tuple(codes)
        for entity in self.classifications():
            if entity.codes == wanted:
                return entity
        return None

    def find_by_label(self, label: str, kind: EntityKind) -> NamedEntity | None:
        for entity in self._entities.values():
            if entity.kind is kind and entity.label == label:
                return entity
        return None

    # ------------------------------------------------------------------
    # Id allocation and limits
    # ------------------------------------------------------------------

    def next_id(self, kind: EntityKind) -> str:
        """Allocate the next unused id for ``kind``, e.g. ``EB-0003``."""
        kind = EntityKind(kind)
        while True:
            self._counters[kind] += 1
            entity_id = f"{kind.id_prefix}-{self._counters[kind]:04d}"
            if entity_id not in self._entities:
                return entity_id

    def find_or_create_id_for_label(self, label: str, kind: EntityKind) -> str:
        """Id of the entity of ``kind`` labelled ``label``, or a fresh id."""
        existing = self.find_by_label(label, EntityKind(kind))
        if existing is not None:
            return existing.id
        return self.next_id(kind)

    def count(self, kind: EntityKind) -> int:
        return len(self.of_kind(EntityKind(kind)))

    def check_limit(self, kind: EntityKind) -> None:
        """Raise if no further entity of ``kind`` may be created.

        Raises:
            EntityLimitError: When the cap is reached.
        """
        kind = EntityKind(kind)
        if self.count(kind) >= self.max_entities_per_kind:
            raise EntityLimitError(_KIND_NAMES[kind], self.max_entities_per_kind)

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    def new_word_token(self) -> str:
        return self.token_generator.generate(
            lambda t: self.find_word_by_token(t) is not None
        )

    def new_classification_token(self) -> str:
        return self.token_generator.generate(
            lambda t: self.find_classification_by_token(t) is not None
        )

    def create_word_from_token(self, token: str, definition: str | None = None) -> WordEntity:
        """Create, or update in place, the word entity labelled ``token``."""
        entity_id = self.find_or_create_id_for_label(token, EntityKind.WORD)
        word = WordEntity(
            id=entity_id,
            label=token,
            token=token,
            definition=definition or f"({token})",
        )
        existing = self.resolve(entity_id)
        if isinstance(existing, WordEntity):
            word.expression_key = existing.expression_key
            word.variants = existing.variants
        self.add(word)
        return word

    def create_word_from_expression(
        self,
        expression_key: str,
        variants: list[str] | None = None,
        display_label: str | None = None,
    ) -> WordEntity:
        """Return the word for ``expression_key``, creating it if needed.

        A new word gets an anonymous token and the definition
        ``(v1+v2+...)`` built from ``variants``.
        """
        if not expression_key:
            raise ValueError("expression_key is required")
        existing = self.find_word_by_expression_key(expression_key)
        if existing is not None:
            return existing
        self.check_limit(EntityKind.WORD)

        variants = list(variants or [])
        definition = f"({'+'.join(variants)})" if variants else f"({expression_key})"
        word = WordEntity(
            id=self.next_id(EntityKind.WORD),
            label=variants[0] if variants else (display_label or expression_key),
            token=self.new_word_token(),
            definition=definition,
            expression_key=expression_key,
            variants=variants,
        )
        self.add(word)
        return word

    # ------------------------------------------------------------------
    # Resolution context
    # ------------------------------------------------------------------

    def word_for_token(self, token: str) -> WordEntity | None:
        return self.find_word_by_token(token)

    def display_name(self, entity_id: str) -> str | None:
        entity = self._entities.get(entity_id)
        if entity is None:
            return None
        if isinstance(entity, (WordEntity, ClassificationEntity)) and entity.token:
            return entity.token
        return entity.label or entity.id
