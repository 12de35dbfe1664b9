"""Named entity storage."""

from patent_query.store.entities import (
    ClassificationEntity,
    ExpressionEntity,
    NamedEntity,
    WordEntity,
)
from patent_query.store.repository import EntityRepository
from patent_query.store.tokens import TokenGenerator

__all__ = [
    "ClassificationEntity",
    "EntityRepository",
    "ExpressionEntity",
    "NamedEntity",
    "TokenGenerator",
    "WordEntity",
]
