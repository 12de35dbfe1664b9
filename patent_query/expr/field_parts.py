"""Intermediate values produced while translating an expression."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from patent_query.expr.ast_nodes import ProximityMode


@dataclass
class ProximityTerm:
    """A proximity word factor whose right side can absorb OR alternatives."""

    left: str
    right_alternatives: list[str]
    mode: ProximityMode
    k: int


WordFactor = str | ProximityTerm


@dataclass
class FieldParts:
    """Word factors and classification expressions, both multiplicative."""

    words: list[WordFactor] = field(default_factory=list)
    classes: list[str] = field(default_factory=list)


class PartsKind(str, Enum):
    """What a translated subtree contains."""

    WORD_ONLY = "word"
    CLASS_ONLY = "class"
    MIXED = "mixed"
    EMPTY = "empty"


def classify_parts(parts: FieldParts) -> PartsKind:
    """Classify translated content; the only place this decision is made."""
    has_words = any(
        isinstance(w, ProximityTerm) or w.strip() for w in parts.words
    )
    has_classes = any(c.strip() for c in parts.classes)
    if has_words and has_classes:
        return PartsKind.MIXED
    if has_words:
        return PartsKind.WORD_ONLY
    if has_classes:
        return PartsKind.CLASS_ONLY
    return PartsKind.EMPTY
