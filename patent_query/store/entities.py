"""Named entities: words, classification groups and stored expressions."""

from __future__ import annotations

from dataclasses import dataclass, field

from patent_query.expr.ast_nodes import ExprNode
from patent_query.expr.context import EntityKind
from patent_query.expr.tokens import FieldName


@dataclass
class WordEntity:
    """A word or synonym group.

    Attributes:
        id: Repository id, e.g. ``WB-0001``.
        label: Human-readable name.
        token: Identifier that stands for this word inside expressions.
        definition: Text substituted for the token when rendering,
            typically ``(A+B+C)``.
        expression_key: Normalised source text, used to reuse entities on import.
        variants: Spelling variants the definition was built from.
    """

    id: str
    label: str
    token: str
    definition: str = ""
    expression_key: str = ""
    variants: list[str] = field(default_factory=list)

    @property
    def kind(self) -> EntityKind:
        return EntityKind.WORD


@dataclass
class ClassificationEntity:
    """An ordered, de-duplicated group of classification codes."""

    id: str
    label: str
    token: str
    codes: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        self.codes = tuple(dict.fromkeys(c.strip() for c in self.codes if c.strip()))

    @property
    def kind(self) -> EntityKind:
        return EntityKind.CLASSIFICATION

    @property
    def classification_expr(self) -> str:
        """``(H04W16/24+H04W36/00)``, or ``""`` without codes."""
        if not self.codes:
            return ""
        return "(" + "+".join(self.codes) + ")"

    @property
    def search_expr(self) -> str:
        """The expression searched in both classification fields."""
        expr = self.classification_expr
        if not expr:
            return ""
        return (
            f"[{expr}{FieldName.CLASSIFICATION_PRIMARY.value}"
            f"+{expr}{FieldName.CLASSIFICATION_FURTHER.value}]"
        )


@dataclass
class ExpressionEntity:
    """A stored expression tree.

    ``can_use_for_proximity`` is set by the builder when the tree only
    translates to word content.
    """

    id: str
    label: str
    root: ExprNode | None = None
    can_use_for_proximity: bool = False

    @property
    def kind(self) -> EntityKind:
        return EntityKind.EXPRESSION


NamedEntity = WordEntity | ClassificationEntity | ExpressionEntity
