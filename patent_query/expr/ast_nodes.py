"""AST data classes for parsed search expressions.

The node family is closed: every operation below dispatches over the five
node classes in one place and raises ``TypeError`` for anything else.
Nodes are frozen; children are stored as tuples.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Union

from patent_query.exceptions import ValidationError


class LogicalOp(str, Enum):
    """Boolean operators, valued by their source notation."""

    OR = "+"
    AND = "*"


class ProximityMode(str, Enum):
    """Distance unit of a proximity operator."""

    WORD_DISTANCE = "NNn"
    SENTENCE_DISTANCE = "NNc"

    @property
    def suffix(self) -> str:
        """The one-letter notation used after ``k`` (``n`` or ``c``)."""
        return "c" if self is ProximityMode.SENTENCE_DISTANCE else "n"

    @classmethod
    def from_suffix(cls, suffix: str) -> ProximityMode:
        if suffix.lower() == "c":
            return cls.SENTENCE_DISTANCE
        if suffix.lower() == "n":
            return cls.WORD_DISTANCE
        raise ValidationError("proximity mode", suffix, "must be 'n' or 'c'")


def _check_k(k: object) -> None:
    if isinstance(k, bool) or not isinstance(k, int) or k < 0:
        raise ValidationError("k", k, "must be a non-negative integer")


def _check_children(children: tuple, expected: int | None = None) -> None:
    if expected is not None and len(children) != expected:
        raise ValidationError(
            "children", children, f"expected exactly {expected}, got {len(children)}"
        )
    if not children:
        raise ValidationError("children", children, "at least one child is required")
    for child in children:
        if not isinstance(child, _NODE_TYPES):
            raise ValidationError("children", child, "every child must be an expression node")


@dataclass(frozen=True)
class WordToken:
    """A literal identifier, e.g. ``基地局`` or ``H04W16/24``."""

    text: str


@dataclass(frozen=True)
class EntityRef:
    """Reference to a named entity, resolved through a resolution context."""

    entity_id: str


@dataclass(frozen=True)
class Logical:
    """N-ary OR (``+``) or AND (``*``)."""

    op: LogicalOp
    children: tuple[ExprNode, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "op", LogicalOp(self.op))
        object.__setattr__(self, "children", tuple(self.children))
        _check_children(self.children)


@dataclass(frozen=True)
class Proximity:
    """Two-operand proximity ``left,kn,right`` / ``left,kc,right``."""

    mode: ProximityMode
    k: int
    left: ExprNode
    right: ExprNode

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", ProximityMode(self.mode))
        _check_k(self.k)
        _check_children((self.left, self.right), 2)

    @property
    def children(self) -> tuple[ExprNode, ExprNode]:
        return (self.left, self.right)


@dataclass(frozen=True)
class SimultaneousProximity:
    """Three-operand proximity ``{a,b,c},kn``; always word distance."""

    k: int
    children: tuple[ExprNode, ExprNode, ExprNode]

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", tuple(self.children))
        _check_k(self.k)
        _check_children(self.children, 3)

    @property
    def mode(self) -> ProximityMode:
        return ProximityMode.WORD_DISTANCE


ExprNode = Union[WordToken, EntityRef, Logical, Proximity, SimultaneousProximity]

_NODE_TYPES = (WordToken, EntityRef, Logical, Proximity, SimultaneousProximity)


class DisplayNames(Protocol):
    """Anything that can give an entity a human-readable name."""

    def display_name(self, entity_id: str) -> str | None: ...


def _unsupported(node: object) -> TypeError:
    return TypeError(f"Unsupported expression node: {node!r}")


def _unwrap(node: ExprNode) -> ExprNode:
    """Skip single-child Logical wrappers, which render as their child."""
    while isinstance(node, Logical) and len(node.children) == 1:
        node = node.children[0]
    return node


def _is_primary(node: ExprNode) -> bool:
    return isinstance(_unwrap(node), (WordToken, EntityRef, SimultaneousProximity))


def _operand(node: ExprNode, context: DisplayNames | None) -> str:
    text = logical_form(node, context)
    return text if _is_primary(node) else f"({text})"


def logical_form(node: ExprNode, context: DisplayNames | None = None) -> str:
    """Render the human-readable expression, without field decoration.

    Parentheses are added where precedence requires them, so parsing the
    result gives back a tree with the same logical form.
    """
    if isinstance(node, WordToken):
        return node.text
    if isinstance(node, EntityRef):
        if context is not None:
            name = context.display_name(node.entity_id)
            if name:
                return name
        return node.entity_id
    if isinstance(node, Logical):
        parts = []
        for child in node.children:
            text = logical_form(child, context)
            inner = _unwrap(child)
            if (
                node.op is LogicalOp.AND
                and isinstance(inner, Logical)
                and inner.op is LogicalOp.OR
            ):
                text = f"({text})"
            parts.append(text)
        return node.op.value.join(parts)
    if isinstance(node, Proximity):
        left = _operand(node.left, context)
        right = _operand(node.right, context)
        return f"{left},{node.k}{node.mode.suffix},{right}"
    if isinstance(node, SimultaneousProximity):
        inner = ",".join(_operand(child, context) for child in node.children)
        return f"{{{inner}}},{node.k}n"
    raise _unsupported(node)


def iter_nodes(node: ExprNode) -> Iterator[ExprNode]:
    """Yield ``node`` and all of its descendants, depth-first, in order."""
    if not isinstance(node, _NODE_TYPES):
        raise _unsupported(node)
    yield node
    if isinstance(node, (Logical, Proximity, SimultaneousProximity)):
        for child in node.children:
            yield from iter_nodes(child)


def iter_word_tokens(node: ExprNode) -> Iterator[str]:
    """Yield the text of every WordToken in source order."""
    for sub in iter_nodes(node):
        if isinstance(sub, WordToken):
            yield sub.text


def collect_word_tokens(node: ExprNode, target: set[str]) -> None:
    """Add the text of every reachable WordToken to ``target``."""
    target.update(iter_word_tokens(node))


def collect_entity_refs(node: ExprNode, target: set[str]) -> None:
    """Add the id of every reachable EntityRef to ``target``."""
    for sub in iter_nodes(node):
        if isinstance(sub, EntityRef):
            target.add(sub.entity_id)


def copy_node(node: ExprNode) -> ExprNode:
    """Return a fully independent structural copy of ``node``."""
    if isinstance(node, WordToken):
        return WordToken(node.text)
    if isinstance(node, EntityRef):
        return EntityRef(node.entity_id)
    if isinstance(node, Logical):
        return Logical(node.op, tuple(copy_node(c) for c in node.children))
    if isinstance(node, Proximity):
        return Proximity(node.mode, node.k, copy_node(node.left), copy_node(node.right))
    if isinstance(node, SimultaneousProximity):
        return SimultaneousProximity(node.k, tuple(copy_node(c) for c in node.children))
    raise _unsupported(node)


def contains_proximity(node: ExprNode) -> bool:
    """Whether any proximity operator appears in the tree."""
    return any(isinstance(n, (Proximity, SimultaneousProximity)) for n in iter_nodes(node))
