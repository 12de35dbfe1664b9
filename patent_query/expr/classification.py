"""Validation of classification definition lines.

A classification definition may only combine plain codes with ``+``,
e.g. ``H04W16/24+H04W36/00 /CP``. Intersection, proximity and entity
references are rejected.
"""

from __future__ import annotations

from patent_query.exceptions import ClassificationDefinitionError
from patent_query.expr.ast_nodes import (
    EntityRef,
    ExprNode,
    Logical,
    LogicalOp,
    Proximity,
    SimultaneousProximity,
    WordToken,
    iter_word_tokens,
    logical_form,
)


def validate_classification_expr(node: ExprNode) -> None:
    """Raise if ``node`` is not an OR-combination of plain codes.

    Raises:
        ClassificationDefinitionError: Describing the first offending construct.
    """
    if isinstance(node, WordToken):
        return
    if isinstance(node, Logical):
        if node.op is not LogicalOp.OR:
            raise ClassificationDefinitionError(
                f"'*' is not allowed in a classification definition: {logical_form(node)}"
            )
        for child in node.children:
            validate_classification_expr(child)
        return
    if isinstance(node, (Proximity, SimultaneousProximity)):
        raise ClassificationDefinitionError(
            f"Proximity operators are not allowed in a classification definition: "
            f"{logical_form(node)}"
        )
    if isinstance(node, EntityRef):
        raise ClassificationDefinitionError(
            f"Entity references are not allowed in a classification definition: "
            f"{node.entity_id}"
        )
    raise TypeError(f"Unsupported expression node: {node!r}")


def is_plain_disjunction(node: ExprNode) -> bool:
    """Whether ``node`` only combines plain identifiers with ``+``."""
    try:
        validate_classification_expr(node)
    except ClassificationDefinitionError:
        return False
    return True


def classification_codes(node: ExprNode) -> list[str]:
    """Validate ``node`` and return its codes, in order, without duplicates.

    Raises:
        ClassificationDefinitionError: If the expression is not allowed or
            contains no code.
    """
    validate_classification_expr(node)
    codes = list(dict.fromkeys(t.strip() for t in iter_word_tokens(node) if t.strip()))
    if not codes:
        raise ClassificationDefinitionError("No classification code found")
    return codes
