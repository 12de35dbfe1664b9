"""Canonical JSON interchange shape for expression trees."""

from __future__ import annotations

from typing import Any

from patent_query.exceptions import PatentQueryError, SerializationError
from patent_query.expr.ast_nodes import (
    EntityRef,
    ExprNode,
    Logical,
    LogicalOp,
    Proximity,
    ProximityMode,
    SimultaneousProximity,
    WordToken,
)


def node_to_dict(node: ExprNode) -> dict[str, Any]:
    """Serialize a node as ``{"type": ..., ...fields}``."""
    if isinstance(node, WordToken):
        return {"type": "word", "token": node.text}
    if isinstance(node, EntityRef):
        return {"type": "entityRef", "id": node.entity_id}
    if isinstance(node, Logical):
        return {
            "type": "logical",
            "op": node.op.value,
            "children": [node_to_dict(c) for c in node.children],
        }
    if isinstance(node, Proximity):
        return {
            "type": "proximity",
            "mode": node.mode.value,
            "k": node.k,
            "children": [node_to_dict(c) for c in node.children],
        }
    if isinstance(node, SimultaneousProximity):
        return {
            "type": "simulProx",
            "mode": node.mode.value,
            "k": node.k,
            "children": [node_to_dict(c) for c in node.children],
        }
    raise TypeError(f"Unsupported expression node: {node!r}")


def _children(obj: dict[str, Any], expected: int | None = None) -> list[ExprNode]:
    raw = obj.get("children")
    if not isinstance(raw, list):
        raise SerializationError(f"'{obj.get('type')}' node needs a 'children' array")
    if expected is not None and len(raw) != expected:
        raise SerializationError(
            f"'{obj.get('type')}' node needs exactly {expected} children, got {len(raw)}"
        )
    return [node_from_dict(child) for child in raw]


def _string(obj: dict[str, Any], key: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str):
        raise SerializationError(f"'{obj.get('type')}' node needs a string '{key}'")
    return value


def node_from_dict(obj: Any) -> ExprNode:
    """Rebuild a node from its interchange shape.

    Raises:
        SerializationError: For unknown ``type`` values or malformed fields.
    """
    if not isinstance(obj, dict):
        raise SerializationError(f"Expected an object, got {type(obj).__name__}")

    node_type = obj.get("type")
    try:
        if node_type == "word":
            return WordToken(_string(obj, "token"))
        if node_type == "entityRef":
            return EntityRef(_string(obj, "id"))
        if node_type == "logical":
            return Logical(LogicalOp(obj.get("op")), tuple(_children(obj)))
        if node_type == "proximity":
            left, right = _children(obj, 2)
            return Proximity(ProximityMode(obj.get("mode")), obj.get("k"), left, right)
        if node_type == "simulProx":
            mode = obj.get("mode", ProximityMode.WORD_DISTANCE.value)
            if mode != ProximityMode.WORD_DISTANCE.value:
                raise SerializationError(f"simulProx mode must be word distance, got {mode!r}")
            return SimultaneousProximity(obj.get("k"), tuple(_children(obj, 3)))
    except ValueError as e:
        raise SerializationError(f"Invalid '{node_type}' node: {e}") from e
    except SerializationError:
        raise
    except PatentQueryError as e:
        raise SerializationError(f"Invalid '{node_type}' node: {e}") from e

    raise SerializationError(f"Unknown AST node type: {node_type!r}")
