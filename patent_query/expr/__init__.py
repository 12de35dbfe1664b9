"""Expression language: lexing, parsing, translation and rendering."""

from patent_query.expr.ast_nodes import (
    EntityRef,
    ExprNode,
    Logical,
    LogicalOp,
    Proximity,
    ProximityMode,
    SimultaneousProximity,
    WordToken,
    collect_entity_refs,
    collect_word_tokens,
    copy_node,
    logical_form,
)
from patent_query.expr.classification import classification_codes, validate_classification_expr
from patent_query.expr.field_parts import FieldParts, PartsKind, ProximityTerm, classify_parts
from patent_query.expr.lexer import Lexer, tokenize
from patent_query.expr.parser import ParsedLine, QueryParseError, parse_line
from patent_query.expr.render import (
    render_field_parts,
    split_top_level_product,
    strip_outer_brackets,
)
from patent_query.expr.serialize import node_from_dict, node_to_dict
from patent_query.expr.translate import render_query, translate

__all__ = [
    "EntityRef",
    "ExprNode",
    "FieldParts",
    "Lexer",
    "Logical",
    "LogicalOp",
    "ParsedLine",
    "PartsKind",
    "Proximity",
    "ProximityMode",
    "ProximityTerm",
    "QueryParseError",
    "SimultaneousProximity",
    "WordToken",
    "classification_codes",
    "classify_parts",
    "collect_entity_refs",
    "collect_word_tokens",
    "copy_node",
    "logical_form",
    "node_from_dict",
    "node_to_dict",
    "parse_line",
    "render_field_parts",
    "render_query",
    "split_top_level_product",
    "strip_outer_brackets",
    "tokenize",
    "translate",
    "validate_classification_expr",
]
