"""Render translated field parts into the downstream query string.

Word factors get ``/TX``; every classification expression is searched in
both classification fields as ``[(F)/CP+(F)/FI]``. Factors are joined
with ``*``.
"""

from __future__ import annotations

from patent_query.expr.field_parts import FieldParts, ProximityTerm
from patent_query.expr.tokens import FieldName

_PAIRS = {"(": ")", "{": "}"}
_OPENERS = frozenset(_PAIRS)
_CLOSERS = frozenset(_PAIRS.values())

# Top-level characters that force a word factor into parentheses
_GROUPING_CHARS = "+,{"


def split_top_level_product(text: str) -> list[str]:
    """Split on ``*`` outside any ``()`` or ``{}`` nesting.

    >>> split_top_level_product("(A*B)*C*{D,E,F},5n")
    ['(A*B)', 'C', '{D,E,F},5n']
    """
    if not text.strip():
        return []
    parts: list[str] = []
    depth = 0
    start = 0
    for i, ch in enumerate(text):
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(depth - 1, 0)
        elif ch == "*" and depth == 0:
            parts.append(text[start:i].strip())
            start = i + 1
    parts.append(text[start:].strip())
    return parts


def _outer_pair_spans(text: str) -> bool:
    """Whether the first bracket closes exactly at the last character."""
    stack: list[str] = []
    last = len(text) - 1
    for i, ch in enumerate(text):
        if ch in _OPENERS:
            stack.append(_PAIRS[ch])
        elif ch in _CLOSERS:
            if not stack or stack.pop() != ch:
                return False
            if not stack and i != last:
                return False
        elif not stack:
            return False
    return not stack


def strip_outer_brackets(text: str) -> str:
    """Remove enclosing ``()``/``{}`` pairs that span the whole string.

    >>> strip_outer_brackets("((A+B))")
    'A+B'
    >>> strip_outer_brackets("(A)+(B)")
    '(A)+(B)'
    """
    result = text.strip()
    while len(result) >= 2 and result[0] in _OPENERS and _outer_pair_spans(result):
        result = result[1:-1].strip()
    return result


def has_top_level(text: str, chars: str) -> bool:
    """Whether any of ``chars`` occurs outside bracket nesting."""
    depth = 0
    for ch in text:
        if depth == 0 and ch in chars:
            return True
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(depth - 1, 0)
    return False


def group_if_compound(text: str) -> str:
    """Parenthesise ``text`` if it has a top-level ``+``, ``,`` or ``{``."""
    if has_top_level(text, _GROUPING_CHARS):
        return f"({text})"
    return text


def render_word_factor(text: str) -> str:
    """``A`` -> ``A/TX``; ``(A+B)`` -> ``(A+B)/TX``."""
    return f"{group_if_compound(strip_outer_brackets(text))}{FieldName.TEXT.value}"


def render_proximity_term(term: ProximityTerm) -> str:
    """``[left,10n,R1/TX+R2/TX]``."""
    left = group_if_compound(strip_outer_brackets(term.left))
    rights = "+".join(render_word_factor(alt) for alt in term.right_alternatives)
    return f"[{left},{term.k}{term.mode.suffix},{rights}]"


def render_class_factor(expr: str) -> str:
    """``(F)`` -> ``[(F)/CP+(F)/FI]``."""
    inner = strip_outer_brackets(expr)
    return (
        f"[({inner}){FieldName.CLASSIFICATION_PRIMARY.value}"
        f"+({inner}){FieldName.CLASSIFICATION_FURTHER.value}]"
    )


def render_field_parts(parts: FieldParts) -> str:
    """Build the final query string; empty parts give an empty string."""
    words = []
    for factor in parts.words:
        if isinstance(factor, ProximityTerm):
            words.append(render_proximity_term(factor))
        elif strip_outer_brackets(factor):
            words.append(render_word_factor(factor))

    classes = [render_class_factor(c) for c in parts.classes if strip_outer_brackets(c)]

    segments = []
    if words:
        segments.append("*".join(words))
    if classes:
        segments.append("*".join(classes))
    return "*".join(segments)
