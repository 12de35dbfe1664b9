"""Text normalisation for pasted expressions and word entities.

Patent queries are often typed with full-width Japanese input, so the
operators, brackets and field suffixes are folded to their ASCII forms
before anything else looks at the text.
"""

from __future__ import annotations

import re

from patent_query.expr.render import strip_outer_brackets

_INLINE_TABLE = str.maketrans(
    {
        "＋": "+",
        "＊": "*",
        "（": "(",
        "）": ")",
        "［": "[",
        "］": "]",
        "｛": "{",
        "｝": "}",
        "／": "/",
        "　": None,
        " ": None,
    }
)

_FIELD_SUFFIXES = [
    (re.compile(r"/[tｔＴ][xｘＸ]", re.IGNORECASE), "/TX"),
    (re.compile(r"/[cｃＣ][pｐＰ]", re.IGNORECASE), "/CP"),
    (re.compile(r"/[fｆＦ][iｉＩ]", re.IGNORECASE), "/FI"),
]

_LATIN_ONLY = re.compile(r"^[a-zA-Zａ-ｚＡ-Ｚ]+$")
_WHITESPACE = re.compile(r"[\s　]+")

# Offset between ASCII letters and their full-width forms
_FULL_WIDTH_OFFSET = 0xFEE0

MAX_LABEL_VARIANTS = 10


def normalize_inline(text: str | None) -> str:
    """Fold full-width operators to ASCII, drop spaces, upper-case field suffixes.

    >>> normalize_inline("（基地局　＋ NB）／ｔｘ")
    '(基地局+NB)/TX'
    """
    if not text:
        return ""
    result = text.translate(_INLINE_TABLE)
    for pattern, replacement in _FIELD_SUFFIXES:
        result = pattern.sub(replacement, result)
    return result


def remove_spaces(text: str) -> str:
    return _WHITESPACE.sub("", text or "")


def expression_key(text: str | None) -> str:
    """Key under which a word expression is stored and found again."""
    if not text:
        return ""
    return strip_outer_brackets(remove_spaces(normalize_inline(text)))


def to_half_width(text: str) -> str:
    return "".join(
        chr(ord(ch) - _FULL_WIDTH_OFFSET) if "Ａ" <= ch <= "Ｚ" or "ａ" <= ch <= "ｚ" else ch
        for ch in text
    )


def to_full_width(text: str) -> str:
    return "".join(
        chr(ord(ch) + _FULL_WIDTH_OFFSET) if "A" <= ch <= "Z" or "a" <= ch <= "z" else ch
        for ch in text
    )


def is_latin_only(word: str) -> bool:
    return bool(_LATIN_ONLY.match(word))


def latin_variants(word: str) -> list[str]:
    """Six spellings of a Latin-letter word: capitalised, upper and lower case,
    each in full width then half width."""
    base = to_half_width(word).lower()
    capitalized = base[:1].upper() + base[1:]
    upper = base.upper()
    return [
        to_full_width(capitalized),
        capitalized,
        to_full_width(upper),
        upper,
        to_full_width(base),
        base,
    ]


def word_variants(text: str | None) -> list[str]:
    """Expand a ``+``-separated word expression into its spelling variants.

    Latin-only words get six case and width variants; anything else is
    kept as typed. Duplicates are dropped and the result is ordered
    longest first, keeping the original order among equal lengths.
    """
    key = expression_key(text)
    if not key:
        return []

    latin: list[str] = []
    others: list[str] = []
    for word in (w.strip() for w in key.split("+")):
        if not word:
            continue
        if is_latin_only(word):
            latin.extend(latin_variants(word))
        else:
            others.append(word)

    unique = list(dict.fromkeys(latin + others))
    return sorted(unique, key=len, reverse=True)


def display_label(variants: list[str]) -> str:
    """``(v1+v2+...)`` showing at most ten variants."""
    if not variants:
        return ""
    label = "+".join(variants[:MAX_LABEL_VARIANTS])
    if len(variants) > MAX_LABEL_VARIANTS:
        return f"({label}+...)"
    return f"({label})"
