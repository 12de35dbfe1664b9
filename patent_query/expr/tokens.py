"""Token model for the expression language."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenKind(str, Enum):
    """Token categories produced by the lexer."""

    IDENT = "ident"
    PLUS = "plus"
    STAR = "star"
    COMMA = "comma"
    LPAREN = "lparen"
    RPAREN = "rparen"
    LBRACE = "lbrace"
    RBRACE = "rbrace"
    ASSIGN = "assign"
    FIELD = "field"
    PROX = "prox"
    EOF = "eof"


class FieldName(str, Enum):
    """Field suffixes understood by the downstream search engine."""

    TEXT = "/TX"
    CLASSIFICATION_PRIMARY = "/CP"
    CLASSIFICATION_FURTHER = "/FI"


FIELD_NAMES: frozenset[str] = frozenset(f.value for f in FieldName)

# Characters that are a token on their own
SINGLE_CHAR_TOKENS: dict[str, TokenKind] = {
    "+": TokenKind.PLUS,
    "*": TokenKind.STAR,
    ",": TokenKind.COMMA,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "=": TokenKind.ASSIGN,
}


@dataclass(frozen=True)
class Token:
    """A lexed token: its kind and the source text it came from."""

    kind: TokenKind
    text: str

    def __str__(self) -> str:
        return f"Token({self.kind.value}, {self.text!r})"
