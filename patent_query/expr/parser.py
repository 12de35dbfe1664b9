"""Recursive-descent parser for one line of the expression language.

Grammar, loosest binding first::

    line    := [IDENT '='] expr [FIELD] EOF
    expr    := and ('+' and)*
    and     := prox ('*' prox)*
    prox    := primary [',' PROX ',' primary]
    primary := IDENT | '(' expr ')' | '{' primary ',' primary ',' primary '}' ',' PROX

OR and AND chains are collected into flat n-ary ``Logical`` nodes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from patent_query.exceptions import QueryParseError
from patent_query.expr.ast_nodes import (
    ExprNode,
    Logical,
    LogicalOp,
    Proximity,
    ProximityMode,
    SimultaneousProximity,
    WordToken,
)
from patent_query.expr.lexer import Lexer
from patent_query.expr.tokens import FieldName, Token, TokenKind

_PROX_SPEC = re.compile(r"^(\d+)([nc])$", re.IGNORECASE)


@dataclass(frozen=True)
class ParsedLine:
    """Result of parsing one line.

    Attributes:
        expr: The expression tree.
        name: Binding name from a leading ``NAME =``, if any.
        field: Trailing field suffix, if any.
    """

    expr: ExprNode
    name: str | None = None
    field: FieldName | None = None


def parse_prox_spec(text: str) -> tuple[ProximityMode, int]:
    """Split a proximity spec such as ``10n`` into its mode and distance."""
    match = _PROX_SPEC.match(text)
    if match is None:
        raise QueryParseError(f"Invalid proximity spec: {text}", text, TokenKind.PROX.value)
    return ProximityMode.from_suffix(match.group(2)), int(match.group(1))


class Parser:
    """Parser over the full token list of one line."""

    def __init__(self, lexer: Lexer) -> None:
        self.tokens: list[Token] = list(lexer)
        self.pos = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int = 1) -> Token:
        idx = self.pos + offset
        if 0 <= idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1]

    def advance(self) -> Token:
        tok = self.current
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def match(self, kind: TokenKind) -> bool:
        return self.current.kind is kind

    def consume(self, kind: TokenKind, message: str | None = None) -> Token:
        tok = self.current
        if tok.kind is not kind:
            raise self._error(
                message or f"Expected {kind.value} but got {tok.kind.value} ({tok.text})"
            )
        return self.advance()

    def _error(self, message: str) -> QueryParseError:
        tok = self.current
        return QueryParseError(message, tok.text, tok.kind.value)

    def parse_line(self) -> ParsedLine:
        """Parse ``[NAME =] expr [FIELD]`` and require end of input."""
        name = None
        if self.match(TokenKind.IDENT) and self.peek().kind is TokenKind.ASSIGN:
            name = self.advance().text
            self.advance()

        expr = self.parse_expr()

        field = None
        if self.match(TokenKind.FIELD):
            field = FieldName(self.advance().text)

        if not self.match(TokenKind.EOF):
            tok = self.current
            raise self._error(f"Unexpected token at end of line: {tok.text} ({tok.kind.value})")

        return ParsedLine(expr=expr, name=name, field=field)

    def parse_expr(self) -> ExprNode:
        return self._parse_chain(LogicalOp.OR, TokenKind.PLUS, self._parse_and)

    def _parse_and(self) -> ExprNode:
        return self._parse_chain(LogicalOp.AND, TokenKind.STAR, self._parse_prox)

    def _parse_chain(self, op: LogicalOp, separator: TokenKind, operand) -> ExprNode:
        children = [operand()]
        while self.match(separator):
            self.advance()
            children.append(operand())
        if len(children) == 1:
            return children[0]
        return Logical(op, tuple(children))

    def _parse_prox(self) -> ExprNode:
        left = self._parse_primary()
        if self.match(TokenKind.COMMA) and self.peek().kind is TokenKind.PROX:
            self.advance()
            spec = self.consume(TokenKind.PROX, "Expected proximity spec (e.g. 10n or 5c)")
            self.consume(TokenKind.COMMA, 'Expected "," after proximity spec (e.g. 10n,)')
            right = self._parse_primary()
            mode, k = parse_prox_spec(spec.text)
            return Proximity(mode, k, left, right)
        return left

    def _parse_primary(self) -> ExprNode:
        tok = self.current

        if self.match(TokenKind.LBRACE):
            return self._parse_simultaneous()

        if self.match(TokenKind.LPAREN):
            self.advance()
            expr = self.parse_expr()
            self.consume(TokenKind.RPAREN, 'Expected ")" to close "("')
            return expr

        if self.match(TokenKind.IDENT):
            self.advance()
            return WordToken(tok.text)

        if self.match(TokenKind.EOF) or self.match(TokenKind.FIELD):
            raise self._error("Unexpected end of expression")

        raise self._error(f"Unexpected token: {tok.text} ({tok.kind.value})")

    def _parse_simultaneous(self) -> ExprNode:
        self.consume(TokenKind.LBRACE, 'Expected "{" to start simultaneous proximity')
        first = self._parse_primary()
        self.consume(TokenKind.COMMA, 'Expected "," after first operand in "{A,B,C}"')
        second = self._parse_primary()
        self.consume(TokenKind.COMMA, 'Expected "," after second operand in "{A,B,C}"')
        third = self._parse_primary()
        self.consume(TokenKind.RBRACE, 'Expected "}" after third operand in "{A,B,C}"')
        self.consume(TokenKind.COMMA, 'Expected "," after "}" in "{A,B,C},10n"')
        spec = self.current
        self.consume(TokenKind.PROX, 'Expected proximity spec (e.g. 10n) after "{A,B,C},"')

        mode, k = parse_prox_spec(spec.text)
        if mode is not ProximityMode.WORD_DISTANCE:
            raise QueryParseError(
                "Simultaneous proximity supports word distance (n) only",
                spec.text,
                spec.kind.value,
            )
        return SimultaneousProximity(k, (first, second, third))


def parse_line(line: str) -> ParsedLine:
    """Parse one line of the expression language.

    Args:
        line: The input line, e.g. ``NB = 基地局+NB+eNB``.

    Returns:
        The parsed expression with its optional binding name and field.

    Raises:
        QueryParseError: If the line does not match the grammar.
    """
    return Parser(Lexer(line)).parse_line()


def parse_expression(text: str) -> ExprNode:
    """Parse a bare expression (no name, no field suffix)."""
    parsed = parse_line(text)
    if parsed.name is not None or parsed.field is not None:
        raise QueryParseError(
            "Expected a bare expression without name or field", text, TokenKind.IDENT.value
        )
    return parsed.expr
