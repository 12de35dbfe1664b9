"""Single-line lexer for the expression language.

``/`` normally belongs to an identifier, so a classification code such as
``H04W16/24`` stays one token. It only starts a field suffix (``/TX``,
``/CP``, ``/FI``) when it follows an expression boundary, e.g. ``)/TX`` or
``A+B /cp``. A digit run directly followed by ``n`` or ``c`` is a proximity
spec (``10n``, ``5c``).
"""

from __future__ import annotations

from patent_query.expr.tokens import FIELD_NAMES, SINGLE_CHAR_TOKENS, Token, TokenKind

_WHITESPACE = frozenset(" \t\r\n")
_PROX_SUFFIXES = frozenset("nNcC")


def _is_separator(ch: str) -> bool:
    return ch in _WHITESPACE or ch in SINGLE_CHAR_TOKENS


def _is_alpha(ch: str | None) -> bool:
    return ch is not None and ("a" <= ch <= "z" or "A" <= ch <= "Z")


def _is_digit(ch: str | None) -> bool:
    return ch is not None and "0" <= ch <= "9"


class Lexer:
    """Forward-only tokenizer over one input line.

    Never raises: characters it does not recognise become part of an
    identifier run.
    """

    def __init__(self, text: str) -> None:
        self.text = text or ""
        self.index = 0
        self.length = len(self.text)

    def next_token(self) -> Token:
        """Read the next token, returning an EOF token at the end of input."""
        self._skip_whitespace()

        if self.index >= self.length:
            return Token(TokenKind.EOF, "")

        ch = self.text[self.index]

        kind = SINGLE_CHAR_TOKENS.get(ch)
        if kind is not None:
            self.index += 1
            return Token(kind, ch)

        if ch == "/":
            if self._at_field_boundary() and _is_alpha(self._peek(1)):
                return self._read_field()
            return self._read_identifier()

        if _is_digit(ch):
            return self._read_number_or_prox()

        return self._read_identifier()

    def __iter__(self):
        while True:
            token = self.next_token()
            yield token
            if token.kind is TokenKind.EOF:
                return

    def _peek(self, offset: int = 0) -> str | None:
        idx = self.index + offset
        if 0 <= idx < self.length:
            return self.text[idx]
        return None

    def _skip_whitespace(self) -> None:
        while self.index < self.length and self.text[self.index] in _WHITESPACE:
            self.index += 1

    def _read_while(self, predicate) -> str:
        start = self.index
        while self.index < self.length and predicate(self.text[self.index]):
            self.index += 1
        return self.text[start : self.index]

    def _at_field_boundary(self) -> bool:
        """Whether ``/`` at the current position can open a field suffix.

        True at line start, after whitespace, or after an operator or
        bracket; ``16/24`` keeps its slash.
        """
        if self.index == 0 or self.text[self.index - 1] in _WHITESPACE:
            return True
        return self.text[self.index - 1] in SINGLE_CHAR_TOKENS

    def _read_field(self) -> Token:
        start = self.index
        self.index += 1  # '/'
        self._read_while(_is_alpha)
        raw = self.text[start : self.index]
        upper = raw.upper()
        if upper in FIELD_NAMES:
            return Token(TokenKind.FIELD, upper)
        return Token(TokenKind.IDENT, raw)

    def _read_number_or_prox(self) -> Token:
        start = self.index
        self._read_while(lambda c: _is_digit(c))
        suffix = self._peek()
        if suffix is not None and suffix in _PROX_SUFFIXES:
            after = self._peek(1)
            # "5cm" is a word, "5c" is a proximity spec
            if after is None or _is_separator(after):
                self.index += 1
                return Token(TokenKind.PROX, self.text[start : self.index])
        self._read_while(lambda c: not _is_separator(c))
        return Token(TokenKind.IDENT, self.text[start : self.index])

    def _read_identifier(self) -> Token:
        return Token(TokenKind.IDENT, self._read_while(lambda c: not _is_separator(c)))


def tokenize(text: str) -> list[Token]:
    """Tokenize a whole line, including the trailing EOF token."""
    return list(Lexer(text))
