"""
Token Sources
=============
Forward-only producers of structural JSON tokens.

    source = JsonTokenSource('{"a": [1, 2]}')
    for token in source:
        ...

JsonTokenSource is a pull lexer with a small grammar state machine: it
yields one Token per structural event and never builds a tree. Syntax
errors raise TokenSourceError at the point they are found, after every
token before them has already been delivered.
"""

from __future__ import annotations

import json
import logging
import re
from enum import Enum
from typing import Any, Iterable, Iterator, Optional

from .models import Token, TokenKind

logger = logging.getLogger(__name__)

# ─── Lexical Patterns ─────────────────────────────────────────────────────────

WHITESPACE_PATTERN = re.compile(r"[ \t\n\r]*")

STRING_PATTERN = re.compile(
    r'"(?:[^"\\\x00-\x1f]|\\(?:["\\/bfnrt]|u[0-9a-fA-F]{4}))*"'
)

NUMBER_PATTERN = re.compile(
    r"-?(?:0|[1-9]\d*)(\.\d+)?([eE][+-]?\d+)?"
)

LITERALS = {
    "true": (TokenKind.BOOL, True),
    "false": (TokenKind.BOOL, False),
    "null": (TokenKind.NULL, None),
}


class TokenSourceError(ValueError):
    """Raised when the underlying text is not valid structured data."""

    def __init__(self, message: str, position: int = -1):
        self.message = message
        self.position = position
        if position >= 0:
            message = f"{message} at offset {position}"
        super().__init__(message)


class _Expect(Enum):
    """What the grammar accepts next."""
    VALUE = "value"
    VALUE_OR_END = "value_or_end"      # right after '['
    KEY_OR_END = "key_or_end"          # right after '{'
    KEY = "key"                        # after ',' inside an object
    COLON = "colon"
    COMMA_OR_END = "comma_or_end"
    DONE = "done"


class JsonTokenSource:
    """
    Pull-based JSON tokenizer.

    Call ``next_token()`` until it returns None, or iterate. Only one
    root value is accepted; trailing non-whitespace is an error.
    """

    def __init__(self, text: str):
        self.text = text
        self.position = 0
        self._containers: list[TokenKind] = []
        self._expect = _Expect.VALUE

    @property
    def depth(self) -> int:
        return len(self._containers)

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            if token is None:
                return
            yield token

    def next_token(self) -> Optional[Token]:
        """
        Return the next structural token, or None at the end of the input.

        Raises:
            TokenSourceError: On a syntax error or a truncated document.
        """
        while True:
            self._skip_whitespace()

            if self.position >= len(self.text):
                if self._expect != _Expect.DONE:
                    raise TokenSourceError("Unexpected end of input", self.position)
                return None

            if self._expect == _Expect.DONE:
                raise TokenSourceError("Unexpected data after the root value", self.position)

            char = self.text[self.position]

            if self._expect == _Expect.COLON:
                self._consume(":", char)
                self._expect = _Expect.VALUE
                continue

            if self._expect == _Expect.COMMA_OR_END:
                if char == ",":
                    self.position += 1
                    self._expect = (
                        _Expect.KEY
                        if self._containers[-1] == TokenKind.START_OBJECT
                        else _Expect.VALUE
                    )
                    continue
                return self._close(char)

            if self._expect in (_Expect.KEY_OR_END, _Expect.KEY):
                if char == "}" and self._expect == _Expect.KEY_OR_END:
                    return self._close(char)
                if char != '"':
                    raise TokenSourceError("Expected a field name", self.position)
                name = self._read_string()
                self._expect = _Expect.COLON
                return Token(kind=TokenKind.FIELD_NAME, value=name)

            # VALUE or VALUE_OR_END
            if char == "]" and self._expect == _Expect.VALUE_OR_END:
                return self._close(char)
            return self._read_value(char)

    # ─── Grammar Helpers ──────────────────────────────────────────────────

    def _read_value(self, char: str) -> Token:
        if char == "{":
            self.position += 1
            self._containers.append(TokenKind.START_OBJECT)
            self._expect = _Expect.KEY_OR_END
            return Token(kind=TokenKind.START_OBJECT)

        if char == "[":
            self.position += 1
            self._containers.append(TokenKind.START_ARRAY)
            self._expect = _Expect.VALUE_OR_END
            return Token(kind=TokenKind.START_ARRAY)

        if char == '"':
            token = Token(kind=TokenKind.STRING, value=self._read_string())
        elif char == "-" or char.isdigit():
            token = self._read_number()
        else:
            token = self._read_literal()

        self._after_value()
        return token

    def _close(self, char: str) -> Token:
        if not self._containers:
            raise TokenSourceError(f"Unexpected {char!r}", self.position)

        opened = self._containers[-1]
        if opened == TokenKind.START_OBJECT and char == "}":
            kind = TokenKind.END_OBJECT
        elif opened == TokenKind.START_ARRAY and char == "]":
            kind = TokenKind.END_ARRAY
        else:
            raise TokenSourceError(f"Unexpected {char!r}", self.position)

        self.position += 1
        self._containers.pop()
        self._after_value()
        return Token(kind=kind)

    def _after_value(self):
        self._expect = _Expect.COMMA_OR_END if self._containers else _Expect.DONE

    # ─── Lexical Helpers ──────────────────────────────────────────────────

    def _skip_whitespace(self):
        self.position = WHITESPACE_PATTERN.match(self.text, self.position).end()

    def _consume(self, expected: str, char: str):
        if char != expected:
            raise TokenSourceError(f"Expected {expected!r}", self.position)
        self.position += 1

    def _read_string(self) -> str:
        match = STRING_PATTERN.match(self.text, self.position)
        if not match:
            raise TokenSourceError("Malformed string", self.position)
        self.position = match.end()
        return json.loads(match.group(0))

    def _read_number(self) -> Token:
        match = NUMBER_PATTERN.match(self.text, self.position)
        if not match:
            raise TokenSourceError("Malformed number", self.position)
        self.position = match.end()
        literal = match.group(0)
        if match.group(1) or match.group(2):
            return Token(kind=TokenKind.FLOAT, value=float(literal))
        return Token(kind=TokenKind.INT, value=int(literal))

    def _read_literal(self) -> Token:
        for word, (kind, value) in LITERALS.items():
            if self.text.startswith(word, self.position):
                self.position += len(word)
                return Token(kind=kind, value=value)
        raise TokenSourceError("Unexpected character", self.position)


def tokens_from_value(value: Any) -> Iterator[Token]:
    """
    Yield the token stream describing an already-loaded Python value.

    Dicts become objects, lists and tuples become arrays; other values
    must be JSON scalars.
    """
    if isinstance(value, dict):
        yield Token.start_object()
        for key, item in value.items():
            yield Token.field(str(key))
            yield from tokens_from_value(item)
        yield Token.end_object()
    elif isinstance(value, (list, tuple)):
        yield Token.start_array()
        for item in value:
            yield from tokens_from_value(item)
        yield Token.end_array()
    else:
        yield Token.scalar(value)


def validate_tokens(tokens: Iterable[Token]) -> int:
    """
    Drain a token stream, checking that it is complete and balanced.

    Returns:
        Number of tokens seen.

    Raises:
        TokenSourceError: If the source fails or containers do not balance.
    """
    open_containers: list[TokenKind] = []
    count = 0
    for token in tokens:
        count += 1
        if token.kind in (TokenKind.START_OBJECT, TokenKind.START_ARRAY):
            open_containers.append(token.kind)
        elif token.kind.is_struct_end:
            expected = (
                TokenKind.START_OBJECT
                if token.kind == TokenKind.END_OBJECT
                else TokenKind.START_ARRAY
            )
            if not open_containers or open_containers.pop() != expected:
                raise TokenSourceError(f"Unbalanced {token.kind.value} after {count - 1} tokens")
    if open_containers:
        raise TokenSourceError(f"{len(open_containers)} container(s) left open")
    if count == 0:
        raise TokenSourceError("Empty token stream")
    return count
