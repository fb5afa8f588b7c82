"""
JSON Colorizer
==============
Streams structural JSON tokens into an indented, colorized pretty-print.

    colorizer = JsonColorizer()
    runs = colorizer.colorize('{"a": 1, "b": ["x", "y"]}')

renders as::

    {
      "a" : 1,
      "b" : [ "x", "y" ]
    }

Each nesting level is one recursive call that only knows its parent
container kind and the previous token seen at its own level. Nothing is
buffered beyond the output runs, so recursion depth equals nesting depth.
"""

from __future__ import annotations

import json
import logging
from typing import Iterable, Iterator, Optional

from .models import ClosedBy, FontFamily, Phrase, RGB, Style, StyledRun, Token, TokenKind
from .sizes import DEFAULT_SIZE
from .tokens import JsonTokenSource, TokenSourceError, validate_tokens

logger = logging.getLogger(__name__)

INDENT_SIZE = 2
MAX_DEPTH = 512

CODE_FONT_SIZE = DEFAULT_SIZE - 1
CODE_LEADING_FACTOR = 1.3

# ─── Palette ──────────────────────────────────────────────────────────────────

CODE_FG_COLOR: RGB = (22, 22, 22)
FIELD_NAME_COLOR: RGB = (130, 39, 199)
STRING_VALUE_COLOR: RGB = (229, 53, 138)
NUMBER_VALUE_COLOR: RGB = (36, 91, 226)
BOOL_VALUE_COLOR: RGB = (86, 177, 107)


class NestingTooDeepError(RuntimeError):
    """Structure nests deeper than the colorizer is allowed to recurse."""

    def __init__(self, depth: int, limit: int):
        self.depth = depth
        self.limit = limit
        super().__init__(f"JSON nesting depth {depth} exceeds the limit of {limit}")


def code_style(size: float = CODE_FONT_SIZE, color: Optional[RGB] = CODE_FG_COLOR) -> Style:
    """Monospace style used for code and JSON content."""
    return Style(size=size, color=color, font=FontFamily.COURIER)


class _RunWriter:
    """Token cursor plus output buffer for one render call."""

    def __init__(self, tokens: Iterable[Token], base_style: Style, indent_char: str):
        self.tokens: Iterator[Token] = iter(tokens)
        self.base_style = base_style
        self.indent_char = indent_char
        self.runs: list[StyledRun] = []
        self.failed = False

    def next_token(self) -> Optional[Token]:
        if self.failed:
            return None
        try:
            return next(self.tokens)
        except StopIteration:
            return None
        except TokenSourceError as e:
            logger.warning(f"Token stream stopped early: {e}")
            self.failed = True
            return None

    def text(self, content: str, style: Optional[Style] = None):
        if not content:
            return
        style = style or self.base_style
        if self.runs and self.runs[-1].style == style:
            last = self.runs.pop()
            content = last.text + content
        self.runs.append(StyledRun(text=content, style=style))

    def indented(self, indent: int, content: str, style: Optional[Style] = None):
        self.text(self.indent_char * indent)
        self.text(content, style)

    def newline(self):
        self.text("\n")


class JsonColorizer:
    """
    Single-pass JSON pretty-printer producing styled runs.

    Args:
        base_style: Style of punctuation and whitespace; value colors are
            applied on top of it.
        indent_size: Spaces per nesting level.
        max_depth: Deepest nesting accepted before NestingTooDeepError.
    """

    def __init__(
        self,
        base_style: Optional[Style] = None,
        indent_size: int = INDENT_SIZE,
        max_depth: int = MAX_DEPTH,
        indent_char: str = " ",
    ):
        self.base_style = base_style or code_style()
        self.indent_size = indent_size
        self.max_depth = max_depth
        self.indent_char = indent_char

        self.field_style = self.base_style.evolve(color=FIELD_NAME_COLOR)
        self.string_style = self.base_style.evolve(color=STRING_VALUE_COLOR)
        self.number_style = self.base_style.evolve(color=NUMBER_VALUE_COLOR)
        self.bool_style = self.base_style.evolve(color=BOOL_VALUE_COLOR)

    @property
    def leading(self) -> float:
        return self.base_style.size * CODE_LEADING_FACTOR

    def render(self, tokens: Iterable[Token]) -> list[StyledRun]:
        """
        Render a token stream.

        A stream that ends or fails before its containers close yields the
        runs produced so far; no closing punctuation is invented.

        Raises:
            NestingTooDeepError: If nesting exceeds ``max_depth``.
        """
        out = _RunWriter(tokens, self.base_style, self.indent_char)
        closed = self._walk(out, None, 0, 0)
        if closed == ClosedBy.END_OF_INPUT and out.failed:
            logger.debug(f"Partial JSON output: {len(out.runs)} runs")
        return out.runs

    def colorize(self, text: str) -> list[StyledRun]:
        """
        Render JSON text, or the text itself as one plain run if it is not
        valid JSON.
        """
        try:
            validate_tokens(JsonTokenSource(text))
        except TokenSourceError as e:
            logger.warning(f"Rendering invalid JSON as plain text: {e}")
            return [StyledRun(text=text, style=self.base_style)]
        return self.render(JsonTokenSource(text))

    def colorize_phrase(self, text: str) -> Phrase:
        return Phrase(runs=self.colorize(text), leading=self.leading)

    # ─── Recursive Descent ────────────────────────────────────────────────

    def _walk(
        self,
        out: _RunWriter,
        parent: Optional[TokenKind],
        indent: int,
        depth: int,
    ) -> ClosedBy:
        if depth > self.max_depth:
            raise NestingTooDeepError(depth, self.max_depth)

        previous: Optional[TokenKind] = None

        while True:
            token = out.next_token()
            if token is None:
                return ClosedBy.END_OF_INPUT
            kind = token.kind

            if kind == TokenKind.START_OBJECT:
                if previous is not None and (previous.is_struct_end or previous.is_scalar):
                    out.text(",\n")
                    out.indented(indent, "{")
                elif parent == TokenKind.START_ARRAY:
                    out.newline()
                    out.indented(indent, "{")
                else:
                    out.text("{")

                closed = self._walk(out, TokenKind.START_OBJECT, indent + self.indent_size, depth + 1)
                if closed == ClosedBy.END_OF_INPUT:
                    return closed
                out.newline()
                out.indented(indent, "}")
                previous = TokenKind.END_OBJECT

            elif kind == TokenKind.END_OBJECT:
                if parent == TokenKind.START_OBJECT:
                    return ClosedBy.OBJECT
                # Stray closers leave `previous` alone so separators stay as if absent
                logger.debug("Ignoring end_object outside an object")

            elif kind == TokenKind.START_ARRAY:
                out.text(self._separator(parent, previous))
                out.text("[")

                closed = self._walk(out, TokenKind.START_ARRAY, indent + self.indent_size, depth + 1)
                if closed == ClosedBy.END_OF_INPUT:
                    return closed
                if closed == ClosedBy.ARRAY:
                    out.text(" ]")
                else:
                    out.newline()
                    out.indented(indent, "]")
                previous = TokenKind.END_ARRAY

            elif kind == TokenKind.END_ARRAY:
                if parent == TokenKind.START_ARRAY:
                    # An array whose last element was a structure closes on its own line
                    if previous is not None and previous.is_struct_end:
                        return ClosedBy.OBJECT
                    return ClosedBy.ARRAY
                logger.debug("Ignoring end_array outside an array")

            elif kind == TokenKind.FIELD_NAME:
                if previous is not None:
                    out.text(",")
                out.newline()
                out.indented(indent, self._quote(token.value), self.field_style)
                out.text(" : ")
                previous = kind

            else:
                out.text(self._separator(parent, previous))
                text, style = self._scalar(token)
                out.text(text, style)
                previous = kind

    def _separator(self, parent: Optional[TokenKind], previous: Optional[TokenKind]) -> str:
        """Text placed before a scalar or nested array."""
        if parent != TokenKind.START_ARRAY:
            return ""
        return " " if previous is None else ", "

    def _scalar(self, token: Token) -> tuple[str, Style]:
        kind = token.kind
        if kind == TokenKind.STRING:
            return self._quote(token.value), self.string_style
        if kind == TokenKind.INT:
            return str(token.value), self.number_style
        if kind == TokenKind.FLOAT:
            return repr(float(token.value)), self.number_style
        if kind == TokenKind.BOOL:
            return ("true" if token.value else "false"), self.bool_style
        return "null", self.bool_style

    @staticmethod
    def _quote(value) -> str:
        return json.dumps("" if value is None else str(value), ensure_ascii=False)
