"""
Code Block
==========
Line-numbered code content: a gutter of line numbers next to code runs.

    block = CodeBlock()
    block.raw("val x = 1")
    block.new_line()
    block.json('{"enabled": true}')

Code may be added as plain text, as markup, or as JSON; common
indentation is removed first. Numbering grows with every newline added.
"""

from __future__ import annotations

import textwrap
from typing import Optional

from .colorizer import CODE_FONT_SIZE, CODE_LEADING_FACTOR, JsonColorizer, code_style
from .markup import MarkupEngine
from .models import RGB, Phrase, Style, StyledRun

NUMBERS_FG_COLOR: RGB = (128, 128, 128)


def trim_indent(code: str) -> str:
    """Remove common leading indentation and blank first/last lines."""
    lines = textwrap.dedent(code).split("\n")
    if lines and not lines[0].strip():
        lines = lines[1:]
    if lines and not lines[-1].strip():
        lines = lines[:-1]
    return "\n".join(lines)


class CodeBlock:
    """Accumulates code runs and the matching line-number gutter."""

    def __init__(
        self,
        font_size: float = CODE_FONT_SIZE,
        markup: Optional[MarkupEngine] = None,
        colorizer: Optional[JsonColorizer] = None,
    ):
        self.style: Style = code_style(font_size)
        self.number_style: Style = code_style(font_size, NUMBERS_FG_COLOR)
        self.leading = font_size * CODE_LEADING_FACTOR
        self.markup = markup or MarkupEngine()
        self.colorizer = colorizer or JsonColorizer(base_style=self.style)
        self.line_count = 0
        self.runs: list[StyledRun] = []

    @property
    def is_empty(self) -> bool:
        return self.line_count == 0 or not self.runs

    def add(self, runs: list[StyledRun]) -> None:
        """Append runs; a first addition numbers its first line too."""
        newlines = sum(run.text.count("\n") for run in runs)
        if self.line_count == 0:
            self.line_count = newlines + 1
        else:
            self.line_count += newlines
        self.runs.extend(runs)

    def new_line(self) -> None:
        self.line_count += 1
        self.runs.append(StyledRun(text="\n", style=self.style))

    def raw(self, code: str) -> None:
        """Add code verbatim; tags are not interpreted."""
        self.add([StyledRun(text=trim_indent(code), style=self.style)])

    def code(self, code: str) -> None:
        """Add code containing inline markup."""
        self.add(self.markup.render(self.style, trim_indent(code)))

    def json(self, code: str) -> None:
        """Add colorized JSON; invalid JSON is added as plain text."""
        self.add(self.colorizer.colorize(trim_indent(code)))

    @property
    def line_numbers(self) -> list[int]:
        return list(range(1, self.line_count + 1))

    def numbers_phrase(self) -> Phrase:
        text = "\n".join(str(n) for n in self.line_numbers)
        return Phrase(runs=[StyledRun(text=text, style=self.number_style)], leading=self.leading)

    def code_phrase(self) -> Phrase:
        return Phrase(runs=list(self.runs), leading=self.leading)
