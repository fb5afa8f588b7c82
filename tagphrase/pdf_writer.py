"""
PDF Writer
==========
Places styled runs on PDF pages using PyMuPDF (fitz).

The writer is a simple run sink: runs flow left to right, wrap at word
boundaries at the right margin, move down by the phrase leading on every
newline, and continue on a new page at the bottom margin. Fonts are the
PDF base-14 families; underline and strikethrough are drawn as lines.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional, Protocol, Union

import fitz  # PyMuPDF

from .code_block import CodeBlock
from .models import FontFamily, Phrase, Style, StyledRun

logger = logging.getLogger(__name__)

# (family, bold, italic) -> base-14 font short name
BASE14_FONTS = {
    (FontFamily.HELVETICA, False, False): "helv",
    (FontFamily.HELVETICA, True, False): "hebo",
    (FontFamily.HELVETICA, False, True): "heit",
    (FontFamily.HELVETICA, True, True): "hebi",
    (FontFamily.COURIER, False, False): "cour",
    (FontFamily.COURIER, True, False): "cobo",
    (FontFamily.COURIER, False, True): "coit",
    (FontFamily.COURIER, True, True): "cobi",
    (FontFamily.TIMES, False, False): "tiro",
    (FontFamily.TIMES, True, False): "tibo",
    (FontFamily.TIMES, False, True): "tiit",
    (FontFamily.TIMES, True, True): "tibi",
}

WORD_PATTERN = re.compile(r"\S+|\s+")

A4_WIDTH, A4_HEIGHT = fitz.paper_size("a4")

DEFAULT_LEADING = 14.0


class RunSink(Protocol):
    """Anything that accepts styled runs in reading order."""

    def append(self, run: StyledRun, leading: float) -> None:
        ...


def append_phrase(sink: RunSink, phrase: Phrase) -> float:
    """
    Feed a phrase's runs to a sink in reading order.

    Returns:
        The leading the runs were appended with.
    """
    leading = phrase.leading or DEFAULT_LEADING
    for run in phrase.runs:
        sink.append(run, leading)
    return leading


def font_name(style: Style) -> str:
    return BASE14_FONTS[(style.font, style.bold, style.italic)]


def pdf_color(style: Style) -> tuple[float, float, float]:
    if style.color is None:
        return (0.0, 0.0, 0.0)
    r, g, b = style.color
    return (r / 255, g / 255, b / 255)


def split_lines(runs: list[StyledRun]) -> list[list[StyledRun]]:
    """Group runs into lines, splitting runs that contain newlines."""
    lines: list[list[StyledRun]] = [[]]
    for run in runs:
        segments = run.text.split("\n")
        for index, segment in enumerate(segments):
            if index > 0:
                lines.append([])
            if segment:
                lines[-1].append(StyledRun(text=segment, style=run.style))
    return lines


class PdfPhraseWriter:
    """
    Flows phrases onto the pages of a new PDF document.

    Usage:
        with PdfPhraseWriter() as writer:
            writer.write_phrase(phrase)
            writer.save("out.pdf")
    """

    def __init__(
        self,
        page_width: float = A4_WIDTH,
        page_height: float = A4_HEIGHT,
        margin: float = 36.0,
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin
        self.doc = fitz.open()
        self.page: Optional[fitz.Page] = None
        self.x = margin
        self.y = margin
        self._line_started = False

    def __enter__(self) -> PdfPhraseWriter:
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def page_count(self) -> int:
        return self.doc.page_count

    @property
    def right_edge(self) -> float:
        return self.page_width - self.margin

    # ─── Flow ─────────────────────────────────────────────────────────────

    def _new_page(self):
        self.page = self.doc.new_page(width=self.page_width, height=self.page_height)
        self.x = self.margin
        self.y = self.margin
        self._line_started = False
        logger.debug(f"Started page {self.doc.page_count}")

    def _ensure_line(self, leading: float):
        """Make sure a baseline exists for the current line."""
        if self.page is None:
            self._new_page()
        if not self._line_started:
            if self.y + leading > self.page_height - self.margin and self.y > self.margin:
                self._new_page()
            self.y += leading
            self._line_started = True

    def new_line(self, leading: float = DEFAULT_LEADING):
        """Finish the current line; an empty line still advances by ``leading``."""
        if not self._line_started:
            self._ensure_line(leading)
        self.x = self.margin
        self._line_started = False

    def append(self, run: StyledRun, leading: float) -> None:
        """Place one run, wrapping at word boundaries."""
        for index, segment in enumerate(run.text.split("\n")):
            if index > 0:
                self.new_line(leading)
            for word in WORD_PATTERN.findall(segment):
                self._place_word(word, run.style, leading)

    def _place_word(self, word: str, style: Style, leading: float):
        self._ensure_line(leading)
        fontname = font_name(style)
        width = fitz.get_text_length(word, fontname=fontname, fontsize=style.size)

        if self.x + width > self.right_edge and self.x > self.margin:
            self.new_line(leading)
            if word.isspace():
                return
            self._ensure_line(leading)

        self._draw(word, style, self.x, width)
        self.x += width

    def _draw(self, text: str, style: Style, x: float, width: float):
        color = pdf_color(style)
        fontname = font_name(style)
        self.page.insert_text(
            fitz.Point(x, self.y),
            text,
            fontname=fontname,
            fontsize=style.size,
            color=color,
        )
        line_width = max(style.size / 15, 0.5)
        if style.underline:
            underline_y = self.y + style.size * 0.15
            self.page.draw_line((x, underline_y), (x + width, underline_y), color=color, width=line_width)
        if style.strikethrough:
            strike_y = self.y - style.size * 0.3
            self.page.draw_line((x, strike_y), (x + width, strike_y), color=color, width=line_width)

    # ─── Content ──────────────────────────────────────────────────────────

    def write_phrase(self, phrase: Phrase) -> None:
        """Write a phrase as its own paragraph."""
        self.new_line(append_phrase(self, phrase))

    def write_code_block(self, block: CodeBlock, gutter: float = 28.0) -> None:
        """Write a code block: right-aligned line numbers, then the code. Long lines are clipped."""
        if block.is_empty:
            logger.debug("Skipping empty code block")
            return

        leading = block.leading
        lines = split_lines(block.runs)
        number_font = font_name(block.number_style)

        for number, line in zip(block.line_numbers, lines):
            self._ensure_line(leading)
            label = str(number)
            label_width = fitz.get_text_length(label, fontname=number_font, fontsize=block.number_style.size)
            self._draw(label, block.number_style, self.margin + gutter - 6 - label_width, label_width)

            self.x = self.margin + gutter
            for run in line:
                width = fitz.get_text_length(run.text, fontname=font_name(run.style), fontsize=run.style.size)
                if self.x + width > self.right_edge:
                    break
                self._draw(run.text, run.style, self.x, width)
                self.x += width
            self.new_line(leading)

    # ─── Output ───────────────────────────────────────────────────────────

    def to_bytes(self) -> bytes:
        if self.page is None:
            self._new_page()
        return self.doc.tobytes()

    def save(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        if self.page is None:
            self._new_page()
        self.doc.save(str(path))
        logger.info(f"Saved PDF ({self.page_count} pages): {path}")
        return path

    def close(self):
        self.doc.close()
