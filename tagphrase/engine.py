"""
Phrase Engine
=============
Main orchestrator that ties the markup engine, the JSON colorizer, code
blocks and the PDF writer together behind one configuration.

Usage:
    engine = PhraseEngine(RenderConfig(default_size=12))
    phrase = engine.render_markup("<b>Total:</b> <color green>42</color>")
    engine.build_pdf(["<size large>Report</size>"], "report.pdf")

Architecture:
    text → MarkupEngine → Phrase ─┐
    JSON → JsonColorizer → Phrase ─┼→ PdfPhraseWriter → PDF
    code → CodeBlock ─────────────┘
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

from .code_block import CodeBlock
from .colorizer import MAX_DEPTH, JsonColorizer, code_style
from .markup import MarkupEngine
from .models import FontFamily, Phrase, Style
from .pdf_writer import A4_HEIGHT, A4_WIDTH, PdfPhraseWriter
from .registry import TagHandlerRegistry
from .sizes import DEFAULT_SIZE

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class RenderConfig:
    """Configuration for the phrase engine."""

    # Text
    default_size: float = DEFAULT_SIZE
    font: str = "helvetica"

    # Code and JSON
    code_font_size: float = DEFAULT_SIZE - 1
    indent_size: int = 2
    max_depth: int = MAX_DEPTH

    # Page
    page_width: float = A4_WIDTH
    page_height: float = A4_HEIGHT
    margin: float = 36.0

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None


class PhraseEngine:
    """
    Renders markup, JSON and code blocks with one shared configuration.

    Safe to share between threads: every render builds its own state and
    the tag registry is copy-on-write.
    """

    def __init__(
        self,
        config: Optional[RenderConfig] = None,
        registry: Optional[TagHandlerRegistry] = None,
    ):
        self.config = config or RenderConfig()
        self._setup_logging()

        self.base_style = Style(
            size=self.config.default_size,
            font=FontFamily(self.config.font.lower()),
        )
        self.markup = MarkupEngine(registry=registry, default_size=self.config.default_size)
        self.colorizer = JsonColorizer(
            base_style=code_style(self.config.code_font_size),
            indent_size=self.config.indent_size,
            max_depth=self.config.max_depth,
        )

    def _setup_logging(self):
        """Configure logging based on config."""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        package_logger = logging.getLogger("tagphrase")
        package_logger.setLevel(log_level)

        if not package_logger.handlers:
            console = logging.StreamHandler()
            console.setLevel(log_level)
            console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
            package_logger.addHandler(console)

        if self.config.log_file:
            log_path = Path(self.config.log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            already_attached = any(
                isinstance(h, logging.FileHandler)
                and Path(h.baseFilename) == log_path.resolve()
                for h in package_logger.handlers
            )
            if not already_attached:
                file_handler = logging.FileHandler(log_path, encoding="utf-8")
                file_handler.setLevel(log_level)
                file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
                package_logger.addHandler(file_handler)

    def render_markup(self, text: str, style: Optional[Style] = None) -> Phrase:
        """Render a markup string in the configured base style (or ``style``)."""
        return self.markup.render_phrase(style or self.base_style, text)

    def render_json(self, text: str) -> Phrase:
        """Colorize JSON text; invalid JSON comes back as one plain run."""
        return self.colorizer.colorize_phrase(text)

    def code_block(self) -> CodeBlock:
        """New code block using this engine's markup engine and colorizer."""
        return CodeBlock(
            font_size=self.config.code_font_size,
            markup=self.markup,
            colorizer=self.colorizer,
        )

    def build_pdf(
        self,
        paragraphs: Iterable[str],
        output_path: Union[str, Path],
        json_documents: Iterable[str] = (),
    ) -> Path:
        """
        Write markup paragraphs, then each JSON document as a code block,
        to a new PDF.

        Returns:
            Path of the written file.
        """
        start_time = time.time()
        phrase_count = 0
        block_count = 0

        with PdfPhraseWriter(
            page_width=self.config.page_width,
            page_height=self.config.page_height,
            margin=self.config.margin,
        ) as writer:
            for text in paragraphs:
                writer.write_phrase(self.render_markup(text))
                phrase_count += 1

            for document in json_documents:
                block = self.code_block()
                block.json(document)
                writer.new_line()
                writer.write_code_block(block)
                block_count += 1

            path = writer.save(output_path)

        elapsed = time.time() - start_time
        logger.info(
            f"Rendered {phrase_count} paragraphs and {block_count} code blocks "
            f"in {elapsed:.2f}s"
        )
        return path
