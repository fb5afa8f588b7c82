"""
Test Suite for PDF Output and the CLI
=====================================
Writes real PDFs with PyMuPDF and reads the text back.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import fitz
import pytest
from click.testing import CliRunner

from tagphrase import __version__
from tagphrase.cli import cli
from tagphrase.code_block import CodeBlock
from tagphrase.engine import PhraseEngine, RenderConfig
from tagphrase.markup import MarkupEngine
from tagphrase.models import Phrase, Style, StyledRun
from tagphrase.pdf_writer import (
    A4_HEIGHT,
    A4_WIDTH,
    DEFAULT_LEADING,
    PdfPhraseWriter,
    append_phrase,
    font_name,
    pdf_color,
    split_lines,
)


def _open(data: bytes) -> fitz.Document:
    return fitz.open(stream=data, filetype="pdf")


def _spans(page: fitz.Page) -> list[dict]:
    spans = []
    for block in page.get_text("dict")["blocks"]:
        for line in block.get("lines", []):
            spans.extend(line["spans"])
    return spans


@pytest.fixture
def engine() -> PhraseEngine:
    return PhraseEngine(RenderConfig(log_level="ERROR"))


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


# ═══════════════════════════════════════════════════════════════════════════════
# PDF WRITER TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestWriterHelpers:
    """Test style to PDF mapping helpers."""

    def test_font_names(self):
        assert font_name(Style()) == "helv"
        assert font_name(Style(bold=True, italic=True)) == "hebi"
        assert font_name(Style(font="courier", bold=True)) == "cobo"
        assert font_name(Style(font="times")) == "tiro"

    def test_pdf_color(self):
        assert pdf_color(Style()) == (0.0, 0.0, 0.0)
        assert pdf_color(Style(color=(255, 0, 51))) == pytest.approx((1.0, 0.0, 0.2))

    def test_append_phrase_feeds_any_sink(self):
        class RecordingSink:
            def __init__(self):
                self.appended = []

            def append(self, run, leading):
                self.appended.append((run.text, leading))

        sink = RecordingSink()
        phrase = MarkupEngine().render_phrase(Style(), "a<b>b</b>c")

        assert append_phrase(sink, phrase) == pytest.approx(15.4)
        assert [text for text, _ in sink.appended] == ["a", "b", "c"]
        assert {leading for _, leading in sink.appended} == {phrase.leading}

    def test_append_phrase_default_leading(self):
        sink = MagicMock()
        phrase = Phrase(runs=[StyledRun(text="x", style=Style())])
        assert append_phrase(sink, phrase) == DEFAULT_LEADING
        sink.append.assert_called_once_with(phrase.runs[0], DEFAULT_LEADING)

    def test_split_lines(self):
        style = Style()
        lines = split_lines([
            StyledRun(text="a\nb", style=style),
            StyledRun(text="c", style=style.evolve(bold=True)),
        ])
        assert [[r.text for r in line] for line in lines] == [["a"], ["b", "c"]]


class TestPdfPhraseWriter:
    """Test run placement on pages."""

    def test_text_is_written(self):
        phrase = MarkupEngine().render_phrase(Style(), "Hello <b>bold</b> world")
        with PdfPhraseWriter() as writer:
            writer.write_phrase(phrase)
            doc = _open(writer.to_bytes())

        text = doc[0].get_text()
        for word in ["Hello", "bold", "world"]:
            assert word in text

        fonts = {span["font"] for span in _spans(doc[0]) if span["text"].strip()}
        assert any("Bold" in font for font in fonts)
        assert any("Bold" not in font for font in fonts)

    def test_page_size(self):
        with PdfPhraseWriter() as writer:
            doc = _open(writer.to_bytes())
        assert doc.page_count == 1
        assert doc[0].rect.width == pytest.approx(A4_WIDTH)
        assert doc[0].rect.height == pytest.approx(A4_HEIGHT)

    def test_long_text_wraps(self):
        words = " ".join(f"word{i}" for i in range(120))
        phrase = Phrase(runs=[StyledRun(text=words, style=Style())], leading=15.4)
        with PdfPhraseWriter() as writer:
            writer.write_phrase(phrase)
            doc = _open(writer.to_bytes())

        baselines = {round(span["origin"][1]) for span in _spans(doc[0]) if span["text"].strip()}
        assert len(baselines) > 1
        assert "word119" in doc[0].get_text()

    def test_overflow_adds_pages(self):
        phrase = Phrase(runs=[StyledRun(text="line", style=Style())], leading=15.4)
        with PdfPhraseWriter() as writer:
            for _ in range(120):
                writer.write_phrase(phrase)
            assert writer.page_count > 1

    def test_underline_is_drawn(self):
        phrase = Phrase(runs=[StyledRun(text="under", style=Style(underline=True))], leading=15.4)
        with PdfPhraseWriter() as writer:
            writer.write_phrase(phrase)
            doc = _open(writer.to_bytes())
        assert len(doc[0].get_drawings()) >= 1

    def test_code_block(self):
        block = CodeBlock()
        block.json('{"a": 1}')
        with PdfPhraseWriter() as writer:
            writer.write_code_block(block)
            doc = _open(writer.to_bytes())

        text = doc[0].get_text()
        assert '"a"' in text
        for number in ["1", "2", "3"]:
            assert number in text
        fonts = {span["font"] for span in _spans(doc[0])}
        assert any("Courier" in font for font in fonts)

    def test_empty_code_block_skipped(self):
        with PdfPhraseWriter() as writer:
            writer.write_code_block(CodeBlock())
            assert writer.page is None

    def test_save_creates_directories(self, tmp_path):
        path = tmp_path / "nested" / "out.pdf"
        with PdfPhraseWriter() as writer:
            writer.write_phrase(MarkupEngine().render_phrase(Style(), "saved"))
            result = writer.save(path)

        assert result == path
        with fitz.open(str(path)) as doc:
            assert "saved" in doc[0].get_text()


# ═══════════════════════════════════════════════════════════════════════════════
# ENGINE TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestPhraseEngine:
    """Test the orchestrator."""

    def test_default_config(self):
        config = RenderConfig()
        assert config.default_size == 11.0
        assert config.code_font_size == 10.0
        assert config.indent_size == 2
        assert config.max_depth == 512

    def test_render_markup_uses_config_size(self):
        engine = PhraseEngine(RenderConfig(default_size=14.0, log_level="ERROR"))
        phrase = engine.render_markup("a<size medium>b")
        assert [r.style.size for r in phrase.runs] == [14.0, 14.0]
        assert phrase.leading == pytest.approx(19.6)

    def test_render_markup_with_style(self, engine):
        phrase = engine.render_markup("x", style=Style(italic=True))
        assert phrase.runs[0].style.italic is True

    def test_font_config(self):
        engine = PhraseEngine(RenderConfig(font="Times", log_level="ERROR"))
        assert engine.base_style.font.value == "times"

    def test_unknown_font_rejected(self):
        with pytest.raises(ValueError):
            PhraseEngine(RenderConfig(font="comic", log_level="ERROR"))

    def test_render_json(self, engine):
        phrase = engine.render_json('{"a": 1}')
        assert phrase.text == '{\n  "a" : 1\n}'
        assert phrase.leading == pytest.approx(13.0)

    def test_code_block_uses_config(self):
        engine = PhraseEngine(RenderConfig(code_font_size=8.0, indent_size=4, log_level="ERROR"))
        block = engine.code_block()
        block.json('{"a": 1}')
        assert block.style.size == 8.0
        assert "".join(r.text for r in block.runs) == '{\n    "a" : 1\n}'

    def test_build_pdf(self, engine, tmp_path):
        output = tmp_path / "out" / "report.pdf"
        path = engine.build_pdf(
            ["<size large><b>Report</b></size>", "Body <color red>text</color>"],
            output,
            json_documents=['{"status": "ok"}'],
        )

        assert path == output
        with fitz.open(str(path)) as doc:
            text = doc[0].get_text()
        for word in ["Report", "Body", "text", '"status"', '"ok"']:
            assert word in text

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "render.log"
        engine = PhraseEngine(RenderConfig(log_level="INFO", log_file=str(log_file)))
        engine.build_pdf(["hello"], tmp_path / "a.pdf")
        assert "Saved PDF" in log_file.read_text(encoding="utf-8")


# ═══════════════════════════════════════════════════════════════════════════════
# CLI TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestCli:
    """Test the click commands."""

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_render_json_output(self, runner):
        result = runner.invoke(cli, ["render", "<b>x</b> y", "--json-output"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["text"] == "x y"
        assert data["runs"][0]["style"]["bold"] is True
        assert data["runs"][1]["style"]["bold"] is False

    def test_render_from_file(self, runner, tmp_path):
        source = tmp_path / "in.txt"
        source.write_text("<size 20>big</size>", encoding="utf-8")
        result = runner.invoke(cli, ["render", "--file", str(source), "--json-output"])
        assert result.exit_code == 0
        assert json.loads(result.output)["runs"][0]["style"]["size"] == 20.0

    def test_render_terminal_output(self, runner):
        result = runner.invoke(cli, ["render", "plain <i>words</i>"])
        assert result.exit_code == 0
        assert "plain words" in result.output

    def test_render_requires_text(self, runner):
        result = runner.invoke(cli, ["render"])
        assert result.exit_code == 2

    def test_json_command(self, runner, tmp_path):
        source = tmp_path / "data.json"
        source.write_text('{"a": [1, 2]}', encoding="utf-8")
        result = runner.invoke(cli, ["json", str(source), "--json-output"])
        assert result.exit_code == 0
        assert json.loads(result.output)["text"] == '{\n  "a" : [ 1, 2 ]\n}'

    def test_json_command_depth_limit(self, runner, tmp_path):
        source = tmp_path / "deep.json"
        source.write_text("[[[1]]]", encoding="utf-8")
        result = runner.invoke(cli, ["json", str(source), "--max-depth", "1"])
        assert result.exit_code == 1
        assert "exceeds the limit" in result.output

    def test_tags(self, runner):
        result = runner.invoke(cli, ["tags"])
        assert result.exit_code == 0
        assert "<color>" in result.output
        assert "<size>" in result.output

    def test_pdf(self, runner, tmp_path):
        source = tmp_path / "doc.txt"
        source.write_text("<b>Title</b>\nSecond line\n", encoding="utf-8")
        data = tmp_path / "data.json"
        data.write_text('{"k": true}', encoding="utf-8")
        output = tmp_path / "doc.pdf"

        result = runner.invoke(cli, [
            "pdf", str(source),
            "-o", str(output),
            "--json", str(data),
            "--log-level", "ERROR",
        ])

        assert result.exit_code == 0
        assert "Wrote" in result.output
        with fitz.open(str(output)) as doc:
            text = doc[0].get_text()
        assert "Title" in text
        assert '"k"' in text


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
