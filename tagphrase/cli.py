"""
CLI Interface
=============
Command-line interface for the tag phrase toolkit.

Usage:
    python -m tagphrase render "<b>Bold</b> and <color red>red</color>"
    python -m tagphrase json <json_path>
    python -m tagphrase pdf <text_path> -o out.pdf [--json data.json]
    python -m tagphrase tags
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import click
from rich.color import Color
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.style import Style as RichStyle
from rich.table import Table
from rich.text import Text

from . import __version__
from .colorizer import NestingTooDeepError
from .engine import PhraseEngine, RenderConfig
from .models import Phrase, Style, StyledRun
from .registry import get_registry

console = Console()

LOG_LEVELS = click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"])


def rich_style(style: Style) -> RichStyle:
    """Terminal equivalent of a run style."""
    return RichStyle(
        bold=style.bold,
        italic=style.italic,
        underline=style.underline,
        strike=style.strikethrough,
        color=Color.from_rgb(*style.color) if style.color else None,
    )


def runs_to_text(runs: list[StyledRun]) -> Text:
    text = Text()
    for run in runs:
        text.append(run.text, style=rich_style(run.style))
    return text


def _print_phrase(phrase: Phrase, json_output: bool):
    if json_output:
        print(json.dumps(phrase.model_dump(mode="json"), indent=2, ensure_ascii=False))
    else:
        console.print(runs_to_text(phrase.runs))


@click.group()
@click.version_option(version=__version__, prog_name="tagphrase")
def cli():
    """Tag Phrase — markup-aware rich text and JSON colorizing for PDFs."""
    pass


@cli.command()
@click.argument("text", required=False)
@click.option(
    "--file", "-f", "file_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Read markup from a file instead of the argument",
)
@click.option(
    "--size", "-s",
    default=11.0,
    type=float,
    help="Document default font size (points)",
)
@click.option("--log-level", default="WARNING", type=LOG_LEVELS, help="Logging level")
@click.option(
    "--json-output",
    is_flag=True,
    default=False,
    help="Output the styled runs as JSON (for programmatic use)",
)
def render(
    text: Optional[str],
    file_path: Optional[str],
    size: float,
    log_level: str,
    json_output: bool,
):
    """Render a markup string into styled runs."""

    if file_path:
        text = Path(file_path).read_text(encoding="utf-8")
    if text is None:
        raise click.UsageError("Provide TEXT or --file")

    if json_output:
        log_level = "ERROR"

    engine = PhraseEngine(RenderConfig(default_size=size, log_level=log_level))
    _print_phrase(engine.render_markup(text), json_output)


@cli.command(name="json")
@click.argument("json_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--indent", default=2, type=int, help="Spaces per nesting level")
@click.option("--max-depth", default=512, type=int, help="Deepest nesting accepted")
@click.option("--log-level", default="WARNING", type=LOG_LEVELS, help="Logging level")
@click.option(
    "--json-output",
    is_flag=True,
    default=False,
    help="Output the styled runs as JSON (for programmatic use)",
)
def json_command(
    json_path: str,
    indent: int,
    max_depth: int,
    log_level: str,
    json_output: bool,
):
    """Pretty-print a JSON file with syntax colors."""

    if json_output:
        log_level = "ERROR"

    engine = PhraseEngine(RenderConfig(
        indent_size=indent,
        max_depth=max_depth,
        log_level=log_level,
    ))
    source = Path(json_path).read_text(encoding="utf-8")

    try:
        phrase = engine.render_json(source)
    except NestingTooDeepError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)

    _print_phrase(phrase, json_output)


@cli.command()
@click.argument("text_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", default="output/tagphrase.pdf", help="Output PDF path")
@click.option(
    "--json", "json_paths",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file to append as a code block (repeatable)",
)
@click.option("--size", "-s", default=11.0, type=float, help="Document default font size")
@click.option("--margin", default=36.0, type=float, help="Page margin (points)")
@click.option("--log-level", default="INFO", type=LOG_LEVELS, help="Logging level")
@click.option("--log-file", default=None, help="Path to log file")
def pdf(
    text_path: str,
    output: str,
    json_paths: tuple[str, ...],
    size: float,
    margin: float,
    log_level: str,
    log_file: Optional[str],
):
    """Write a PDF from a markup file, one paragraph per line."""

    config = RenderConfig(
        default_size=size,
        margin=margin,
        log_level=log_level,
        log_file=log_file,
    )

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Tag Phrase v{__version__}[/]\n"
            f"[dim]Rendering: {escape(Path(text_path).name)}[/]",
            border_style="cyan",
        )
    )

    try:
        engine = PhraseEngine(config)
        paragraphs = Path(text_path).read_text(encoding="utf-8").splitlines()
        documents = [Path(p).read_text(encoding="utf-8") for p in json_paths]
        path = engine.build_pdf(paragraphs, output, json_documents=documents)
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)
    except RuntimeError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Unexpected error:[/] {e}")
        if log_level == "DEBUG":
            console.print_exception()
        sys.exit(1)

    console.print(f"[green]✓[/] Wrote {escape(str(path))}")


@cli.command()
def tags():
    """List the registered tag names."""

    registry = get_registry()

    table = Table(title="Registered Tags", show_header=True, header_style="bold cyan")
    table.add_column("Tag", style="bold")
    table.add_column("Handlers", justify="right")

    for name in registry.names():
        table.add_row(f"<{name}>", str(len(registry.handlers_for(name))))

    console.print(table)
