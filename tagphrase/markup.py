"""
Markup Engine
=============
Turns strings with bracketed pseudo-tags into styled text runs.

    engine = MarkupEngine()
    runs = engine.render(Style(), "Plain <b>bold <color red>red</color></b>")

Processing is a single left-to-right pass:
    1. Split the text around every ``<...>`` or ``</...>`` span whose body
       is at most 64 characters.
    2. Literal text becomes a run in the current style.
    3. A candidate tag is offered to the handlers registered for its name,
       in registration order, until one handles it.
    4. Tags nobody handles are kept verbatim as literal text.

Malformed markup never raises. Unbalanced tags are not repaired: a
missing close leaves its style in effect until the end of the string and
an unmatched close is a no-op.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from .models import Phrase, Style, StyledRun
from .registry import HandlerTable, TagHandlerRegistry, get_registry
from .sizes import DEFAULT_SIZE
from .style_stack import TagContext

logger = logging.getLogger(__name__)

MAX_TAG_LENGTH = 64

# Capturing group keeps the tags in re.split output at odd indices.
# The '/' of a closing tag does not count toward the length limit.
TAG_SPLIT_PATTERN = re.compile(r"(</?[^<>\n]{1,%d}>)" % MAX_TAG_LENGTH)

TAG_NAME_PATTERN = re.compile(r"^</?\s*([^\s/>]+)")


def split_markup(text: str) -> list[tuple[str, bool]]:
    """
    Split text into (token, is_candidate_tag) pairs.
    Concatenating the tokens reproduces the input exactly.
    """
    parts = TAG_SPLIT_PATTERN.split(text)
    return [
        (part, index % 2 == 1)
        for index, part in enumerate(parts)
        if part
    ]


def tag_name(token: str) -> Optional[str]:
    """Lower-cased name of a candidate tag, e.g. ``"color"`` for ``"<color red>"``."""
    match = TAG_NAME_PATTERN.match(token)
    return match.group(1).lower() if match else None


class MarkupEngine:
    """
    Renders markup strings to styled runs.

    Reentrant: all mutable state lives in a TagContext created per call.
    """

    def __init__(
        self,
        registry: Optional[TagHandlerRegistry] = None,
        default_size: float = DEFAULT_SIZE,
    ):
        self.registry = registry or get_registry()
        self.default_size = default_size

    def render(self, base_style: Style, text: str) -> list[StyledRun]:
        """Render markup to an ordered list of runs."""
        return self.render_phrase(base_style, text).runs

    def render_phrase(
        self,
        base_style: Style,
        text: str,
        leading: Optional[float] = None,
    ) -> Phrase:
        """
        Render markup to a Phrase: the runs plus the leading they need.

        Args:
            base_style: Style in effect before the first tag.
            text: Markup string.
            leading: Starting leading; defaults to the base size's leading.
        """
        context = TagContext(base_style, leading=leading, default_size=self.default_size)

        if not text:
            return Phrase(runs=[StyledRun(text="", style=base_style)], leading=context.leading)

        handlers = self.registry.snapshot()
        runs: list[StyledRun] = []

        for token, is_tag in split_markup(text):
            if is_tag and self._apply_tag(token, context, handlers):
                continue
            runs.append(StyledRun(text=token, style=context.style))

        return Phrase(runs=runs, leading=context.leading)

    def _apply_tag(
        self,
        token: str,
        context: TagContext,
        handlers: HandlerTable,
    ) -> bool:
        """Offer a candidate tag to its handlers; True if one consumed it."""
        name = tag_name(token)
        if name is None:
            return False

        for handler in handlers.get(name, ()):
            try:
                if handler(token, context):
                    return True
            except Exception as e:
                logger.warning(f"Tag handler for <{name}> failed on {token!r}: {e}")

        logger.debug(f"No handler consumed {token!r}, keeping it as text")
        return False
