"""
Built-in Tag Handlers
=====================
Handlers installed on every new registry.

Supported tags (names are case-insensitive):
    - ``<b>``, ``<i>``, ``<u>``, ``<s>`` and the long forms ``<bold>``,
      ``<italic>``, ``<underline>``, ``<strikethrough>``: set the style bit
      on open, clear it on close
    - ``<color X>...</color>``: fill color from a hex code, ``rgb()`` or a
      web color name; the close restores the previous color
    - ``<size X>...</size>``: font size as a number, a percentage or a
      keyword; the close restores the previous size

All of these can be combined, e.g. ``<b><i>Bold italic</i></b>``.
"""

from __future__ import annotations

import logging

from .colors import parse_color
from .registry import TagHandler, TagHandlerRegistry
from .sizes import parse_size
from .style_stack import TagContext

logger = logging.getLogger(__name__)

# Tag name -> Style flag it toggles
FLAG_TAGS = {
    "b": "bold",
    "bold": "bold",
    "i": "italic",
    "italic": "italic",
    "u": "underline",
    "underline": "underline",
    "s": "strikethrough",
    "strikethrough": "strikethrough",
}


def flag_handler(tag: str, flag: str) -> TagHandler:
    """Build a handler that sets ``flag`` on ``<tag>`` and clears it on ``</tag>``."""
    open_token = f"<{tag}>"
    close_token = f"</{tag}>"

    def handle(token: str, context: TagContext) -> bool:
        lowered = token.lower()
        if lowered == open_token:
            context.set_flag(flag, True)
            return True
        if lowered == close_token:
            context.set_flag(flag, False)
            return True
        return False

    return handle


def _open_argument(token: str, tag: str) -> str:
    """Text between the tag name and the closing bracket of an open tag."""
    return token[len(tag) + 1:-1].strip()


def handle_color(token: str, context: TagContext) -> bool:
    lowered = token.lower()
    if lowered == "</color>":
        context.restore_attribute("color")
        return True
    if not lowered.startswith("<color"):
        return False

    argument = _open_argument(token, "color")
    color = parse_color(argument) if argument else None
    if color is None:
        logger.debug(f"Ignoring color tag with invalid argument: {token!r}")
        context.keep_attribute("color")
    else:
        context.push_attribute("color", color)
    return True


def handle_size(token: str, context: TagContext) -> bool:
    lowered = token.lower()
    if lowered == "</size>":
        context.restore_attribute("size")
        return True
    if not lowered.startswith("<size"):
        return False

    argument = _open_argument(token, "size")
    size = parse_size(argument, context.style.size, context.default_size) if argument else None
    if size is None:
        logger.debug(f"Ignoring size tag with invalid argument: {token!r}")
        context.keep_attribute("size")
    else:
        context.set_size(size)
    return True


def install_builtin_handlers(registry: TagHandlerRegistry) -> None:
    """Register the style, color and size handlers on a registry."""
    for tag, flag in FLAG_TAGS.items():
        registry.register(tag, flag_handler(tag, flag))
    registry.register("color", handle_color)
    registry.register("size", handle_size)
