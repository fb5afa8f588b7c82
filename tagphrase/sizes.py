"""
Size Arguments
==============
Parses the argument of a ``<size ...>`` tag.

Accepted forms:
    - Bare positive number: absolute point size (``<size 12.5>``)
    - Percentage of the current size (``<size 80%>``)
    - Absolute keyword scaled off the document default size
      (``xx-small`` ... ``xxx-large``)
    - Relative keyword scaled off the current size (``smaller``, ``larger``)
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_SIZE = 11.0
LEADING_FACTOR = 1.4


class FontSize(Enum):
    """Named font sizes with their scale factor and whether they are relative."""
    XX_SMALL = ("xx-small", 3 / 5, False)
    X_SMALL = ("x-small", 3 / 4, False)
    SMALL = ("small", 8 / 9, False)
    MEDIUM = ("medium", 1.0, False)
    LARGE = ("large", 6 / 5, False)
    X_LARGE = ("x-large", 3 / 2, False)
    XX_LARGE = ("xx-large", 2.0, False)
    XXX_LARGE = ("xxx-large", 3.0, False)
    SMALLER = ("smaller", 0.8, True)
    LARGER = ("larger", 1.2, True)

    def __init__(self, keyword: str, scale: float, is_relative: bool):
        self.keyword = keyword
        self.scale = scale
        self.is_relative = is_relative

    @classmethod
    def parse(cls, text: str) -> Optional[FontSize]:
        key = text.strip().lower()
        for member in cls:
            if member.keyword == key:
                return member
        return None


ABSOLUTE_KEYWORDS = [size for size in FontSize if not size.is_relative]


def calculate_leading(size: float) -> float:
    """Line leading for a font size."""
    return size * LEADING_FACTOR


def keyword_sizes(default: float) -> dict[FontSize, float]:
    """
    Resolve every absolute keyword against a default size.

    Sizes are whole points unless rounding would make two neighbouring
    keywords equal (small defaults), in which case the exact scaled sizes
    are used. Either way each keyword is strictly larger than the one
    before it.
    """
    exact = [default * keyword.scale for keyword in ABSOLUTE_KEYWORDS]
    rounded = [float(round(size)) for size in exact]
    if rounded[0] > 0 and all(a < b for a, b in zip(rounded, rounded[1:])):
        return dict(zip(ABSOLUTE_KEYWORDS, rounded))
    return dict(zip(ABSOLUTE_KEYWORDS, exact))


def parse_size(
    argument: str,
    current: float,
    default: float = DEFAULT_SIZE,
) -> Optional[float]:
    """
    Resolve a size tag argument against the current and default sizes.

    Args:
        argument: Text after the tag name, e.g. ``"14"``, ``"80%"``, ``"large"``.
        current: Size in effect where the tag appears.
        default: Document default size, the base for absolute keywords.

    Returns:
        The new positive size, or None if the argument is invalid.
    """
    text = argument.strip()
    if not text:
        return None

    keyword = FontSize.parse(text)
    if keyword is not None:
        if not keyword.is_relative:
            return keyword_sizes(default)[keyword] if default > 0 else None
        resolved = float(round(current * keyword.scale))
        return resolved if resolved > 0 else None

    is_percent = text.endswith("%")
    number_text = text[:-1] if is_percent else text
    try:
        value = float(number_text)
    except ValueError:
        logger.debug(f"Unrecognized size argument: {argument!r}")
        return None

    if not value > 0 or value == float("inf"):
        return None

    if is_percent:
        resolved = float(round(current * (value / 100)))
        return resolved if resolved > 0 else None
    return value
