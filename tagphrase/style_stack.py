"""
Style Stack
===========
Per-render state for the markup engine.

A StyleStack keeps one LIFO stack of prior values per attribute (color,
size, or anything a custom handler chooses) so nested open/close tags
restore what was active before them. A TagContext bundles the current
style, the line leading and the stacks; tag handlers mutate it.

Both objects live for exactly one render call and are never shared.
"""

from __future__ import annotations

from typing import Any, Optional

from .models import Style
from .sizes import DEFAULT_SIZE, calculate_leading


class StyleStack:
    """Mapping from attribute name to a stack of previously active values."""

    def __init__(self):
        self._stacks: dict[str, list[Any]] = {}

    def push(self, attribute: str, value: Any) -> None:
        self._stacks.setdefault(attribute, []).append(value)

    def pop(self, attribute: str) -> tuple[bool, Any]:
        """
        Pop the most recent value for an attribute.

        Returns:
            (found, value). ``found`` is False when the stack is empty,
            which callers treat as an unmatched close.
        """
        stack = self._stacks.get(attribute)
        if not stack:
            return False, None
        return True, stack.pop()

    def peek(self, attribute: str, default: Any = None) -> Any:
        stack = self._stacks.get(attribute)
        return stack[-1] if stack else default

    def depth(self, attribute: str) -> int:
        return len(self._stacks.get(attribute, ()))


class TagContext:
    """
    Mutable state threaded through tag handlers during one render.

    Attributes:
        style: Style applied to the next text run.
        leading: Line leading; only ever grows within one render.
        default_size: Document default size, the base for absolute size keywords.
        stacks: Nesting stacks for push/pop style attributes.
        attributes: Free-form storage for custom handlers.
    """

    def __init__(
        self,
        style: Style,
        leading: Optional[float] = None,
        default_size: float = DEFAULT_SIZE,
    ):
        self.style = style
        self.leading = leading if leading is not None else calculate_leading(style.size)
        self.default_size = default_size
        self.stacks = StyleStack()
        self.attributes: dict[str, Any] = {}

    def set_flag(self, name: str, enabled: bool) -> None:
        """Set or clear one of the bold/italic/underline/strikethrough bits."""
        self.style = self.style.evolve(**{name: enabled})

    def push_attribute(self, name: str, value: Any) -> None:
        """Remember the current value of a style attribute and replace it."""
        self.stacks.push(name, getattr(self.style, name))
        self.style = self.style.evolve(**{name: value})

    def keep_attribute(self, name: str) -> None:
        """Open a nesting level without changing the attribute."""
        self.stacks.push(name, getattr(self.style, name))

    def restore_attribute(self, name: str) -> bool:
        """
        Restore the value active before the matching open tag.
        An unmatched close leaves the current value unchanged.
        """
        found, value = self.stacks.pop(name)
        if found:
            self.style = self.style.evolve(**{name: value})
        return found

    def set_size(self, size: float) -> None:
        """Push a new font size and grow the leading to fit it."""
        self.push_attribute("size", size)
        self.leading = max(self.leading, calculate_leading(size))

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def set_attribute(self, name: str, value: Any) -> None:
        self.attributes[name] = value
