"""
Tag Handler Registry
====================
Process-wide, append-only registry of tag handlers keyed by tag name.

Writers take a lock and publish a new immutable mapping (copy-on-write);
readers grab the current mapping without locking. A render call takes one
snapshot up front, so a handler registered mid-render is only seen by
later renders.
"""

from __future__ import annotations

import logging
import re
import threading
from types import MappingProxyType
from typing import Callable, Mapping, Optional

from .style_stack import TagContext

logger = logging.getLogger(__name__)

TagHandler = Callable[[str, TagContext], bool]

TAG_NAME_RULE = re.compile(r"^[^\s<>/]+$")

HandlerTable = Mapping[str, tuple[TagHandler, ...]]


class TagHandlerRegistry:
    """Thread-safe registry mapping lower-cased tag names to handler chains."""

    def __init__(self):
        self._lock = threading.Lock()
        self._handlers: HandlerTable = MappingProxyType({})

    def register(self, name: str, handler: TagHandler) -> None:
        """
        Append a handler for a tag name.

        Handlers for one name are tried in registration order until one
        reports the token as handled. There is no unregister.

        Raises:
            ValueError: If the name is empty or contains whitespace, '<', '>' or '/'.
            TypeError: If the handler is not callable.
        """
        if not isinstance(name, str) or not TAG_NAME_RULE.match(name):
            raise ValueError(f"Invalid tag name: {name!r}")
        if not callable(handler):
            raise TypeError(f"Tag handler for {name!r} is not callable")

        key = name.lower()
        with self._lock:
            table = dict(self._handlers)
            table[key] = table.get(key, ()) + (handler,)
            self._handlers = MappingProxyType(table)

        logger.debug(f"Registered tag handler for <{key}>")

    def snapshot(self) -> HandlerTable:
        """Current immutable name -> handlers mapping."""
        return self._handlers

    def handlers_for(self, name: str) -> tuple[TagHandler, ...]:
        return self._handlers.get(name.lower(), ())

    def names(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._handlers


_registry: Optional[TagHandlerRegistry] = None
_registry_lock = threading.Lock()


def get_registry() -> TagHandlerRegistry:
    """Return the process-wide registry, creating it with the built-in handlers on first use."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                from .handlers import install_builtin_handlers

                registry = TagHandlerRegistry()
                install_builtin_handlers(registry)
                _registry = registry
    return _registry


def register_handler(name: str, handler: TagHandler) -> None:
    """Register a handler on the process-wide registry."""
    get_registry().register(name, handler)
