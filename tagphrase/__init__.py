"""
Tag Phrase Toolkit
==================
Markup-aware rich-text engine for PDF document composition.

Architecture:
    - Markup Engine: Splits bracketed pseudo-tags out of plain strings and
      turns them into styled text runs through a registry of tag handlers
    - Style Stack: Per-render LIFO stacks for nested color and size tags
    - JSON Colorizer: Streams structured-data tokens into an indented,
      colorized pretty-print without building a tree
    - Code Block: Line-numbered code content built from raw, markup or JSON text
    - PDF Writer: Places styled runs on PyMuPDF pages

Version: 1.0.0
"""

__version__ = "1.0.0"
