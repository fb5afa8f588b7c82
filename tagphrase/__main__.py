"""
Module entry point for: python -m tagphrase

Allows running the toolkit directly as a module:
    python -m tagphrase render "<b>Bold</b> text"
    python -m tagphrase json data.json
    python -m tagphrase pdf notes.txt -o notes.pdf
"""

from .cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
