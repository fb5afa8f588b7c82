"""
Data Models
===========
Pydantic models for styled text runs and structured-data tokens.
All models are serializable to JSON for the CLI and downstream renderers.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)


RGB = tuple[int, int, int]


# ─── Enums ────────────────────────────────────────────────────────────────────


class FontFamily(str, Enum):
    """Base font families understood by the PDF writer."""
    HELVETICA = "helvetica"
    COURIER = "courier"
    TIMES = "times"


class TokenKind(str, Enum):
    """Structural events of a JSON-like token stream."""
    START_OBJECT = "start_object"
    END_OBJECT = "end_object"
    START_ARRAY = "start_array"
    END_ARRAY = "end_array"
    FIELD_NAME = "field_name"
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    NULL = "null"

    @property
    def is_scalar(self) -> bool:
        return self in _SCALAR_KINDS

    @property
    def is_struct_end(self) -> bool:
        return self in (TokenKind.END_OBJECT, TokenKind.END_ARRAY)


_SCALAR_KINDS = frozenset({
    TokenKind.STRING,
    TokenKind.INT,
    TokenKind.FLOAT,
    TokenKind.BOOL,
    TokenKind.NULL,
})


class ClosedBy(str, Enum):
    """
    Which structural event ended one level of the colorizer's descent.

    An array level that closes right after an object or array element
    reports OBJECT, telling the parent to close the array on its own line.
    """
    OBJECT = "object"
    ARRAY = "array"
    END_OF_INPUT = "end_of_input"


# ─── Style Models ─────────────────────────────────────────────────────────────


class Style(BaseModel):
    """Immutable snapshot of the attributes applied to a run of text."""
    model_config = ConfigDict(frozen=True)

    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    size: float = Field(default=11.0, gt=0)
    color: Optional[RGB] = None
    font: FontFamily = FontFamily.HELVETICA

    @field_validator("color")
    @classmethod
    def _check_channels(cls, value: Optional[RGB]) -> Optional[RGB]:
        if value is not None and any(c < 0 or c > 255 for c in value):
            raise ValueError(f"Color channels must be within 0-255: {value}")
        return value

    def evolve(self, **changes) -> Style:
        """Return a copy of this style with the given attributes replaced."""
        return self.model_copy(update=changes)


class StyledRun(BaseModel):
    """A contiguous span of text sharing one resolved style."""
    model_config = ConfigDict(frozen=True)

    text: str
    style: Style


class Phrase(BaseModel):
    """
    An ordered run sequence plus the line leading it needs.
    Run order is reading order.
    """
    runs: list[StyledRun] = Field(default_factory=list)
    leading: float = Field(default=0.0, ge=0)

    @computed_field
    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)

    def __len__(self) -> int:
        return len(self.runs)


# ─── Token Model ──────────────────────────────────────────────────────────────


class Token(BaseModel):
    """A single structural event delivered by a token source."""
    model_config = ConfigDict(frozen=True)

    kind: TokenKind
    value: Union[str, bool, int, float, None] = None

    @model_validator(mode="after")
    def _check_value(self) -> Token:
        """Scalar and field-name tokens carry a value of their kind; the rest carry none."""
        kind, value = self.kind, self.value
        if kind in (TokenKind.STRING, TokenKind.FIELD_NAME):
            valid = isinstance(value, str)
        elif kind == TokenKind.INT:
            valid = isinstance(value, int) and not isinstance(value, bool)
        elif kind == TokenKind.FLOAT:
            valid = isinstance(value, (int, float)) and not isinstance(value, bool)
        elif kind == TokenKind.BOOL:
            valid = isinstance(value, bool)
        else:
            valid = value is None
        if not valid:
            raise ValueError(f"Invalid value {value!r} for a {kind.value} token")
        return self

    @classmethod
    def start_object(cls) -> Token:
        return cls(kind=TokenKind.START_OBJECT)

    @classmethod
    def end_object(cls) -> Token:
        return cls(kind=TokenKind.END_OBJECT)

    @classmethod
    def start_array(cls) -> Token:
        return cls(kind=TokenKind.START_ARRAY)

    @classmethod
    def end_array(cls) -> Token:
        return cls(kind=TokenKind.END_ARRAY)

    @classmethod
    def field(cls, name: str) -> Token:
        return cls(kind=TokenKind.FIELD_NAME, value=name)

    @classmethod
    def scalar(cls, value: Union[str, bool, int, float, None]) -> Token:
        """Build the scalar token matching a Python value's type."""
        if value is None:
            return cls(kind=TokenKind.NULL)
        if isinstance(value, bool):
            return cls(kind=TokenKind.BOOL, value=value)
        if isinstance(value, int):
            return cls(kind=TokenKind.INT, value=value)
        if isinstance(value, float):
            return cls(kind=TokenKind.FLOAT, value=value)
        if isinstance(value, str):
            return cls(kind=TokenKind.STRING, value=value)
        raise TypeError(f"Unsupported scalar type: {type(value).__name__}")
