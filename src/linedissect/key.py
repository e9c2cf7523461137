"""Parsing of a single ``%{...}`` placeholder into a Key.

Supported key syntax (text between ``%{`` and ``}``):
- ``name``      plain capture
- ````          empty name, consumes a slot and is dropped from the output
- ``name->``    collapse repeated delimiters to the right of the key
- ``+name``     append to other keys with the same name
- ``+name/N``   append with explicit join order N
- ``?name``     value becomes the output field name (``*name`` is an alias)
- ``&name``     value becomes the value of the matching ``?name`` field
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from linedissect.errors import PatternCompileError

RIGHT_PADDING_MARKER = "->"
FIELD_NAME_PREFIXES = ("?", "*")
FIELD_VALUE_PREFIX = "&"
APPEND_PREFIX = "+"
ORDER_SEPARATOR = "/"
ORDER_RE = re.compile(r"[0-9]+")


class Modifier(Enum):
    NONE = "none"
    APPEND = "append"
    APPEND_WITH_ORDER = "append_with_order"
    FIELD_NAME = "field_name"
    FIELD_VALUE = "field_value"


APPEND_MODIFIERS = frozenset({Modifier.APPEND, Modifier.APPEND_WITH_ORDER})
ASSOCIATE_MODIFIERS = frozenset({Modifier.FIELD_NAME, Modifier.FIELD_VALUE})
POST_PROCESSING_MODIFIERS = APPEND_MODIFIERS | ASSOCIATE_MODIFIERS


@dataclass(frozen=True)
class Key:
    name: str
    modifier: Modifier = Modifier.NONE
    append_position: int | None = None
    skip_right_padding: bool = False

    def __post_init__(self) -> None:
        ordered = self.modifier is Modifier.APPEND_WITH_ORDER
        if ordered != (self.append_position is not None):
            raise ValueError(
                f"append_position must be set only for {Modifier.APPEND_WITH_ORDER.name} keys"
            )

    @property
    def is_skip(self) -> bool:
        return not self.name

    @property
    def order(self) -> int:
        """Join position inside an append group; unordered keys sort first."""
        return self.append_position if self.append_position is not None else 0


def parse_key(text: str, pattern: str | None = None) -> Key:
    """Parse the raw placeholder text into a Key.

    ``pattern`` is only used to give compile errors some context; it defaults to
    the placeholder itself.
    """
    source = pattern if pattern is not None else f"%{{{text}}}"

    body = text
    skip_right_padding = False
    if body.endswith(RIGHT_PADDING_MARKER):
        body = body[: -len(RIGHT_PADDING_MARKER)]
        skip_right_padding = True

    if not body:
        return Key(name="", skip_right_padding=skip_right_padding)

    position: int | None = None
    prefix = body[0]
    if prefix in FIELD_NAME_PREFIXES:
        modifier = Modifier.FIELD_NAME
        name = body[1:]
    elif prefix == FIELD_VALUE_PREFIX:
        modifier = Modifier.FIELD_VALUE
        name = body[1:]
    elif prefix == APPEND_PREFIX:
        modifier = Modifier.APPEND
        name = body[1:]
        if ORDER_SEPARATOR in name:
            name, _sep, suffix = name.rpartition(ORDER_SEPARATOR)
            if not ORDER_RE.fullmatch(suffix):
                raise PatternCompileError(
                    source, f"Invalid append order '{suffix}' in key '%{{{text}}}'"
                )
            modifier = Modifier.APPEND_WITH_ORDER
            position = int(suffix)
    else:
        modifier = Modifier.NONE
        name = body

    if not name:
        raise PatternCompileError(source, f"The key name could not be determined for '%{{{text}}}'")

    return Key(
        name=name,
        modifier=modifier,
        append_position=position,
        skip_right_padding=skip_right_padding,
    )
