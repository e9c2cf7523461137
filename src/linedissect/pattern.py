"""Dissect pattern compiler.

A dissect pattern is a set of keys and literal delimiters. ``%{a} %{b},%{c}``
has three keys (a, b, c) and two delimiters (space, comma) and matches
``foo bar,baz`` as ``a=foo, b=bar, c=baz``. Matching is all or nothing: the
same pattern does not match ``foo bar baz`` because the comma is never found.

Compile once with :func:`compile_pattern` and call :meth:`Pattern.parse` per
line. A compiled Pattern is immutable and can be shared across threads.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from dataclasses import dataclass
from functools import lru_cache

from linedissect.errors import PatternCompileError
from linedissect.key import (
    ASSOCIATE_MODIFIERS,
    POST_PROCESSING_MODIFIERS,
    Key,
    Modifier,
    parse_key,
)
from linedissect.postprocess import merge_matches
from linedissect.scanner import scan

logger = logging.getLogger(__name__)

KEY_OPEN = "%{"
KEY_DELIMITER_RE = re.compile(r"%\{([^}]*)\}(.*?)(?=%\{|\Z)", re.DOTALL)
CACHE_SIZE = 256


@dataclass(frozen=True)
class KeyDelimiter:
    key: Key
    delimiter: str


@dataclass(frozen=True)
class Pattern:
    text: str
    leading_delimiter: str
    pairs: tuple[KeyDelimiter, ...]
    append_separator: str = ""
    modifiers: frozenset[Modifier] = frozenset()

    @property
    def keys(self) -> tuple[Key, ...]:
        return tuple(pair.key for pair in self.pairs)

    @property
    def needs_post_processing(self) -> bool:
        return bool(self.modifiers & POST_PROCESSING_MODIFIERS)

    @property
    def field_names(self) -> list[str]:
        """Static output names, in pattern order (association names resolve at parse time)."""
        names: list[str] = []
        for key in self.keys:
            if key.is_skip or key.modifier in ASSOCIATE_MODIFIERS or key.name in names:
                continue
            names.append(key.name)
        return names

    def parse(self, text: str) -> dict[str, str]:
        """Dissect ``text`` into named fields or raise MatchError."""
        matches = scan(self, text)
        return merge_matches(matches, self.append_separator, self.needs_post_processing)


def compile_pattern(pattern: str, append_separator: str | None = "") -> Pattern:
    """Compile a dissect pattern string.

    Raises:
        PatternCompileError: no keys were found, a placeholder is malformed, or a
            ``?name`` / ``&name`` reference is not paired exactly once.
    """
    start = pattern.find(KEY_OPEN)
    if start < 0:
        raise PatternCompileError(pattern, "Unable to find any keys or delimiters.")
    leading_delimiter = pattern[:start]

    pairs: list[KeyDelimiter] = []
    position = start
    while position < len(pattern):
        match = KEY_DELIMITER_RE.match(pattern, position)
        if match is None:
            raise PatternCompileError(
                pattern, f"Unclosed key starting at offset {position}: '{pattern[position:]}'"
            )
        key = parse_key(match.group(1), pattern)
        pairs.append(KeyDelimiter(key=key, delimiter=match.group(2)))
        position = match.end()

    modifiers = frozenset(pair.key.modifier for pair in pairs)
    if modifiers & ASSOCIATE_MODIFIERS:
        _validate_associations(pattern, pairs)

    compiled = Pattern(
        text=pattern,
        leading_delimiter=leading_delimiter,
        pairs=tuple(pairs),
        append_separator=append_separator or "",
        modifiers=modifiers,
    )
    logger.debug(
        "Compiled dissect pattern %r: %d keys, modifiers=%s",
        pattern,
        len(pairs),
        sorted(m.name for m in modifiers),
    )
    return compiled


@lru_cache(maxsize=CACHE_SIZE)
def cached_compile(pattern: str, append_separator: str = "") -> Pattern:
    """Compile with an LRU cache for hosts that see the same pattern per record."""
    return compile_pattern(pattern, append_separator)


def _validate_associations(pattern: str, pairs: list[KeyDelimiter]) -> None:
    groups: dict[str, list[Modifier]] = defaultdict(list)
    for pair in pairs:
        if pair.key.modifier in ASSOCIATE_MODIFIERS:
            groups[pair.key.name].append(pair.key.modifier)

    invalid = [
        name
        for name, members in groups.items()
        if len(members) != 2 or set(members) != ASSOCIATE_MODIFIERS
    ]
    if invalid:
        raise PatternCompileError(
            pattern,
            f"Found invalid key/reference associations: '{','.join(invalid)}' "
            "Please ensure each '?<key>' is matched with a matching '&<key>'",
        )
