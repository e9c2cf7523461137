"""Delimiter scanner: walks an input once and splits it at each expected delimiter.

This is a naive string matching algorithm. The input is walked left to right;
wherever the current delimiter starts, the value since the previous delimiter
is recorded for the current key and the scan moves on to the next
key/delimiter pair. Delimiters are short literals, so the naive search is cheap.

Consecutive delimiters produce empty values for the following keys unless the
key carries the ``->`` marker, in which case the repeats are swallowed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from linedissect.errors import MatchError
from linedissect.key import Key

if TYPE_CHECKING:
    from linedissect.pattern import Pattern

# Trailing padding trimmed from a final "->" key: space, \t, \n, \v, \f, \r.
PADDING_WHITESPACE = " \t\n\x0b\f\r"


@dataclass(frozen=True)
class RawMatch:
    index: int
    key: Key
    value: str


@dataclass
class _ScanState:
    """Scratch state owned by one scan call."""

    pair_index: int = 0
    value_start: int = 0
    cursor: int = 0


def scan(pattern: Pattern, text: str | None) -> list[RawMatch]:
    """Split ``text`` into one RawMatch per key of ``pattern``.

    Raises:
        MatchError: the leading delimiter is missing, a delimiter was never found,
            or not every key received a value.
    """
    if text is None or not text.startswith(pattern.leading_delimiter):
        raise MatchError(pattern.text, text)

    pairs = pattern.pairs
    last_index = len(pairs) - 1
    matches: list[RawMatch] = []
    state = _ScanState(
        value_start=len(pattern.leading_delimiter), cursor=len(pattern.leading_delimiter)
    )
    key = pairs[0].key
    delimiter = pairs[0].delimiter
    length = len(text)

    while state.cursor < length:
        if not delimiter:
            break
        if not text.startswith(delimiter, state.cursor):
            state.cursor += 1
            continue

        matches.append(RawMatch(state.pair_index, key, text[state.value_start : state.cursor]))
        state.cursor += len(delimiter)

        # consecutive delimiters, e.g. a,,,,d
        while text.startswith(delimiter, state.cursor):
            state.cursor += len(delimiter)
            if key.skip_right_padding:
                continue
            if state.pair_index == last_index:
                break
            state.pair_index += 1
            key = pairs[state.pair_index].key
            matches.append(RawMatch(state.pair_index, key, ""))

        if state.pair_index == last_index:
            break
        state.pair_index += 1
        key = pairs[state.pair_index].key
        delimiter = pairs[state.pair_index].delimiter
        state.value_start = state.cursor
        # the first character of a value never starts the next delimiter
        state.cursor += 1

    # the current key takes the rest of the input unless repeats already filled it
    if len(matches) < len(pairs):
        value = text[state.value_start :]
        if key.skip_right_padding:
            value = value.rstrip(PADDING_WHITESPACE)
        matches.append(RawMatch(state.pair_index, key, value))

    if not _fully_matched(matches, len(pairs)):
        raise MatchError(pattern.text, text)
    return matches


def _fully_matched(matches: list[RawMatch], expected: int) -> bool:
    """Check that every key has exactly one value; size alone can give false positives."""
    if len(matches) != expected:
        return False
    return {m.index for m in matches} == set(range(expected))
