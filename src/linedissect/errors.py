"""Exceptions raised while compiling patterns and dissecting input."""

from __future__ import annotations


class DissectError(Exception):
    """Base class for pattern compile and match failures."""


class PatternCompileError(DissectError):
    """Raised when a dissect pattern cannot be compiled."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Unable to parse pattern [{pattern}]: {reason}")
        self.pattern = pattern
        self.reason = reason


class MatchError(DissectError):
    """Raised when an input does not satisfy every delimiter of a pattern."""

    def __init__(self, pattern: str, text: str | None) -> None:
        super().__init__(
            f"Unable to find match for dissect pattern: {pattern} against source: {text}"
        )
        self.pattern = pattern
        self.text = text
