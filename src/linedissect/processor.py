"""Apply a dissect pattern to one field of a structured record.

The processor reads the string at ``field`` (dotted names address nested
mappings), dissects it and writes every extracted field back into the same
record. A failed match raises and leaves the record untouched.
"""

from __future__ import annotations

import json
import logging
from collections.abc import MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from linedissect.pattern import Pattern, cached_compile

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "."


@dataclass
class DissectProcessor:
    field: str
    pattern: str
    append_separator: str = ""
    ignore_missing: bool = False
    tag: str | None = None

    def __post_init__(self) -> None:
        # compile eagerly so a bad pattern fails at configuration time
        cached_compile(self.pattern, self.append_separator)

    @property
    def compiled(self) -> Pattern:
        return cached_compile(self.pattern, self.append_separator)

    @staticmethod
    def from_mapping(payload: dict[str, Any]) -> DissectProcessor:
        for required in ("field", "pattern"):
            if not payload.get(required):
                raise ValueError(f"[{required}] required property is missing")
        return DissectProcessor(
            field=str(payload["field"]),
            pattern=str(payload["pattern"]),
            append_separator=str(payload.get("append_separator") or ""),
            ignore_missing=_read_bool(payload, "ignore_missing"),
            tag=payload.get("tag"),
        )

    def execute(self, record: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
        """Dissect ``record[field]`` into ``record``; returns the same record."""
        value = get_field(record, self.field)
        if value is None:
            if self.ignore_missing:
                logger.debug("Field %s missing; skipped by processor %s", self.field, self.tag)
                return record
            raise ValueError(f"field [{self.field}] is null, cannot process it.")
        if not isinstance(value, str):
            raise ValueError(
                f"field [{self.field}] of type [{type(value).__name__}] cannot be cast to [str]"
            )

        for name, extracted in self.compiled.parse(value).items():
            set_field(record, name, extracted)
        return record


def _read_bool(payload: dict[str, Any], name: str, default: bool = False) -> bool:
    value = payload.get(name)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"[{name}] property isn't a boolean, but of type [{type(value).__name__}]")
    return value


def get_field(record: MutableMapping[str, Any], path: str) -> Any:
    """Read a dotted path, returning None when any segment is missing."""
    if path in record:
        return record[path]
    current: Any = record
    for segment in path.split(PATH_SEPARATOR):
        if not isinstance(current, MutableMapping) or segment not in current:
            return None
        current = current[segment]
    return current


def set_field(record: MutableMapping[str, Any], path: str, value: Any) -> None:
    """Write a dotted path, creating intermediate dicts as needed."""
    segments = path.split(PATH_SEPARATOR)
    current = record
    for segment in segments[:-1]:
        child = current.get(segment)
        if not isinstance(child, MutableMapping):
            child = {}
            current[segment] = child
        current = child
    current[segments[-1]] = value


def load_processor(path: Path) -> DissectProcessor:
    """Load a processor definition from YAML or JSON."""
    if path.suffix.lower() in {".yml", ".yaml"}:
        payload = yaml.safe_load(path.read_text())
    else:
        payload = json.loads(path.read_text())
    if not isinstance(payload, dict):
        raise ValueError(f"Processor config must be a mapping: {path}")
    return DissectProcessor.from_mapping(payload)


def sample_processor() -> dict[str, Any]:
    return {
        "tag": "syslog",
        "field": "message",
        "pattern": "%{timestamp} %{+timestamp} %{+timestamp} %{logsource} "
        "%{program}[%{pid}]: %{message}",
        "append_separator": " ",
        "ignore_missing": False,
    }
