"""Turn raw scanner matches into the final field mapping.

- Append groups: every match sharing a name with at least one ``+`` key is
  joined with the append separator, ordered by explicit ``/N`` position and
  then by scan order.
- Associations: the value of ``?name`` becomes the output field name and the
  value of ``&name`` its value.
- Everything else maps ``key.name -> value``.

Associations are emitted first, followed by plain and append fields in order
of first appearance. Later writes win when two fields resolve to the same
name, so a plain field overrides an association that resolves to its name.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from linedissect.key import APPEND_MODIFIERS, Modifier
from linedissect.scanner import RawMatch


@dataclass
class _AppendMember:
    order: int
    sequence: int
    value: str


@dataclass
class _Reference:
    name: str | None = None
    value: str | None = None


def merge_matches(
    matches: Iterable[RawMatch], append_separator: str = "", needs_post_processing: bool = True
) -> dict[str, str]:
    """Build the output mapping from raw matches; skip keys are dropped here."""
    kept = [m for m in matches if not m.key.is_skip]
    if not needs_post_processing:
        return {m.key.name: m.value for m in kept}

    append_names = {m.key.name for m in kept if m.key.modifier in APPEND_MODIFIERS}
    results: dict[str, str] = {}
    groups: dict[str, list[_AppendMember]] = {}
    references: dict[str, _Reference] = {}

    for sequence, match in enumerate(kept):
        key = match.key
        if key.modifier is Modifier.FIELD_NAME:
            references.setdefault(key.name, _Reference()).name = match.value
        elif key.modifier is Modifier.FIELD_VALUE:
            references.setdefault(key.name, _Reference()).value = match.value
        elif key.modifier in (Modifier.NONE, Modifier.APPEND, Modifier.APPEND_WITH_ORDER):
            if key.name in append_names:
                # reserve the output slot at first appearance, filled once the group is joined
                results.setdefault(key.name, "")
                groups.setdefault(key.name, []).append(
                    _AppendMember(key.order, sequence, match.value)
                )
            else:
                results[key.name] = match.value
        else:
            raise ValueError(f"Unsupported key modifier: {key.modifier}")

    for name, members in groups.items():
        ordered = sorted(members, key=lambda member: (member.order, member.sequence))
        results[name] = append_separator.join(member.value for member in ordered)

    merged: dict[str, str] = {}
    for reference in references.values():
        # compile-time validation guarantees both halves are present
        if reference.name is None or reference.value is None:
            raise ValueError("Incomplete key/reference association")
        merged[reference.name] = reference.value
    merged.update(results)
    return merged
