from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

from .field_key import FieldKey

"""ColumnMapping model: CSV column index -> FieldKey.

Invariant: every non-IGNORE FieldKey is held by at most one column. Any number
of columns may be IGNORE. Instances are immutable; edits return a new mapping.
"""

__all__ = [
    "ColumnMapping",
]


class ColumnMapping(Mapping[int, FieldKey]):
    """Immutable column index -> FieldKey mapping enforcing one-field-per-column."""

    def __init__(self, entries: Mapping[int, FieldKey] | None = None) -> None:
        self._entries: dict[int, FieldKey] = {}
        claimed: set[FieldKey] = set()
        for column, field in sorted((entries or {}).items()):
            if column < 0:
                raise ValueError(f"column index must be >= 0: {column}")
            if field is not FieldKey.IGNORE:
                if field in claimed:
                    raise ValueError(f"field {field.value} mapped to more than one column")
                claimed.add(field)
            self._entries[column] = field

    def __getitem__(self, column: int) -> FieldKey:
        return self._entries[column]

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ColumnMapping):
            return self._entries == other._entries
        if isinstance(other, Mapping):
            return self._entries == dict(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._entries.items()))

    def __repr__(self) -> str:
        body = ", ".join(f"{c}: {f.value}" for c, f in self._entries.items())
        return f"ColumnMapping({{{body}}})"

    def with_field(self, column: int, field: FieldKey) -> ColumnMapping:
        """Return a copy where ``column`` holds ``field``.

        A non-IGNORE field is first removed from whichever column held it, so the
        one-field-per-column invariant survives manual edits.
        """
        entries = dict(self._entries)
        if field is not FieldKey.IGNORE:
            for other, held in self._entries.items():
                if held is field:
                    del entries[other]
        entries[column] = field
        return ColumnMapping(entries)

    def field_to_column(self) -> dict[FieldKey, int]:
        """Reverse map (IGNORE excluded)."""
        return {f: c for c, f in self._entries.items() if f is not FieldKey.IGNORE}

    def mapped_fields(self) -> set[FieldKey]:
        return {f for f in self._entries.values() if f is not FieldKey.IGNORE}

    def has_any(self, fields: Iterable[FieldKey]) -> bool:
        mapped = self.mapped_fields()
        return any(f in mapped for f in fields)
