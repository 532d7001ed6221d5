from __future__ import annotations

import logging
import re
import unicodedata
from collections.abc import Iterable

from ..models.column_mapping import ColumnMapping
from ..models.field_key import NAME_FIELDS, FieldKey
from .aliases import COLUMN_ALIASES

"""Header -> FieldKey mapping.

auto_detect() proposes a mapping from the header row using the alias dictionary;
assign() applies a manual override; validate_mapping() is the gate checked before
an import may start.
"""

__all__ = [
    "MappingValidationError",
    "strip_diacritics",
    "normalize_header",
    "lookup_alias",
    "auto_detect",
    "assign",
    "validate_mapping",
]

logger = logging.getLogger(__name__)

_COMBINING_MARKS = re.compile("[\u0300-\u036f]")


class MappingValidationError(Exception):
    """Raised when neither last_name nor full_name is mapped to a column."""


def strip_diacritics(text: str) -> str:
    return _COMBINING_MARKS.sub("", unicodedata.normalize("NFD", text))


def normalize_header(header: str) -> tuple[str, str]:
    """Return (lowercased+trimmed, same with diacritics stripped)."""
    lowered = header.lower().strip()
    return lowered, strip_diacritics(lowered)


def lookup_alias(header: str) -> FieldKey | None:
    lowered, stripped = normalize_header(header)
    return COLUMN_ALIASES.get(lowered) or COLUMN_ALIASES.get(stripped)


def auto_detect(headers: Iterable[str]) -> ColumnMapping:
    """Map each recognised header to its FieldKey, first occurrence wins.

    Unrecognised headers are left unmapped. A header resolving to a field already
    claimed by an earlier column is skipped.
    """
    entries: dict[int, FieldKey] = {}
    used: set[FieldKey] = set()
    for index, header in enumerate(headers):
        match = lookup_alias(header)
        if match is None:
            continue
        if match in used:
            logger.debug("header %r (column %d) ignored: %s already mapped", header, index, match.value)
            continue
        entries[index] = match
        used.add(match)
    return ColumnMapping(entries)


def assign(mapping: ColumnMapping, column: int, field: FieldKey) -> ColumnMapping:
    """Manual override: map ``column`` to ``field``, clearing ``field`` from any other column."""
    return mapping.with_field(column, field)


def validate_mapping(mapping: ColumnMapping) -> None:
    if not mapping.has_any(NAME_FIELDS):
        raise MappingValidationError(
            f"a '{FieldKey.LAST_NAME.label}' or '{FieldKey.FULL_NAME.label}' column must be mapped"
        )
