from __future__ import annotations

"""Gender normalization: free text -> 'M' | 'F'.

Unrecognised or empty input defaults to 'M'; this is a defaulting policy, never
an error.
"""

__all__ = [
    "FEMALE_TOKENS",
    "normalize_gender",
]

FEMALE_TOKENS = frozenset({"F", "FEMME", "FEMININ", "FEMININE", "FÉMININ", "W"})


def normalize_gender(raw: str | None) -> str:
    value = (raw or "").strip().upper()
    return "F" if value in FEMALE_TOKENS else "M"
