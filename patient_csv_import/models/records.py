from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

"""Patient / consultation records handed to the external stores.

Both records are created once per import row and are never touched again by the
import pipeline; the stores own them after insertion. Optional attributes stay
None when the source cell was empty (or, for dates, unparseable) and are then
left out of the inserted row entirely.
"""

__all__ = [
    "PatientRecord",
    "ConsultationRecord",
]


def _set_columns(record: Any) -> dict[str, Any]:
    return {f.name: getattr(record, f.name) for f in fields(record) if getattr(record, f.name) is not None}


@dataclass(frozen=True)
class PatientRecord:
    """Patient row to insert (``patients`` table)."""
    practitioner_id: str
    gender: str  # 'M' | 'F'
    last_name: str
    first_name: str
    phone: str
    birth_date: str | None = None  # ISO YYYY-MM-DD
    email: str | None = None
    profession: str | None = None
    trauma_history: str | None = None
    medical_history: str | None = None
    surgical_history: str | None = None
    family_history: str | None = None

    def to_row(self) -> dict[str, Any]:
        """Column -> value for every attribute that is set."""
        return _set_columns(self)


@dataclass(frozen=True)
class ConsultationRecord:
    """Consultation row to insert (``consultations`` table)."""
    patient_id: str
    reason: str
    date_time: str | None = None  # ISO YYYY-MM-DDTHH:MM:SS
    anamnesis: str | None = None
    examination: str | None = None
    advice: str | None = None

    def to_row(self) -> dict[str, Any]:
        return _set_columns(self)
