from __future__ import annotations

import uuid
from typing import Any

from ..models.records import ConsultationRecord, PatientRecord
from .base import AuthError, PractitionerResolutionError

"""In-memory stores.

Used by the CLI ``--dry-run`` mode (nothing is persisted) and by the tests. Rows are
kept as plain dicts with a generated ``id`` so they can be inspected afterwards.
"""

__all__ = [
    "MemoryPatientStore",
    "MemoryConsultationStore",
    "StaticPractitionerResolver",
]


def _new_id() -> str:
    return str(uuid.uuid4())


class MemoryPatientStore:
    def __init__(self, existing: list[dict[str, Any]] | None = None) -> None:
        self.rows: list[dict[str, Any]] = [dict(r) for r in (existing or [])]

    def find_by_name(self, practitioner_id: str, last_name: str, first_name: str) -> str | None:
        last, first = last_name.lower(), first_name.lower()
        for row in self.rows:
            if (
                row.get("practitioner_id") == practitioner_id
                and str(row.get("last_name", "")).lower() == last
                and str(row.get("first_name", "")).lower() == first
            ):
                return row["id"]
        return None

    def insert(self, record: PatientRecord) -> str:
        row = record.to_row()
        row["id"] = _new_id()
        self.rows.append(row)
        return row["id"]


class MemoryConsultationStore:
    def __init__(self) -> None:
        self.rows: list[dict[str, Any]] = []

    def insert(self, record: ConsultationRecord) -> str:
        row = record.to_row()
        row["id"] = _new_id()
        self.rows.append(row)
        return row["id"]

    def for_patient(self, patient_id: str) -> list[dict[str, Any]]:
        return [r for r in self.rows if r["patient_id"] == patient_id]


class StaticPractitionerResolver:
    """Resolves users through a fixed user id -> practitioner id table."""

    def __init__(self, practitioners: dict[str, str]) -> None:
        self.practitioners = dict(practitioners)

    def resolve_practitioner_id(self, current_user: str | None) -> str:
        if not current_user:
            raise AuthError("no authenticated user")
        try:
            return self.practitioners[current_user]
        except KeyError:
            raise PractitionerResolutionError(f"no practitioner profile for user {current_user}") from None
