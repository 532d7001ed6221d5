from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..models.records import ConsultationRecord, PatientRecord

"""Store interfaces consumed by the import pipeline.

The pipeline only ever reads patients by name, inserts patients / consultations
and resolves the current practitioner. Implementations: stores.memory (dry runs,
tests) and stores.postgres (psycopg2).
"""

__all__ = [
    "StoreError",
    "StoreTimeoutError",
    "AuthError",
    "PractitionerResolutionError",
    "PatientStore",
    "ConsultationStore",
    "PractitionerResolver",
]


class StoreError(Exception):
    """A store call failed. Row-scoped: the orchestrator records it and moves on."""


class StoreTimeoutError(StoreError):
    """A store call exceeded its per-call timeout. Eligible for the row retry budget."""


class AuthError(Exception):
    """No authenticated user for the import."""


class PractitionerResolutionError(Exception):
    """The authenticated user has no practitioner profile (or it could not be read)."""


@runtime_checkable
class PatientStore(Protocol):
    def find_by_name(self, practitioner_id: str, last_name: str, first_name: str) -> str | None:
        """Id of an existing patient of ``practitioner_id`` (case-insensitive exact name match)."""
        ...

    def insert(self, record: PatientRecord) -> str:
        """Insert and return the new patient id. Raises StoreError."""
        ...


@runtime_checkable
class ConsultationStore(Protocol):
    def insert(self, record: ConsultationRecord) -> str:
        """Insert and return the new consultation id. Raises StoreError."""
        ...


@runtime_checkable
class PractitionerResolver(Protocol):
    def resolve_practitioner_id(self, current_user: str | None) -> str:
        """Raises AuthError (no user) or PractitionerResolutionError (no profile)."""
        ...
