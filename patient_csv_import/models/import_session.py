from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from .column_mapping import ColumnMapping
from .field_key import FieldKey
from .import_result import ImportResult

"""ImportSession: the state of one upload-to-completion run.

State transitions: upload → mapping → importing → done
                                 ↑          │
                                 └──────────┘ (auth / practitioner failure)

The session is an immutable value; each transition returns a new session. Parsed
rows and the column mapping live only inside the session and are dropped by
``reset()``.
"""

__all__ = [
    "ImportStep",
    "ImportSession",
    "InvalidTransitionError",
]


class ImportStep(Enum):
    UPLOAD = "upload"
    MAPPING = "mapping"
    IMPORTING = "importing"
    DONE = "done"


class InvalidTransitionError(Exception):
    """Raised when a session transition is not allowed from the current step."""


_ALLOWED: dict[ImportStep, set[ImportStep]] = {
    ImportStep.UPLOAD: {ImportStep.MAPPING},
    ImportStep.MAPPING: {ImportStep.MAPPING, ImportStep.IMPORTING},
    ImportStep.IMPORTING: {ImportStep.MAPPING, ImportStep.DONE},
    ImportStep.DONE: set(),
}


@dataclass(frozen=True)
class ImportSession:
    step: ImportStep = ImportStep.UPLOAD
    file_name: str | None = None
    headers: tuple[str, ...] = ()
    rows: tuple[tuple[str, ...], ...] = ()
    mapping: ColumnMapping = field(default_factory=ColumnMapping)
    result: ImportResult | None = None

    @classmethod
    def create(cls) -> ImportSession:
        return cls()

    def reset(self) -> ImportSession:
        return ImportSession.create()

    @property
    def total_rows(self) -> int:
        return len(self.rows)

    def _move(self, target: ImportStep, **changes: object) -> ImportSession:
        if target not in _ALLOWED[self.step]:
            raise InvalidTransitionError(f"cannot go from {self.step.value} to {target.value}")
        return replace(self, step=target, **changes)  # type: ignore[arg-type]

    def loaded(
        self,
        file_name: str,
        headers: list[str] | tuple[str, ...],
        rows: list[list[str]] | tuple[tuple[str, ...], ...],
        mapping: ColumnMapping,
    ) -> ImportSession:
        return self._move(
            ImportStep.MAPPING,
            file_name=file_name,
            headers=tuple(headers),
            rows=tuple(tuple(r) for r in rows),
            mapping=mapping,
        )

    def with_mapping(self, mapping: ColumnMapping) -> ImportSession:
        return self._move(ImportStep.MAPPING, mapping=mapping)

    def with_field(self, column: int, field_key: FieldKey) -> ImportSession:
        if not 0 <= column < len(self.headers):
            raise IndexError(f"column {column} out of range (0..{len(self.headers) - 1})")
        return self.with_mapping(self.mapping.with_field(column, field_key))

    def importing(self) -> ImportSession:
        return self._move(ImportStep.IMPORTING)

    def done(self, result: ImportResult) -> ImportSession:
        return self._move(ImportStep.DONE, result=result)
