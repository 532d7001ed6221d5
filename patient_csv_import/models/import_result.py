from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""Import result models.

RowError / RowOutcome are the per-row result of the row processor; ImportResult is
the terminal summary of one run, assembled by the orchestrator from the outcomes.
"""

__all__ = [
    "ROW_OFFSET",
    "RowErrorKind",
    "RowError",
    "RowOutcome",
    "ImportResult",
    "display_row",
]

# Header row + 1-based counting: data row 0 is line 2 of the file
ROW_OFFSET = 2


def display_row(data_row_index: int) -> int:
    """Human row number of a zero-based data row index."""
    return data_row_index + ROW_OFFSET


class RowErrorKind(Enum):
    PATIENT_INSERT_FAILURE = "PATIENT_INSERT_FAILURE"
    CONSULTATION_INSERT_FAILURE = "CONSULTATION_INSERT_FAILURE"


@dataclass(frozen=True)
class RowError:
    """Diagnostic tied to one input row.

    Attributes:
        row: 1-based display row (data row index + 2)
        message: Store message (consultation failures are prefixed "Consultation: ")
        kind: Which insert failed
    """
    row: int
    message: str
    kind: RowErrorKind = RowErrorKind.PATIENT_INSERT_FAILURE


@dataclass(frozen=True)
class RowOutcome:
    """What happened to a single data row.

    ``error`` is set for failures; a row with a consultation failure still carries
    the patient id it resolved to.
    """
    index: int  # zero-based data row index
    skipped: bool = False
    patient_id: str | None = None
    patient_created: bool = False
    consultation_created: bool = False
    error: RowError | None = None


@dataclass(frozen=True)
class ImportResult:
    """Terminal summary of one import run."""
    total: int  # data rows in the file
    patients_imported: int = 0
    consultations_imported: int = 0
    errors: list[RowError] = field(default_factory=list)
    processed_rows: int = 0  # rows visited before completion / cancellation
    cancelled: bool = False

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @classmethod
    def from_outcomes(
        cls, total: int, outcomes: list[RowOutcome], *, cancelled: bool = False
    ) -> ImportResult:
        return cls(
            total=total,
            patients_imported=sum(1 for o in outcomes if o.patient_created),
            consultations_imported=sum(1 for o in outcomes if o.consultation_created),
            errors=[o.error for o in outcomes if o.error is not None],
            processed_rows=len(outcomes),
            cancelled=cancelled,
        )
