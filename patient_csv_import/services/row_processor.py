from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TypeVar

from ..models.config_models import ImportDefaults
from ..models.field_key import FieldKey
from ..models.import_result import RowError, RowErrorKind, RowOutcome, display_row
from ..models.records import ConsultationRecord, PatientRecord
from ..normalize.dates import parse_date_to_iso
from ..normalize.gender import normalize_gender
from ..stores.base import ConsultationStore, PatientStore, StoreError, StoreTimeoutError

"""Per-row import logic.

process_row() turns one data row into at most one patient and at most one
consultation:
1. names from last_name / first_name, or split from full_name ("Dupont Jean Paul"
   -> last "Dupont", first "Jean Paul") when last_name is empty
2. rows without any name are skipped (no record, no error)
3. patient resolved by dedup key: run cache, then store lookup, then insert
4. consultation inserted when consultation columns exist and the row has a
   reason or a consultation date

Failures never escape: they come back as RowOutcome.error. A failed patient
insert ends the row; a failed consultation insert keeps the patient.
"""

__all__ = [
    "PATIENT_INSERT_FALLBACK_MESSAGE",
    "UNKNOWN_ERROR_MESSAGE",
    "RowContext",
    "dedup_key",
    "extract_names",
    "build_patient_record",
    "build_consultation_record",
    "process_row",
]

logger = logging.getLogger(__name__)

PATIENT_INSERT_FALLBACK_MESSAGE = "Erreur d'insertion patient"
UNKNOWN_ERROR_MESSAGE = "Erreur inconnue"
CONSULTATION_PREFIX = "Consultation: "

_OPTIONAL_PATIENT_FIELDS = (
    FieldKey.EMAIL,
    FieldKey.PROFESSION,
    FieldKey.TRAUMA_HISTORY,
    FieldKey.MEDICAL_HISTORY,
    FieldKey.SURGICAL_HISTORY,
    FieldKey.FAMILY_HISTORY,
)

T = TypeVar("T")


@dataclass
class RowContext:
    """Everything process_row needs besides the row itself.

    ``patient_cache`` (dedup key -> patient id) belongs to a single import run and
    is filled as rows are processed.
    """
    practitioner_id: str
    field_to_column: dict[FieldKey, int]
    has_consultation_mapping: bool
    defaults: ImportDefaults = field(default_factory=ImportDefaults)
    retry_budget: int = 0
    patient_cache: dict[str, str] = field(default_factory=dict)

    def value(self, row: Sequence[str], key: FieldKey) -> str:
        column = self.field_to_column.get(key)
        if column is None or column >= len(row):
            return ""
        return (row[column] or "").strip()


class _RetryBudget:
    """Retries timed-out store calls while the row's budget lasts."""

    def __init__(self, budget: int, row: int) -> None:
        self.remaining = max(0, budget)
        self.row = row

    def call(self, fn: Callable[..., T], *args: object) -> T:
        while True:
            try:
                return fn(*args)
            except StoreTimeoutError as e:
                if self.remaining <= 0:
                    raise
                self.remaining -= 1
                logger.warning("row %d: store call timed out, retrying (%d left): %s", self.row, self.remaining, e)


def dedup_key(last_name: str, first_name: str, default_last_name: str = "Inconnu") -> str:
    return f"{(last_name or default_last_name).lower()}|{(first_name or '').lower()}"


def extract_names(row: Sequence[str], ctx: RowContext) -> tuple[str, str]:
    last_name = ctx.value(row, FieldKey.LAST_NAME)
    first_name = ctx.value(row, FieldKey.FIRST_NAME)
    full_name = ctx.value(row, FieldKey.FULL_NAME)
    if full_name and not last_name:
        parts = full_name.split()
        last_name = parts[0] if parts else ""
        first_name = " ".join(parts[1:])
    return last_name, first_name


def build_patient_record(row: Sequence[str], ctx: RowContext, last_name: str, first_name: str) -> PatientRecord:
    defaults = ctx.defaults
    gender_raw = ctx.value(row, FieldKey.GENDER)
    optional = {key.value: ctx.value(row, key) or None for key in _OPTIONAL_PATIENT_FIELDS}
    birth_raw = ctx.value(row, FieldKey.BIRTH_DATE)
    return PatientRecord(
        practitioner_id=ctx.practitioner_id,
        gender=normalize_gender(gender_raw) if gender_raw else defaults.gender,
        last_name=last_name or defaults.last_name,
        first_name=first_name or "",
        phone=ctx.value(row, FieldKey.PHONE) or defaults.phone,
        birth_date=parse_date_to_iso(birth_raw) if birth_raw else None,
        **optional,
    )


def build_consultation_record(row: Sequence[str], ctx: RowContext, patient_id: str) -> ConsultationRecord | None:
    """Consultation for the row, or None when the row has neither reason nor date."""
    reason = ctx.value(row, FieldKey.REASON)
    date_raw = ctx.value(row, FieldKey.CONSULTATION_DATE)
    if not reason and not date_raw:
        return None
    parsed = parse_date_to_iso(date_raw) if date_raw else None
    return ConsultationRecord(
        patient_id=patient_id,
        reason=reason or ctx.defaults.consultation_reason,
        date_time=f"{parsed}T{ctx.defaults.consultation_time}" if parsed else None,
        anamnesis=ctx.value(row, FieldKey.ANAMNESIS) or None,
        examination=ctx.value(row, FieldKey.EXAMINATION) or None,
        advice=ctx.value(row, FieldKey.ADVICE) or None,
    )


def _message(exc: Exception, fallback: str) -> str:
    return str(exc).strip() or fallback


def process_row(
    index: int,
    row: Sequence[str],
    ctx: RowContext,
    patients: PatientStore,
    consultations: ConsultationStore,
) -> RowOutcome:
    """Import one data row (``index`` is its zero-based position among data rows)."""
    row_no = display_row(index)
    last_name, first_name = extract_names(row, ctx)
    if not last_name and not first_name:
        logger.debug("row %d skipped: no name", row_no)
        return RowOutcome(index=index, skipped=True)

    retry = _RetryBudget(ctx.retry_budget, row_no)
    key = dedup_key(last_name, first_name, ctx.defaults.last_name)
    patient_id = ctx.patient_cache.get(key)
    patient_created = False

    if patient_id is None:
        try:
            patient_id = retry.call(
                patients.find_by_name, ctx.practitioner_id, last_name or ctx.defaults.last_name, first_name or ""
            )
        except StoreError as e:
            # Lookup failure only costs deduplication against earlier imports
            logger.warning("row %d: patient lookup failed, creating a new patient: %s", row_no, e)
            patient_id = None
        except Exception:
            logger.exception("row %d: unexpected error looking up patient, creating a new patient", row_no)
            patient_id = None
        if patient_id is not None:
            logger.debug("row %d: existing patient %s reused", row_no, patient_id)
            ctx.patient_cache[key] = patient_id

    if patient_id is None:
        record = build_patient_record(row, ctx, last_name, first_name)
        try:
            patient_id = retry.call(patients.insert, record)
        except StoreError as e:
            return RowOutcome(
                index=index,
                error=RowError(row_no, _message(e, PATIENT_INSERT_FALLBACK_MESSAGE), RowErrorKind.PATIENT_INSERT_FAILURE),
            )
        except Exception as e:
            logger.exception("row %d: unexpected error inserting patient", row_no)
            return RowOutcome(
                index=index,
                error=RowError(row_no, _message(e, UNKNOWN_ERROR_MESSAGE), RowErrorKind.PATIENT_INSERT_FAILURE),
            )
        if not patient_id:
            return RowOutcome(
                index=index,
                error=RowError(row_no, PATIENT_INSERT_FALLBACK_MESSAGE, RowErrorKind.PATIENT_INSERT_FAILURE),
            )
        ctx.patient_cache[key] = patient_id
        patient_created = True

    if not ctx.has_consultation_mapping:
        return RowOutcome(index=index, patient_id=patient_id, patient_created=patient_created)

    consultation = build_consultation_record(row, ctx, patient_id)
    if consultation is None:
        return RowOutcome(index=index, patient_id=patient_id, patient_created=patient_created)

    error: RowError | None = None
    try:
        retry.call(consultations.insert, consultation)
    except StoreError as e:
        error = RowError(
            row_no, CONSULTATION_PREFIX + _message(e, UNKNOWN_ERROR_MESSAGE), RowErrorKind.CONSULTATION_INSERT_FAILURE
        )
    except Exception as e:
        logger.exception("row %d: unexpected error inserting consultation", row_no)
        error = RowError(
            row_no, CONSULTATION_PREFIX + _message(e, UNKNOWN_ERROR_MESSAGE), RowErrorKind.CONSULTATION_INSERT_FAILURE
        )
    return RowOutcome(
        index=index,
        patient_id=patient_id,
        patient_created=patient_created,
        consultation_created=error is None,
        error=error,
    )
