from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Protocol

from ..csvfile.reader import read_csv_file
from ..mapping.header_mapper import auto_detect, validate_mapping
from ..models.column_mapping import ColumnMapping
from ..models.config_models import ImportConfig
from ..models.field_key import CONSULTATION_FIELDS
from ..models.import_result import ImportResult, RowOutcome
from ..models.import_session import ImportSession
from ..stores.base import (
    AuthError,
    ConsultationStore,
    PatientStore,
    PractitionerResolutionError,
    PractitionerResolver,
)
from .progress import ProgressTracker
from .row_processor import RowContext, process_row

"""Service orchestration for the CSV patient import.

This module drives one import session:
1. start_session(): read + tokenize the file, auto-detect the column mapping
2. run_import(): gate on the mapping, resolve the practitioner, import the rows
3. import_rows(): process data rows one at a time, in file order

Rows are never dispatched concurrently. Each row's store calls complete before
the next row starts, so the run's dedup cache and the reported progress stay
consistent. A cancellation signal is checked before every row.
"""

__all__ = [
    "CancelSignal",
    "start_session",
    "run_import",
    "import_rows",
]

logger = logging.getLogger(__name__)


class CancelSignal(Protocol):
    """Anything with ``is_set()``, e.g. threading.Event."""

    def is_set(self) -> bool: ...


def start_session(path: Path, session: ImportSession | None = None) -> ImportSession:
    """Upload step: read ``path`` and return a session in the mapping step.

    Raises:
        FileFormatError: wrong extension, unreadable / non UTF-8 file, fewer than 2 rows
    """
    data = read_csv_file(path)
    mapping = auto_detect(data.headers)
    logger.info(
        "loaded %s: %d columns, %d data rows, %d columns auto-mapped",
        data.file_name,
        len(data.headers),
        len(data.rows),
        len(mapping),
    )
    return (session or ImportSession.create()).loaded(data.file_name, data.headers, data.rows, mapping)


def run_import(
    session: ImportSession,
    patients: PatientStore,
    consultations: ConsultationStore,
    practitioners: PractitionerResolver,
    current_user: str | None,
    *,
    config: ImportConfig | None = None,
    cancel: CancelSignal | None = None,
    on_progress: Callable[[int], None] | None = None,
) -> ImportSession:
    """Import every data row of ``session`` and return the session in the done step.

    Pre-flight failures are raised before any row is touched, and ``session`` (still
    in the mapping step) remains the caller's current state:

    Raises:
        MappingValidationError: neither last_name nor full_name is mapped
        AuthError: no current user
        PractitionerResolutionError: the user has no practitioner profile
    """
    validate_mapping(session.mapping)
    importing = session.importing()

    try:
        practitioner_id = practitioners.resolve_practitioner_id(current_user)
    except (AuthError, PractitionerResolutionError) as e:
        logger.error("import aborted before first row: %s", e)
        raise

    result = import_rows(
        importing.rows,
        importing.mapping,
        practitioner_id,
        patients,
        consultations,
        config=config,
        cancel=cancel,
        on_progress=on_progress,
        description=f"Importing {importing.file_name}" if importing.file_name else "Importing rows",
    )
    return importing.done(result)


def import_rows(
    rows: Sequence[Sequence[str]],
    mapping: ColumnMapping,
    practitioner_id: str,
    patients: PatientStore,
    consultations: ConsultationStore,
    *,
    config: ImportConfig | None = None,
    cancel: CancelSignal | None = None,
    on_progress: Callable[[int], None] | None = None,
    description: str = "Importing rows",
) -> ImportResult:
    """Process ``rows`` sequentially and assemble the ImportResult.

    On cancellation the rows processed so far are kept and the result is flagged
    ``cancelled``.
    """
    config = config or ImportConfig()
    total = len(rows)
    ctx = RowContext(
        practitioner_id=practitioner_id,
        field_to_column=mapping.field_to_column(),
        has_consultation_mapping=mapping.has_any(CONSULTATION_FIELDS),
        defaults=config.defaults,
        retry_budget=config.store.retry_budget,
    )
    logger.debug(
        "import start rows=%d mapped=%s consultations=%s",
        total,
        sorted(f.value for f in ctx.field_to_column),
        ctx.has_consultation_mapping,
    )

    outcomes: list[RowOutcome] = []
    cancelled = False
    patients_created = consultations_created = error_count = 0

    with ProgressTracker(total, description=description) as progress:
        for index, row in enumerate(rows):
            if cancel is not None and cancel.is_set():
                logger.warning("import cancelled after %d/%d rows", index, total)
                cancelled = True
                break

            outcome = process_row(index, row, ctx, patients, consultations)
            outcomes.append(outcome)

            patients_created += outcome.patient_created
            consultations_created += outcome.consultation_created
            if outcome.error is not None:
                error_count += 1
                logger.warning("row %d: %s", outcome.error.row, outcome.error.message)

            percent = progress.finish_row()
            progress.set_postfix(patients=patients_created, consultations=consultations_created, errors=error_count)
            if on_progress is not None:
                on_progress(percent)

    result = ImportResult.from_outcomes(total, outcomes, cancelled=cancelled)
    logger.info(
        "import finished rows=%d/%d patients=%d consultations=%d errors=%d",
        result.processed_rows,
        result.total,
        result.patients_imported,
        result.consultations_imported,
        len(result.errors),
    )
    return result
