from __future__ import annotations

from unittest.mock import Mock, patch

import pytest

from patient_csv_import.models.column_mapping import ColumnMapping
from patient_csv_import.models.config_models import ImportDefaults
from patient_csv_import.models.field_key import CONSULTATION_FIELDS, FieldKey
from patient_csv_import.models.import_result import RowErrorKind
from patient_csv_import.services.row_processor import (
    PATIENT_INSERT_FALLBACK_MESSAGE,
    UNKNOWN_ERROR_MESSAGE,
    RowContext,
    build_consultation_record,
    build_patient_record,
    dedup_key,
    extract_names,
    process_row,
)
from patient_csv_import.stores.base import StoreError, StoreTimeoutError
from patient_csv_import.stores.memory import MemoryConsultationStore, MemoryPatientStore

PRACTITIONER = "prac-1"


def make_ctx(entries: dict[int, FieldKey], **kwargs) -> RowContext:
    mapping = ColumnMapping(entries)
    return RowContext(
        practitioner_id=PRACTITIONER,
        field_to_column=mapping.field_to_column(),
        has_consultation_mapping=mapping.has_any(CONSULTATION_FIELDS),
        **kwargs,
    )


NAME_ONLY = {0: FieldKey.LAST_NAME, 1: FieldKey.FIRST_NAME}
WITH_CONSULTATION = {
    0: FieldKey.LAST_NAME,
    1: FieldKey.FIRST_NAME,
    2: FieldKey.CONSULTATION_DATE,
    3: FieldKey.REASON,
}


class TestNames:
    def test_extract_names_from_split_columns(self):
        ctx = make_ctx(NAME_ONLY)
        assert extract_names([" Dupont ", "Jean"], ctx) == ("Dupont", "Jean")

    def test_full_name_split_on_whitespace(self):
        ctx = make_ctx({0: FieldKey.FULL_NAME})
        assert extract_names(["Dupont  Jean   Paul"], ctx) == ("Dupont", "Jean Paul")

    def test_full_name_single_token(self):
        ctx = make_ctx({0: FieldKey.FULL_NAME})
        assert extract_names(["Dupont"], ctx) == ("Dupont", "")

    def test_last_name_wins_over_full_name(self):
        ctx = make_ctx({0: FieldKey.LAST_NAME, 1: FieldKey.FIRST_NAME, 2: FieldKey.FULL_NAME})
        assert extract_names(["Martin", "Claire", "Dupont Jean"], ctx) == ("Martin", "Claire")

    def test_short_row_reads_missing_cells_as_empty(self):
        ctx = make_ctx(NAME_ONLY)
        assert extract_names(["Dupont"], ctx) == ("Dupont", "")

    def test_dedup_key(self):
        assert dedup_key("DUPONT", "Jean") == "dupont|jean"
        assert dedup_key("", "Jean") == "inconnu|jean"
        assert dedup_key("Dupont", "") == "dupont|"


class TestRecords:
    def test_patient_defaults(self):
        ctx = make_ctx(NAME_ONLY)
        record = build_patient_record(["", "Jean"], ctx, "", "Jean")
        assert record.last_name == "Inconnu"
        assert record.phone == "0000000000"
        assert record.gender == "M"
        assert record.birth_date is None
        assert "email" not in record.to_row()

    def test_patient_optional_fields_and_normalization(self):
        ctx = make_ctx({
            0: FieldKey.LAST_NAME,
            1: FieldKey.GENDER,
            2: FieldKey.BIRTH_DATE,
            3: FieldKey.EMAIL,
            4: FieldKey.PHONE,
            5: FieldKey.MEDICAL_HISTORY,
        })
        row = ["Martin", "Femme", "3/4/85", "c.martin@example.fr", "0611223344", "asthme"]
        record = build_patient_record(row, ctx, "Martin", "")
        assert record.gender == "F"
        assert record.birth_date == "1985-04-03"
        assert record.email == "c.martin@example.fr"
        assert record.phone == "0611223344"
        assert record.medical_history == "asthme"
        assert record.practitioner_id == PRACTITIONER

    def test_unparseable_birth_date_is_omitted(self):
        ctx = make_ctx({0: FieldKey.LAST_NAME, 1: FieldKey.BIRTH_DATE})
        record = build_patient_record(["Martin", "un jour"], ctx, "Martin", "")
        assert "birth_date" not in record.to_row()

    def test_configured_defaults_are_used(self):
        ctx = make_ctx(NAME_ONLY, defaults=ImportDefaults(last_name="Anonyme", phone="0100000000", gender="F"))
        record = build_patient_record(["", "Jean"], ctx, "", "Jean")
        assert (record.last_name, record.phone, record.gender) == ("Anonyme", "0100000000", "F")

    def test_consultation_needs_reason_or_date(self):
        ctx = make_ctx(WITH_CONSULTATION)
        assert build_consultation_record(["Dupont", "Jean", "", ""], ctx, "p1") is None

    def test_consultation_default_reason_and_time(self):
        ctx = make_ctx(WITH_CONSULTATION)
        record = build_consultation_record(["Dupont", "Jean", "02/03/2024", ""], ctx, "p1")
        assert record.reason == "Consultation"
        assert record.date_time == "2024-03-02T09:00:00"

    def test_consultation_bad_date_keeps_reason(self):
        ctx = make_ctx(WITH_CONSULTATION)
        record = build_consultation_record(["Dupont", "Jean", "demain", "Lombalgie"], ctx, "p1")
        assert record.reason == "Lombalgie"
        assert "date_time" not in record.to_row()


class TestProcessRow:
    def test_skips_rows_without_names(self, patient_store, consultation_store):
        ctx = make_ctx(WITH_CONSULTATION)
        outcome = process_row(0, ["", "", "01/01/2024", "Lombalgie"], ctx, patient_store, consultation_store)
        assert outcome.skipped is True
        assert outcome.error is None
        assert patient_store.rows == [] and consultation_store.rows == []

    def test_creates_patient_and_consultation(self, patient_store, consultation_store):
        ctx = make_ctx(WITH_CONSULTATION)
        outcome = process_row(0, ["Dupont", "Jean", "", "Lombalgie"], ctx, patient_store, consultation_store)
        assert outcome.patient_created and outcome.consultation_created
        assert consultation_store.for_patient(outcome.patient_id)[0]["reason"] == "Lombalgie"

    def test_no_consultation_without_consultation_columns(self, patient_store, consultation_store):
        ctx = make_ctx(NAME_ONLY)
        outcome = process_row(0, ["Dupont", "Jean"], ctx, patient_store, consultation_store)
        assert outcome.patient_created
        assert not outcome.consultation_created
        assert consultation_store.rows == []

    def test_dedup_within_run_uses_cache(self, patient_store, consultation_store):
        ctx = make_ctx(WITH_CONSULTATION)
        with patch.object(patient_store, "find_by_name", wraps=patient_store.find_by_name) as find:
            first = process_row(0, ["Dupont", "Jean", "", "Lombalgie"], ctx, patient_store, consultation_store)
            second = process_row(1, ["DUPONT", "jean", "", "Cervicalgie"], ctx, patient_store, consultation_store)
        assert second.patient_id == first.patient_id
        assert second.patient_created is False
        assert len(patient_store.rows) == 1
        assert len(consultation_store.for_patient(first.patient_id)) == 2
        # second row answered from the run cache
        assert find.call_count == 1

    def test_reuses_patient_from_earlier_import(self, consultation_store):
        store = MemoryPatientStore(
            existing=[{"id": "p-old", "practitioner_id": PRACTITIONER, "last_name": "Dupont", "first_name": "Jean"}]
        )
        ctx = make_ctx(NAME_ONLY)
        outcome = process_row(0, ["dupont", "JEAN"], ctx, store, consultation_store)
        assert outcome.patient_id == "p-old"
        assert outcome.patient_created is False
        assert len(store.rows) == 1

    def test_other_practitioner_patients_are_not_reused(self, consultation_store):
        store = MemoryPatientStore(
            existing=[{"id": "p-other", "practitioner_id": "prac-2", "last_name": "Dupont", "first_name": "Jean"}]
        )
        outcome = process_row(0, ["Dupont", "Jean"], make_ctx(NAME_ONLY), store, consultation_store)
        assert outcome.patient_created is True
        assert outcome.patient_id != "p-other"

    def test_lookup_uses_default_last_name(self, consultation_store):
        patients = Mock()
        patients.find_by_name.return_value = "p-1"
        process_row(0, ["", "Jean"], make_ctx(NAME_ONLY), patients, consultation_store)
        patients.find_by_name.assert_called_once_with(PRACTITIONER, "Inconnu", "Jean")
        patients.insert.assert_not_called()

    def test_lookup_failure_falls_back_to_insert(self, consultation_store):
        patients = Mock()
        patients.find_by_name.side_effect = StoreError("lookup down")
        patients.insert.return_value = "p-new"
        outcome = process_row(0, ["Dupont", "Jean"], make_ctx(NAME_ONLY), patients, consultation_store)
        assert outcome.patient_id == "p-new"
        assert outcome.error is None

    def test_unexpected_lookup_error_falls_back_to_insert(self, consultation_store):
        patients = Mock()
        patients.find_by_name.side_effect = RuntimeError("driver bug")
        patients.insert.return_value = "p-new"
        outcome = process_row(0, ["Dupont", "Jean"], make_ctx(NAME_ONLY), patients, consultation_store)
        assert outcome.patient_id == "p-new"
        assert outcome.patient_created is True
        assert outcome.error is None

    def test_patient_insert_failure_is_row_error(self, failing_patient_store, consultation_store):
        patients = failing_patient_store({"Martin"}, 'null value in column "birth_date"')
        ctx = make_ctx(WITH_CONSULTATION)
        outcome = process_row(3, ["Martin", "Claire", "", "Lombalgie"], ctx, patients, consultation_store)
        assert outcome.error is not None
        assert outcome.error.row == 5
        assert outcome.error.message == 'null value in column "birth_date"'
        assert outcome.error.kind is RowErrorKind.PATIENT_INSERT_FAILURE
        # no consultation attempted after a patient failure
        assert consultation_store.rows == []
        assert ctx.patient_cache == {}

    def test_patient_insert_empty_message_uses_fallback(self, failing_patient_store, consultation_store):
        patients = failing_patient_store({"Martin"}, "")
        outcome = process_row(0, ["Martin", "Claire"], make_ctx(NAME_ONLY), patients, consultation_store)
        assert outcome.error.message == PATIENT_INSERT_FALLBACK_MESSAGE

    def test_patient_insert_without_id_is_row_error(self, consultation_store):
        patients = Mock()
        patients.find_by_name.return_value = None
        patients.insert.return_value = ""
        outcome = process_row(0, ["Martin", "Claire"], make_ctx(NAME_ONLY), patients, consultation_store)
        assert outcome.error.message == PATIENT_INSERT_FALLBACK_MESSAGE

    def test_unexpected_patient_error_is_captured(self, consultation_store):
        patients = Mock()
        patients.find_by_name.return_value = None
        patients.insert.side_effect = RuntimeError()
        outcome = process_row(0, ["Martin", "Claire"], make_ctx(NAME_ONLY), patients, consultation_store)
        assert outcome.error.message == UNKNOWN_ERROR_MESSAGE

    def test_consultation_failure_keeps_patient(self, patient_store, failing_consultation_store):
        consultations = failing_consultation_store("value too long for type character varying(255)")
        ctx = make_ctx(WITH_CONSULTATION)
        outcome = process_row(0, ["Dupont", "Jean", "", "x" * 300], ctx, patient_store, consultations)
        assert outcome.patient_created is True
        assert outcome.consultation_created is False
        assert outcome.error.row == 2
        assert outcome.error.message == "Consultation: value too long for type character varying(255)"
        assert outcome.error.kind is RowErrorKind.CONSULTATION_INSERT_FAILURE
        assert len(patient_store.rows) == 1


class TestRetryBudget:
    def test_timeout_without_budget_fails_row(self, consultation_store):
        patients = Mock()
        patients.find_by_name.return_value = None
        patients.insert.side_effect = StoreTimeoutError("canceling statement due to statement timeout")
        outcome = process_row(0, ["Dupont", "Jean"], make_ctx(NAME_ONLY), patients, consultation_store)
        assert outcome.error.message == "canceling statement due to statement timeout"
        assert patients.insert.call_count == 1

    def test_timeout_retried_within_budget(self, consultation_store):
        patients = Mock()
        patients.find_by_name.return_value = None
        patients.insert.side_effect = [StoreTimeoutError("timeout"), "p-1"]
        outcome = process_row(0, ["Dupont", "Jean"], make_ctx(NAME_ONLY, retry_budget=1), patients, consultation_store)
        assert outcome.patient_id == "p-1"
        assert outcome.error is None
        assert patients.insert.call_count == 2

    def test_budget_is_shared_by_the_row(self, patient_store):
        consultations = Mock()
        consultations.insert.side_effect = StoreTimeoutError("timeout")
        ctx = make_ctx(WITH_CONSULTATION, retry_budget=2)
        outcome = process_row(0, ["Dupont", "Jean", "", "Lombalgie"], ctx, patient_store, consultations)
        assert outcome.error.kind is RowErrorKind.CONSULTATION_INSERT_FAILURE
        assert consultations.insert.call_count == 3

    @pytest.mark.parametrize("budget", [0, 3])
    def test_non_timeout_errors_are_not_retried(self, consultation_store, budget):
        patients = Mock()
        patients.find_by_name.return_value = None
        patients.insert.side_effect = StoreError("duplicate key")
        process_row(0, ["Dupont", "Jean"], make_ctx(NAME_ONLY, retry_budget=budget), patients, consultation_store)
        assert patients.insert.call_count == 1
