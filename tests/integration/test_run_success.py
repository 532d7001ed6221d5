from __future__ import annotations

from unittest.mock import patch

import pytest

from patient_csv_import.models.import_session import ImportStep
from patient_csv_import.services.orchestrator import run_import, start_session
from patient_csv_import.stores.memory import MemoryConsultationStore

"""Integration: CSV file -> session -> import into the in-memory stores.

Drives start_session() and run_import() the way the CLI does, on real files written
to a temporary directory.
"""


@pytest.fixture(autouse=True)
def _no_tty():
    with patch('patient_csv_import.services.progress.is_tty_enabled', return_value=False):
        yield


def test_single_row_with_french_date(write_csv, patient_store, consultation_store, practitioners):
    path = write_csv("export.csv", "Nom;Prenom;Date de naissance;Motif\nDupont;Jean;15/06/1980;Lombalgie\n")
    session = start_session(path)
    done = run_import(session, patient_store, consultation_store, practitioners, "user-1")

    result = done.result
    assert done.step is ImportStep.DONE
    assert (result.total, result.patients_imported, result.consultations_imported) == (1, 1, 1)
    assert result.errors == []

    patient = patient_store.rows[0]
    assert patient["last_name"] == "Dupont"
    assert patient["first_name"] == "Jean"
    assert patient["birth_date"] == "1980-06-15"
    assert patient["gender"] == "M"
    assert patient["phone"] == "0000000000"
    assert patient["practitioner_id"] == "prac-1"

    consultation = consultation_store.rows[0]
    assert consultation["patient_id"] == patient["id"]
    assert consultation["reason"] == "Lombalgie"
    assert "date_time" not in consultation


def test_practice_export_with_history(write_csv, patient_store, consultation_store, practitioners):
    text = (
        '"Nom et prénom",Sexe,Téléphone,E-mail,Date séance,Motif,Antécédents médicaux,Conseils\n'
        '"Durand Marie Claire",Femme,0611223344,marie@example.fr,2024-03-02,"Cervicalgie, raideur",HTA,"Étirements"\n'
        '"Durand Marie Claire",F,0611223344,marie@example.fr,09/03/2024,,HTA,\n'
        '"Petit Paul",,,,,,,\n'
        ",,,,,,,\n"
    )
    path = write_csv("cabinet.csv", text)
    progress: list[int] = []
    done = run_import(
        start_session(path), patient_store, consultation_store, practitioners, "user-1", on_progress=progress.append
    )
    result = done.result

    # the all-empty line is dropped by the reader
    assert result.total == 3
    assert result.patients_imported == 2
    assert result.consultations_imported == 2
    assert progress == [33, 67, 100]

    marie = next(p for p in patient_store.rows if p["last_name"] == "Durand")
    assert marie["first_name"] == "Marie Claire"
    assert marie["gender"] == "F"
    assert marie["email"] == "marie@example.fr"
    assert marie["medical_history"] == "HTA"

    visits = consultation_store.for_patient(marie["id"])
    assert [v.get("date_time") for v in visits] == ["2024-03-02T09:00:00", "2024-03-09T09:00:00"]
    assert visits[0]["reason"] == "Cervicalgie, raideur"
    assert visits[0]["advice"] == "Étirements"
    assert visits[1]["reason"] == "Consultation"

    paul = next(p for p in patient_store.rows if p["last_name"] == "Petit")
    assert consultation_store.for_patient(paul["id"]) == []


def test_second_import_reuses_existing_patients(write_csv, patient_store, practitioners):
    path = write_csv("a.csv", "Nom,Prénom,Motif\nDupont,Jean,Lombalgie\n")
    run_import(start_session(path), patient_store, MemoryConsultationStore(), practitioners, "user-1")
    again = run_import(start_session(path), patient_store, MemoryConsultationStore(), practitioners, "user-1")

    assert again.result.patients_imported == 0
    assert again.result.consultations_imported == 1
    assert len(patient_store.rows) == 1
