# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from patient_csv_import.models.records import ConsultationRecord, PatientRecord
from patient_csv_import.stores.base import StoreError
from patient_csv_import.stores.memory import (
    MemoryConsultationStore,
    MemoryPatientStore,
    StaticPractitionerResolver,
)

USER_ID = "user-1"
PRACTITIONER_ID = "prac-1"


class FailingPatientStore(MemoryPatientStore):
    """Memory store whose insert fails for the given last names."""

    def __init__(self, fail_last_names: set[str], message: str = "insert failed") -> None:
        super().__init__()
        self.fail_last_names = {n.lower() for n in fail_last_names}
        self.message = message

    def insert(self, record: PatientRecord) -> str:
        if record.last_name.lower() in self.fail_last_names:
            raise StoreError(self.message)
        return super().insert(record)


class FailingConsultationStore(MemoryConsultationStore):
    def __init__(self, message: str = "reason too long") -> None:
        super().__init__()
        self.message = message
        self.attempts = 0

    def insert(self, record: ConsultationRecord) -> str:
        self.attempts += 1
        raise StoreError(self.message)


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def patient_store() -> MemoryPatientStore:
    return MemoryPatientStore()


@pytest.fixture()
def consultation_store() -> MemoryConsultationStore:
    return MemoryConsultationStore()


@pytest.fixture()
def practitioners() -> StaticPractitionerResolver:
    return StaticPractitionerResolver({USER_ID: PRACTITIONER_ID})


@pytest.fixture()
def write_csv(temp_workdir: Path):
    def _write(name: str, text: str, encoding: str = "utf-8") -> Path:
        path = temp_workdir / "data" / name
        path.write_bytes(text.encode(encoding))
        return path
    return _write


@pytest.fixture()
def sample_config_yaml() -> str:
    return """database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
practitioner_user_id: user-1
defaults:
  phone: "0600000000"
store:
  statement_timeout_ms: 5000
  retry_budget: 1
error_log_dir: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def failing_patient_store():
    """Factory: failing_patient_store({"Martin"}, "message") -> FailingPatientStore."""
    return FailingPatientStore


@pytest.fixture()
def failing_consultation_store():
    return FailingConsultationStore
