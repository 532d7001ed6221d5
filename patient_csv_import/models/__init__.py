"""Domain models for the CSV patient import.

This package contains the value types threaded through the import pipeline:
field keys, column mappings, records handed to the stores, per-row outcomes,
the import session and the configuration.
"""

from .column_mapping import ColumnMapping
from .config_models import DatabaseConfig, ImportConfig, ImportDefaults, StoreConfig
from .field_key import CONSULTATION_FIELDS, NAME_FIELDS, PATIENT_FIELDS, FieldKey
from .import_result import ImportResult, RowError, RowErrorKind, RowOutcome
from .import_session import ImportSession, ImportStep, InvalidTransitionError
from .records import ConsultationRecord, PatientRecord

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ImportConfig",
    "ImportDefaults",
    "StoreConfig",
    # Mapping models
    "FieldKey",
    "PATIENT_FIELDS",
    "CONSULTATION_FIELDS",
    "NAME_FIELDS",
    "ColumnMapping",
    # Processing models
    "PatientRecord",
    "ConsultationRecord",
    "RowError",
    "RowErrorKind",
    "RowOutcome",
    "ImportResult",
    "ImportSession",
    "ImportStep",
    "InvalidTransitionError",
]
