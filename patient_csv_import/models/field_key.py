from __future__ import annotations

from enum import Enum

"""FieldKey enum for the CSV patient import.

A FieldKey is the canonical target a CSV column can be mapped to: a patient
attribute, a consultation attribute, or IGNORE. The set is closed; the alias
dictionary and the column mapping only ever hold members of this enum.
"""

__all__ = [
    "FieldKey",
    "PATIENT_FIELDS",
    "CONSULTATION_FIELDS",
    "NAME_FIELDS",
]


class FieldKey(Enum):
    """Canonical field identifiers (value = store column / wire name)."""
    # Patient
    LAST_NAME = "last_name"
    FIRST_NAME = "first_name"
    FULL_NAME = "full_name"
    EMAIL = "email"
    PHONE = "phone"
    BIRTH_DATE = "birth_date"
    GENDER = "gender"
    PROFESSION = "profession"
    TRAUMA_HISTORY = "trauma_history"
    MEDICAL_HISTORY = "medical_history"
    SURGICAL_HISTORY = "surgical_history"
    FAMILY_HISTORY = "family_history"
    # Consultation
    CONSULTATION_DATE = "consultation_date"
    REASON = "reason"
    ANAMNESIS = "anamnesis"
    EXAMINATION = "examination"
    ADVICE = "advice"
    # Column not imported
    IGNORE = "__ignore__"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def is_patient_field(self) -> bool:
        return self in PATIENT_FIELDS

    @property
    def is_consultation_field(self) -> bool:
        return self in CONSULTATION_FIELDS

    @classmethod
    def parse(cls, value: str) -> FieldKey:
        """Resolve a field from its value (``"last_name"``) or member name (``"LAST_NAME"``).

        ``"ignore"`` is accepted as a shorthand for IGNORE.
        """
        text = value.strip()
        if text.lower() in ("ignore", "__ignore__"):
            return cls.IGNORE
        try:
            return cls(text.lower())
        except ValueError:
            pass
        try:
            return cls[text.upper()]
        except KeyError:
            raise ValueError(f"unknown field: {value!r}") from None


PATIENT_FIELDS: frozenset[FieldKey] = frozenset({
    FieldKey.LAST_NAME,
    FieldKey.FIRST_NAME,
    FieldKey.FULL_NAME,
    FieldKey.EMAIL,
    FieldKey.PHONE,
    FieldKey.BIRTH_DATE,
    FieldKey.GENDER,
    FieldKey.PROFESSION,
    FieldKey.TRAUMA_HISTORY,
    FieldKey.MEDICAL_HISTORY,
    FieldKey.SURGICAL_HISTORY,
    FieldKey.FAMILY_HISTORY,
})

CONSULTATION_FIELDS: frozenset[FieldKey] = frozenset({
    FieldKey.CONSULTATION_DATE,
    FieldKey.REASON,
    FieldKey.ANAMNESIS,
    FieldKey.EXAMINATION,
    FieldKey.ADVICE,
})

# At least one of these must be mapped before an import may start
NAME_FIELDS: frozenset[FieldKey] = frozenset({FieldKey.LAST_NAME, FieldKey.FULL_NAME})

_LABELS: dict[FieldKey, str] = {
    FieldKey.LAST_NAME: "Nom",
    FieldKey.FIRST_NAME: "Prenom",
    FieldKey.FULL_NAME: "Nom Prenom (combine)",
    FieldKey.EMAIL: "Email",
    FieldKey.PHONE: "Telephone",
    FieldKey.BIRTH_DATE: "Date de naissance",
    FieldKey.GENDER: "Sexe (M/F)",
    FieldKey.PROFESSION: "Profession",
    FieldKey.TRAUMA_HISTORY: "Antecedents traumatiques",
    FieldKey.MEDICAL_HISTORY: "Antecedents medicaux",
    FieldKey.SURGICAL_HISTORY: "Antecedents chirurgicaux",
    FieldKey.FAMILY_HISTORY: "Antecedents familiaux",
    FieldKey.CONSULTATION_DATE: "Date de consultation",
    FieldKey.REASON: "Motif de consultation",
    FieldKey.ANAMNESIS: "Anamnese",
    FieldKey.EXAMINATION: "Examen clinique",
    FieldKey.ADVICE: "Conseils",
    FieldKey.IGNORE: "Ignorer",
}
