from __future__ import annotations

from ..models.field_key import FieldKey

"""Alias dictionary: known CSV header spellings -> FieldKey.

Keys are lowercased and trimmed. Accented spellings are listed next to their
unaccented form; the header mapper also retries lookups with diacritics stripped,
so every accented key must have an unaccented twin mapping to the same field.
"""

__all__ = [
    "COLUMN_ALIASES",
]

COLUMN_ALIASES: dict[str, FieldKey] = {
    # last_name
    "nom": FieldKey.LAST_NAME,
    "last_name": FieldKey.LAST_NAME,
    "nom de famille": FieldKey.LAST_NAME,
    "nom_famille": FieldKey.LAST_NAME,
    # full_name (combined)
    "nom prenom": FieldKey.FULL_NAME,
    "nom prénom": FieldKey.FULL_NAME,
    "nom et prenom": FieldKey.FULL_NAME,
    "nom et prénom": FieldKey.FULL_NAME,
    "patient": FieldKey.FULL_NAME,
    "nom complet": FieldKey.FULL_NAME,
    "nom_prenom": FieldKey.FULL_NAME,
    "nom patient": FieldKey.FULL_NAME,
    # first_name
    "prenom": FieldKey.FIRST_NAME,
    "prénom": FieldKey.FIRST_NAME,
    "first_name": FieldKey.FIRST_NAME,
    # email
    "email": FieldKey.EMAIL,
    "e-mail": FieldKey.EMAIL,
    "mail": FieldKey.EMAIL,
    "courriel": FieldKey.EMAIL,
    # phone
    "telephone": FieldKey.PHONE,
    "téléphone": FieldKey.PHONE,
    "tel": FieldKey.PHONE,
    "tél": FieldKey.PHONE,
    "phone": FieldKey.PHONE,
    "portable": FieldKey.PHONE,
    "mobile": FieldKey.PHONE,
    # birth_date
    "date_naissance": FieldKey.BIRTH_DATE,
    "date de naissance": FieldKey.BIRTH_DATE,
    "birth_date": FieldKey.BIRTH_DATE,
    "naissance": FieldKey.BIRTH_DATE,
    "ddn": FieldKey.BIRTH_DATE,
    # gender
    "sexe": FieldKey.GENDER,
    "gender": FieldKey.GENDER,
    "genre": FieldKey.GENDER,
    # profession
    "profession": FieldKey.PROFESSION,
    "metier": FieldKey.PROFESSION,
    "métier": FieldKey.PROFESSION,
    # consultation_date
    "date consultation": FieldKey.CONSULTATION_DATE,
    "date de consultation": FieldKey.CONSULTATION_DATE,
    "date rdv": FieldKey.CONSULTATION_DATE,
    "date de rendez-vous": FieldKey.CONSULTATION_DATE,
    "date rendez-vous": FieldKey.CONSULTATION_DATE,
    "date seance": FieldKey.CONSULTATION_DATE,
    "date de seance": FieldKey.CONSULTATION_DATE,
    "date séance": FieldKey.CONSULTATION_DATE,
    "date de séance": FieldKey.CONSULTATION_DATE,
    "date": FieldKey.CONSULTATION_DATE,
    # reason
    "motif": FieldKey.REASON,
    "motif de consultation": FieldKey.REASON,
    "motif consultation": FieldKey.REASON,
    "raison": FieldKey.REASON,
    "objet": FieldKey.REASON,
    "plainte": FieldKey.REASON,
    # anamnesis
    "anamnèse": FieldKey.ANAMNESIS,
    "anamnese": FieldKey.ANAMNESIS,
    "anamnesis": FieldKey.ANAMNESIS,
    "interrogatoire": FieldKey.ANAMNESIS,
    "histoire clinique": FieldKey.ANAMNESIS,
    # trauma_history
    "antecedents traumatiques": FieldKey.TRAUMA_HISTORY,
    "antécédents traumatiques": FieldKey.TRAUMA_HISTORY,
    "histoire traumatique": FieldKey.TRAUMA_HISTORY,
    "traumatismes": FieldKey.TRAUMA_HISTORY,
    "trauma": FieldKey.TRAUMA_HISTORY,
    # medical_history
    "antecedents medicaux": FieldKey.MEDICAL_HISTORY,
    "antécédents médicaux": FieldKey.MEDICAL_HISTORY,
    "histoire medicale": FieldKey.MEDICAL_HISTORY,
    "histoire médicale": FieldKey.MEDICAL_HISTORY,
    "antecedents": FieldKey.MEDICAL_HISTORY,
    "antécédents": FieldKey.MEDICAL_HISTORY,
    # surgical_history
    "antecedents chirurgicaux": FieldKey.SURGICAL_HISTORY,
    "antécédents chirurgicaux": FieldKey.SURGICAL_HISTORY,
    "chirurgie": FieldKey.SURGICAL_HISTORY,
    "operations": FieldKey.SURGICAL_HISTORY,
    "opérations": FieldKey.SURGICAL_HISTORY,
    # family_history
    "antecedents familiaux": FieldKey.FAMILY_HISTORY,
    "antécédents familiaux": FieldKey.FAMILY_HISTORY,
    "histoire familiale": FieldKey.FAMILY_HISTORY,
    "heredite": FieldKey.FAMILY_HISTORY,
    "hérédité": FieldKey.FAMILY_HISTORY,
    # examination
    "examen": FieldKey.EXAMINATION,
    "examen clinique": FieldKey.EXAMINATION,
    "examination": FieldKey.EXAMINATION,
    "observation": FieldKey.EXAMINATION,
    "bilan clinique": FieldKey.EXAMINATION,
    "bilan": FieldKey.EXAMINATION,
    # advice
    "conseil": FieldKey.ADVICE,
    "conseils": FieldKey.ADVICE,
    "advice": FieldKey.ADVICE,
    "recommandations": FieldKey.ADVICE,
    "conseils post-seance": FieldKey.ADVICE,
    "conseils post-séance": FieldKey.ADVICE,
    "traitement": FieldKey.ADVICE,
}
