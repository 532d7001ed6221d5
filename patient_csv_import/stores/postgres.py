from __future__ import annotations

import logging
from typing import Any

import psycopg2
from psycopg2 import errors as pg_errors

from ..db.insert import InsertMetrics, insert_returning_id
from ..models.records import ConsultationRecord, PatientRecord
from .base import AuthError, PractitionerResolutionError, StoreError, StoreTimeoutError

"""PostgreSQL stores (psycopg2).

Tables: practitioners(id, user_id), patients(..., practitioner_id, created_at),
consultations(..., patient_id). Every write commits immediately; a failed
statement is rolled back so the connection stays usable for the next row.
"""

__all__ = [
    "PostgresPatientStore",
    "PostgresConsultationStore",
    "PostgresPractitionerResolver",
]

logger = logging.getLogger(__name__)

FIND_PATIENT_SQL = (
    "SELECT id FROM patients "
    "WHERE practitioner_id = %s AND lower(last_name) = lower(%s) AND lower(first_name) = lower(%s) "
    "ORDER BY created_at LIMIT 1"
)
FIND_PRACTITIONER_SQL = "SELECT id FROM practitioners WHERE user_id = %s"


def _translate(conn: Any, exc: psycopg2.Error) -> StoreError:
    try:
        conn.rollback()
    except psycopg2.Error:  # pragma: no cover
        logger.debug("rollback after failed statement also failed", exc_info=True)
    message = (getattr(exc, "pgerror", None) or str(exc)).strip()
    if isinstance(exc, pg_errors.QueryCanceled):
        return StoreTimeoutError(message)
    return StoreError(message)


def _log_insert(metrics: InsertMetrics) -> None:
    logger.debug("insert into %s took %.3fs", metrics.table, metrics.elapsed_seconds)


class _PostgresStore:
    def __init__(self, conn: Any) -> None:
        self.conn = conn

    def _insert(self, table: str, row: dict[str, Any]) -> str:
        try:
            with self.conn.cursor() as cur:
                new_id = insert_returning_id(cur, table, row, metrics_callback=_log_insert)
            self.conn.commit()
        except psycopg2.Error as e:
            raise _translate(self.conn, e) from e
        except Exception:
            # Nothing from a half-done insert may reach the next commit
            self.conn.rollback()
            raise
        return str(new_id)


class PostgresPatientStore(_PostgresStore):
    def find_by_name(self, practitioner_id: str, last_name: str, first_name: str) -> str | None:
        try:
            with self.conn.cursor() as cur:
                cur.execute(FIND_PATIENT_SQL, (practitioner_id, last_name, first_name))
                found = cur.fetchone()
            self.conn.commit()
        except psycopg2.Error as e:
            raise _translate(self.conn, e) from e
        return str(found[0]) if found else None

    def insert(self, record: PatientRecord) -> str:
        return self._insert("patients", record.to_row())


class PostgresConsultationStore(_PostgresStore):
    def insert(self, record: ConsultationRecord) -> str:
        return self._insert("consultations", record.to_row())


class PostgresPractitionerResolver(_PostgresStore):
    def resolve_practitioner_id(self, current_user: str | None) -> str:
        if not current_user:
            raise AuthError("no authenticated user")
        try:
            with self.conn.cursor() as cur:
                cur.execute(FIND_PRACTITIONER_SQL, (current_user,))
                found = cur.fetchone()
            self.conn.commit()
        except psycopg2.Error as e:
            raise PractitionerResolutionError(f"practitioner lookup failed: {_translate(self.conn, e)}") from e
        if not found:
            raise PractitionerResolutionError(f"no practitioner profile for user {current_user}")
        return str(found[0])
