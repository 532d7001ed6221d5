from __future__ import annotations

import argparse
import os
import signal
import sys
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from ..csvfile.reader import FileFormatError
from ..db.connection import db_connection
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..logging.init import log_summary, set_debug, setup_logging
from ..mapping.header_mapper import MappingValidationError, validate_mapping
from ..models.config_models import ImportConfig
from ..models.field_key import FieldKey
from ..models.import_session import ImportSession
from ..services.orchestrator import run_import, start_session
from ..services.summary import render_summary_line
from ..stores.base import AuthError, PractitionerResolutionError
from ..stores.memory import MemoryConsultationStore, MemoryPatientStore, StaticPractitionerResolver
from ..stores.postgres import PostgresConsultationStore, PostgresPatientStore, PostgresPractitionerResolver

"""CLI entrypoint.

Runs the upload -> mapping -> import flow on a single CSV file:
- read the file and auto-detect the column mapping
- apply manual ``--map`` overrides
- import every row into PostgreSQL (or into memory with ``--dry-run``)
- print a SUMMARY line and write row errors to the JSON Lines error log
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

PREVIEW_ROWS = 5
USER_ENV_VAR = "IMPORT_USER_ID"
_AUTH_ERROR_TYPES = {
    AuthError: "AUTH_ERROR",
    PractitionerResolutionError: "PRACTITIONER_RESOLUTION_ERROR",
}


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; its values win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="patient-csv-import",
        description="Import patients and consultations from a practice-software CSV export",
    )
    p.add_argument("csv_file", type=Path, help="CSV file to import (UTF-8, comma or semicolon separated)")
    p.add_argument("--config", type=Path, default=None, help=f"YAML config (default: {DEFAULT_CONFIG_PATH})")
    p.add_argument("--user", default=None, help=f"Current user id (default: ${USER_ENV_VAR} or config)")
    p.add_argument(
        "--map",
        action="append",
        default=[],
        metavar="COLUMN=FIELD",
        help="Override the mapping of a column (index or header) to a field, e.g. 2=phone or 'Nom usuel=last_name'",
    )
    p.add_argument("--dry-run", action="store_true", help="Run the import against in-memory stores")
    p.add_argument("--inspect-data", action="store_true", help="Print headers, detected mapping and first rows then exit")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _load_import_config(path: Path | None) -> ImportConfig:
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return ImportConfig()
        path = DEFAULT_CONFIG_PATH
    return load_config(path)


def _resolve_column(session: ImportSession, column: str) -> int:
    if column.isdigit():
        index = int(column)
        if index >= len(session.headers):
            raise ValueError(f"column {index} out of range (file has {len(session.headers)} columns)")
        return index
    wanted = column.strip().lower()
    for index, header in enumerate(session.headers):
        if header.strip().lower() == wanted:
            return index
    raise ValueError(f"no column named {column!r}")


def _apply_overrides(session: ImportSession, overrides: list[str]) -> ImportSession:
    for override in overrides:
        column, sep, field = override.rpartition("=")
        if not sep or not column:
            raise ValueError(f"invalid --map value {override!r}, expected COLUMN=FIELD")
        session = session.with_field(_resolve_column(session, column), FieldKey.parse(field))
    return session


def _field_group(field: FieldKey) -> str:
    if field.is_patient_field:
        return "patient"
    if field.is_consultation_field:
        return "consultation"
    return "ignored"


def _inspect_data(session: ImportSession) -> int:
    print(f"FILE: {session.file_name} columns={len(session.headers)} rows={session.total_rows}")
    for index, header in enumerate(session.headers):
        field = session.mapping.get(index)
        target = f"{field.value} ({field.label}) [{_field_group(field)}]" if field is not None else "-"
        print(f"  [{index}] {header!r} -> {target}")
    for row in session.rows[:PREVIEW_ROWS]:
        print("    sample_row=", list(row))
    return EXIT_SUCCESS_ALL


@contextmanager
def _cancel_on_sigint() -> Iterator[threading.Event]:
    """Ctrl-C stops the import before the next row instead of killing it mid-row."""
    cancel = threading.Event()
    previous = signal.getsignal(signal.SIGINT)

    def _handler(signum, frame):  # noqa: ARG001
        cancel.set()

    signal.signal(signal.SIGINT, _handler)
    try:
        yield cancel
    finally:
        signal.signal(signal.SIGINT, previous)


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None -> real process arguments; [] stays empty (tests)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = _load_import_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    error_log = ErrorLogBuffer(Path(cfg.error_log_dir))
    file_name = args.csv_file.name

    try:
        session = start_session(args.csv_file)
        session = _apply_overrides(session, args.map)
    except FileFormatError as e:
        logger.error(f"file: {e}")
        error_log.append(ErrorRecord.create(file=file_name, row=-1, error_type="FILE_FORMAT_ERROR", message=str(e)))
        error_log.flush()
        return EXIT_FATAL
    except ValueError as e:
        logger.error(f"mapping: {e}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(session)

    # Checked before connecting; run_import checks again
    try:
        validate_mapping(session.mapping)
    except MappingValidationError as e:
        logger.error(f"mapping: {e}")
        return EXIT_FATAL

    current_user = args.user or os.getenv(USER_ENV_VAR) or cfg.practitioner_user_id
    start = time.perf_counter()
    try:
        with _cancel_on_sigint() as cancel:
            if args.dry_run:
                logger.info("dry run: nothing will be written to the database")
                practitioners = StaticPractitionerResolver({current_user: f"dry-run-{current_user}"} if current_user else {})
                session = run_import(
                    session,
                    MemoryPatientStore(),
                    MemoryConsultationStore(),
                    practitioners,
                    current_user,
                    config=cfg,
                    cancel=cancel,
                )
            else:
                with db_connection(cfg.database, statement_timeout_ms=cfg.store.statement_timeout_ms) as conn:
                    session = run_import(
                        session,
                        PostgresPatientStore(conn),
                        PostgresConsultationStore(conn),
                        PostgresPractitionerResolver(conn),
                        current_user,
                        config=cfg,
                        cancel=cancel,
                    )
    except MappingValidationError as e:
        logger.error(f"mapping: {e}")
        return EXIT_FATAL
    except (AuthError, PractitionerResolutionError) as e:
        logger.error(f"auth: {e}")
        error_log.append(ErrorRecord.create(file=file_name, row=-1, error_type=_AUTH_ERROR_TYPES[type(e)], message=str(e)))
        error_log.flush()
        return EXIT_FATAL
    except psycopg2.Error as e:
        # connection failures; nothing has been imported
        logger.error(f"database: {e}")
        return EXIT_FATAL
    elapsed = time.perf_counter() - start

    result = session.result
    if result is None:
        logger.error(f"import of {file_name} ended without a result")
        return EXIT_FATAL
    error_log.extend_row_errors(file_name, result.errors)
    log_path = error_log.flush()
    if log_path is not None:
        logger.info(f"row errors written to {log_path}")

    summary_line = render_summary_line(result, elapsed)
    log_summary(summary_line[len("SUMMARY "):])

    if result.has_errors or result.cancelled:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
