from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

from .import_result import RowError

"""ErrorRecord model for the JSON Lines error log.

One ErrorRecord is written per RowError of an import run, plus file-level records
(row=-1) for pre-flight failures that abort the run.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: CSV file name being imported
        row: 1-based display row. -1 for file-level errors
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Store error message or description
    """
    timestamp: str
    file: str
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(file: str, row: int, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(timestamp=ts, file=file, row=row, error_type=error_type, message=message)

    @staticmethod
    def from_row_error(file: str, error: RowError) -> ErrorRecord:
        return ErrorRecord.create(file=file, row=error.row, error_type=error.kind.value, message=error.message)

    def to_json_line(self) -> str:
        # Fixed key set: dataclass -> dict -> json
        return json.dumps(asdict(self), ensure_ascii=False)
