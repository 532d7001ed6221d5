from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

"""CSV reader for practice-management exports.

The exports come from arbitrary software; the tokenizer is small
and forgiving:
- delimiter auto-detected (comma vs semicolon) from the first line only
- RFC4180-style quoting: quoted fields may hold delimiters / newlines, ``""`` is
  an escaped quote
- every cell is trimmed; rows whose cells are all empty are dropped
- an unterminated quote swallows the remainder of the input into one field

First parsed row is the header row, the rest are data rows.
"""

__all__ = [
    "FileFormatError",
    "CsvData",
    "detect_delimiter",
    "parse_csv",
    "load_csv_text",
    "read_csv_file",
]

QUOTE = '"'
MIN_ROWS = 2  # header + at least one data row


class FileFormatError(Exception):
    """Raised when the uploaded file cannot be used (extension, encoding, too few rows)."""


@dataclass(frozen=True)
class CsvData:
    file_name: str
    headers: list[str]
    rows: list[list[str]]  # data rows, index-aligned with headers


def detect_delimiter(text: str) -> str:
    """Return ';' when the first line has strictly more semicolons than commas, else ','."""
    first_line = text.split("\n", 1)[0]
    return ";" if first_line.count(";") > first_line.count(",") else ","


def parse_csv(text: str) -> list[list[str]]:
    """Tokenize CSV text into rows of trimmed string cells."""
    delimiter = detect_delimiter(text)
    rows: list[list[str]] = []
    row: list[str] = []
    cell: list[str] = []
    in_quotes = False

    def end_row() -> None:
        row.append("".join(cell).strip())
        if any(c != "" for c in row):
            rows.append(list(row))
        row.clear()
        cell.clear()

    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if in_quotes:
            if ch == QUOTE:
                if i + 1 < n and text[i + 1] == QUOTE:
                    cell.append(QUOTE)
                    i += 2
                    continue
                in_quotes = False
            else:
                cell.append(ch)
            i += 1
            continue

        if ch == QUOTE:
            in_quotes = True
        elif ch == delimiter:
            row.append("".join(cell).strip())
            cell.clear()
        elif ch == "\n":
            end_row()
        elif ch != "\r":
            cell.append(ch)
        i += 1

    # Flush pending field/row (no trailing newline)
    if cell or row:
        end_row()
    return rows


def load_csv_text(text: str, file_name: str = "<text>") -> CsvData:
    """Split parsed text into headers and data rows.

    Raises:
        FileFormatError: fewer than 2 non-empty rows
    """
    rows = parse_csv(text)
    if len(rows) < MIN_ROWS:
        raise FileFormatError(f"'{file_name}' contains no data rows to import")
    return CsvData(file_name=file_name, headers=rows[0], rows=rows[1:])


def read_csv_file(path: Path) -> CsvData:
    """Read and tokenize a UTF-8 ``.csv`` file.

    Raises:
        FileFormatError: wrong extension, unreadable file, invalid UTF-8, or too few rows
    """
    if path.suffix.lower() != ".csv":
        raise FileFormatError(f"not a CSV file: {path.name}")
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise FileFormatError(f"cannot read {path.name}: {e}") from e
    try:
        # utf-8-sig drops the BOM some spreadsheet exports prepend
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise FileFormatError(f"{path.name} is not valid UTF-8: {e}") from e
    return load_csv_text(text, file_name=path.name)
