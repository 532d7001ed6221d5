from __future__ import annotations

from ..models.import_result import ImportResult

"""SUMMARY line rendering for the CSV patient import."""


def _format_seconds(seconds: float) -> str:
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        # Avoid scientific notation for very small values
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.2f}".rstrip("0").rstrip(".")


def render_summary_line(result: ImportResult, elapsed_seconds: float = 0.0) -> str:
    """Render the SUMMARY line of an import run.

    Format:
    SUMMARY rows={processed}/{total} patients={n} consultations={n} errors={n}
    cancelled={0|1} elapsed_sec={elapsed}

    Examples:
        >>> render_summary_line(ImportResult(total=3, patients_imported=2, processed_rows=3), 1.5)
        'SUMMARY rows=3/3 patients=2 consultations=0 errors=0 cancelled=0 elapsed_sec=1.5'
    """
    return (
        f"SUMMARY rows={result.processed_rows}/{result.total} "
        f"patients={result.patients_imported} "
        f"consultations={result.consultations_imported} "
        f"errors={len(result.errors)} "
        f"cancelled={int(result.cancelled)} "
        f"elapsed_sec={_format_seconds(elapsed_seconds)}"
    )
