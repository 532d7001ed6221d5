from __future__ import annotations

import math
import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display service with tqdm (TTY only).

The import reports progress as a percentage after every row, whatever the row's
outcome: percent = round((i + 1) / total * 100), halves rounded up. The value is
monotonic because rows are processed strictly in order.

The tqdm bar is only drawn when stdout is a TTY, so CI logs are not filled with
control sequences.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
    "progress_percent",
]


def is_tty_enabled() -> bool:
    """Check if TTY output is enabled."""
    return sys.stdout.isatty()


def progress_percent(done: int, total: int) -> int:
    """Whole percentage of ``done`` rows out of ``total`` (half-up rounding)."""
    if total <= 0:
        return 100
    return int(math.floor(done / total * 100 + 0.5))


class ProgressTracker:
    """Row progress tracker.

    Keeps the current percentage regardless of TTY state; the tqdm bar is an
    optional view of it.
    """

    def __init__(self, total_rows: int, *, description: str = "Importing rows") -> None:
        self.total_rows = total_rows
        self.description = description
        self.done_rows = 0
        self.percent = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=description,
                unit="row",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def finish_row(self) -> int:
        """Record one more processed row and return the new percentage."""
        self.done_rows += 1
        self.percent = progress_percent(self.done_rows, self.total_rows)
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
        return self.percent

    def set_postfix(self, **kwargs: Any) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
