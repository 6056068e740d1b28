from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display service with tqdm (TTY only).

The submitter publishes a SubmissionProgress after every row; ProgressTracker
turns those into a single tqdm bar. In non-TTY environments (CI, redirected
output) no bar is created so logs stay free of control sequences.
"""

__all__ = [
    "ProgressTracker",
    "SubmissionProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """Check if TTY output is enabled.

    Returns:
        True if stdout is a TTY and progress should be displayed, False otherwise
    """
    return sys.stdout.isatty()


@dataclass(frozen=True)
class SubmissionProgress:
    """Rows attempted so far out of the rows that will be attempted."""
    attempted: int
    total: int

    @property
    def fraction(self) -> float:
        if self.total == 0:
            return 1.0
        return self.attempted / self.total

    @property
    def done(self) -> bool:
        return self.attempted >= self.total


class ProgressTracker:
    """Row progress bar for a submission run.

    Usable directly as the submitter's on_progress callback.
    """

    def __init__(self, total_rows: int, *, description: str = "Submitting rows") -> None:
        """Initialize progress tracker.

        Args:
            total_rows: Number of rows that will be submitted
            description: Description for the progress bar
        """
        self.total_rows = total_rows
        self.description = description
        self.attempted = 0

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

    def __call__(self, progress: SubmissionProgress) -> None:
        step = progress.attempted - self.attempted
        self.attempted = progress.attempted
        if self.enabled and self.pbar is not None and step > 0:
            self.pbar.update(step)

    def set_postfix(self, **kwargs: Any) -> None:
        """Set postfix information (ok / failed counts) on the progress bar."""
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        """Close the progress bar."""
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
