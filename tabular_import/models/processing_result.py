from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .validation_result import ValidationResult

"""Submission result models for the bulk tabular import pipeline.

ImportOutcome is produced once per submitted row; ImportSummary is the
reduction of a complete outcome list. Both are immutable: a new submission run
produces new objects and never merges into an earlier summary.
"""


@dataclass(frozen=True)
class ImportOutcome:
    """Result of attempting to create one validated row remotely."""
    row: int  # 1-based source row number
    label: str  # Human label for reporting (record name)
    error: str | None = None  # None = success

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ImportSummary:
    """Tally of a submission run."""
    success_count: int
    failure_count: int
    failures: tuple[ImportOutcome, ...] = ()

    @property
    def attempted(self) -> int:
        return self.success_count + self.failure_count


@dataclass(frozen=True)
class ImportRun:
    """Everything a caller needs after one end-to-end import run.

    validations covers every data row; outcomes only the rows that were valid
    and therefore submitted.
    """
    kind: str
    file_name: str
    validations: tuple[ValidationResult, ...]
    outcomes: tuple[ImportOutcome, ...]
    summary: ImportSummary
    start_time: datetime
    end_time: datetime

    @property
    def elapsed_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    @property
    def valid_rows(self) -> int:
        return sum(1 for v in self.validations if v.is_valid)

    @property
    def invalid_rows(self) -> int:
        return len(self.validations) - self.valid_rows
