from __future__ import annotations

from collections.abc import Iterable

from ..models.processing_result import ImportOutcome, ImportRun, ImportSummary

"""Result aggregation and SUMMARY line rendering.

aggregate() is a pure reduction and may be recomputed at any time from the
outcome list. The SUMMARY line format:

SUMMARY kind={kind} file={file} rows={rows} valid={valid} invalid={invalid}
success={success} failed={failed} elapsed_sec={elapsed}
"""


def aggregate(outcomes: Iterable[ImportOutcome]) -> ImportSummary:
    """Reduce outcomes to counts plus the failing outcomes in row order."""
    outcomes = list(outcomes)
    failures = tuple(o for o in outcomes if not o.succeeded)
    return ImportSummary(
        success_count=len(outcomes) - len(failures),
        failure_count=len(failures),
        failures=failures,
    )


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(run: ImportRun) -> str:
    """Render the SUMMARY line for one import run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> run = ImportRun(
        ...     kind="batches", file_name="batches.csv", validations=(), outcomes=(),
        ...     summary=ImportSummary(0, 0), start_time=start, end_time=end,
        ... )
        >>> render_summary_line(run)
        'SUMMARY kind=batches file=batches.csv rows=0 valid=0 invalid=0 success=0 failed=0 elapsed_sec=2'
    """
    return (
        f"SUMMARY kind={run.kind} "
        f"file={run.file_name} "
        f"rows={len(run.validations)} "
        f"valid={run.valid_rows} "
        f"invalid={run.invalid_rows} "
        f"success={run.summary.success_count} "
        f"failed={run.summary.failure_count} "
        f"elapsed_sec={_format_seconds(run.elapsed_seconds)}"
    )
