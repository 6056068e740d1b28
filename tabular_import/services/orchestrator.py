from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..layouts.base import ImportLayout
from ..logging.error_log import ErrorLogBuffer
from ..models.error_record import PARSE_ERROR, SUBMISSION_ERROR, VALIDATION_ERROR, ErrorRecord
from ..models.processing_result import ImportOutcome, ImportRun
from ..models.raw_row import RawRow
from ..models.records import ImportRecord
from ..models.validation_result import ValidationResult
from ..parsing.reader import FileKind, ParseError, detect_file_kind, parse_table
from ..remote.gateway import RecordGateway
from .catalog import ReferenceCatalog
from .submitter import BatchSubmitter, ProgressCallback
from .summary import aggregate
from .validator import RowValidator

"""Service orchestration for one import run.

file -> parse -> interpret -> reference catalog -> validate -> submit -> aggregate

Parsing and validation finish completely before the first row is submitted.
Every validation and submission failure is buffered into the run's error log;
the caller flushes it once at the end.
"""

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Upload:
    """An uploaded file: its name, declared kind and raw bytes."""
    name: str
    kind: FileKind
    payload: bytes


@dataclass(frozen=True)
class PreparedImport:
    """Parsed and validated rows of one upload, ready for submission."""
    upload: Upload
    layout: ImportLayout
    catalog: ReferenceCatalog
    raw_rows: tuple[RawRow, ...]
    results: tuple[ValidationResult, ...]

    @property
    def valid_results(self) -> list[ValidationResult]:
        return [r for r in self.results if r.is_valid]


def load_upload(path: Path) -> Upload:
    """Read ``path`` from disk. Unsupported extensions and unreadable files raise ParseError."""
    kind = detect_file_kind(path)
    try:
        payload = path.read_bytes()
    except OSError as e:
        raise ParseError(f"cannot read file {path.name}: {e.strerror or e}") from e
    return Upload(name=path.name, kind=kind, payload=payload)


def parse_upload(upload: Upload, layout: ImportLayout) -> list[RawRow]:
    return parse_table(upload.payload, upload.kind, date_columns=layout.date_columns)


def interpret_rows(layout: ImportLayout, raw_rows: Sequence[RawRow]) -> list[ImportRecord]:
    return [layout.interpret(raw) for raw in raw_rows]


async def load_catalog(gateway: RecordGateway, layout: ImportLayout) -> ReferenceCatalog:
    """Fetch reference entities once per run (empty catalog when the kind needs none)."""
    if not layout.needs_references:
        return ReferenceCatalog()
    entities = await gateway.list_reference_entities(layout.kind)
    logger.info(f"loaded {len(entities)} {layout.reference_noun} reference(s)")
    return ReferenceCatalog(entities)


def prepare_import(
    upload: Upload,
    layout: ImportLayout,
    catalog: ReferenceCatalog,
    raw_rows: Sequence[RawRow] | None = None,
) -> PreparedImport:
    """Parse (unless raw_rows are given), interpret and validate an upload.

    ParseError propagates untouched.
    """
    if raw_rows is None:
        raw_rows = parse_upload(upload, layout)
    records = interpret_rows(layout, raw_rows)
    results = RowValidator(layout, catalog).validate_all(records, [r.row_number for r in raw_rows])
    logger.info(
        f"file={upload.name} kind={layout.kind} rows={len(results)} "
        f"valid={sum(1 for r in results if r.is_valid)}"
    )
    return PreparedImport(
        upload=upload,
        layout=layout,
        catalog=catalog,
        raw_rows=tuple(raw_rows),
        results=tuple(results),
    )


def record_parse_error(error_log: ErrorLogBuffer, file_name: str, kind: str, error: ParseError) -> None:
    error_log.append(ErrorRecord.create(file_name, kind, -1, PARSE_ERROR, str(error)))


def record_validation_errors(error_log: ErrorLogBuffer, prepared: PreparedImport) -> None:
    for result in prepared.results:
        if not result.is_valid:
            error_log.append(
                ErrorRecord.create(
                    prepared.upload.name,
                    prepared.layout.kind,
                    result.row,
                    VALIDATION_ERROR,
                    "; ".join(result.errors),
                )
            )


def record_submission_errors(
    error_log: ErrorLogBuffer,
    prepared: PreparedImport,
    outcomes: Sequence[ImportOutcome],
) -> None:
    for outcome in outcomes:
        if not outcome.succeeded:
            error_log.append(
                ErrorRecord.create(
                    prepared.upload.name,
                    prepared.layout.kind,
                    outcome.row,
                    SUBMISSION_ERROR,
                    outcome.error or "",
                )
            )


async def submit_prepared(
    prepared: PreparedImport,
    gateway: RecordGateway,
    *,
    pause_seconds: float = 0.0,
    context: Mapping[str, Any] | None = None,
    error_log: ErrorLogBuffer | None = None,
    on_progress: ProgressCallback | None = None,
    start_time: datetime | None = None,
) -> ImportRun:
    """Submit the valid rows of a prepared upload and build the ImportRun."""
    start = start_time or datetime.now(UTC)
    submitter = BatchSubmitter(gateway, prepared.layout, pause_seconds=pause_seconds, context=context)
    outcomes = await submitter.submit(prepared.results, on_progress=on_progress)
    summary = aggregate(outcomes)
    if error_log is not None:
        record_validation_errors(error_log, prepared)
        record_submission_errors(error_log, prepared, outcomes)
    for failure in summary.failures:
        logger.warning(f"row={failure.row} {failure.label}: {failure.error}")
    return ImportRun(
        kind=prepared.layout.kind,
        file_name=prepared.upload.name,
        validations=prepared.results,
        outcomes=tuple(outcomes),
        summary=summary,
        start_time=start,
        end_time=datetime.now(UTC),
    )


async def run_import(
    upload: Upload,
    layout: ImportLayout,
    gateway: RecordGateway,
    *,
    pause_seconds: float = 0.0,
    context: Mapping[str, Any] | None = None,
    error_log: ErrorLogBuffer | None = None,
    on_progress: ProgressCallback | None = None,
) -> ImportRun:
    """End-to-end run. ParseError is logged to error_log and re-raised."""
    start = datetime.now(UTC)
    try:
        raw_rows = parse_upload(upload, layout)
    except ParseError as e:
        if error_log is not None:
            record_parse_error(error_log, upload.name, layout.kind, e)
        raise
    catalog = await load_catalog(gateway, layout)
    prepared = prepare_import(upload, layout, catalog, raw_rows)
    return await submit_prepared(
        prepared,
        gateway,
        pause_seconds=pause_seconds,
        context=context,
        error_log=error_log,
        on_progress=on_progress,
        start_time=start,
    )
