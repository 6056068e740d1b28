from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from tabular_import.layouts.registry import get_layout
from tabular_import.logging.error_log import ErrorLogBuffer
from tabular_import.models.config_models import ImportConfig, KindConfig
from tabular_import.models.reference import ReferenceEntity
from tabular_import.parsing.reader import FileKind, ParseError
from tabular_import.remote.gateway import DryRunGateway
from tabular_import.services.catalog import ReferenceCatalog
from tabular_import.services.orchestrator import (
    Upload,
    load_catalog,
    load_upload,
    prepare_import,
    run_import,
)

BATCH_CSV = (
    "Batch Name,Start Date,Duration (Months),Course Name\n"
    "B1,2024-01-15,12,General\n"
    "\n"
    "B2,,12,General\n"
    "B3,2024-03-01,,Computer Science\n"
).encode("utf-8")


def _config() -> ImportConfig:
    return ImportConfig(kinds={
        "batches": KindConfig(reference_entities=(
            ReferenceEntity(1, "Computer Science"),
            ReferenceEntity(7, "General"),
        )),
    })


def test_load_upload_detects_kind(temp_workdir: Path):
    path = temp_workdir / "data" / "batches.CSV"
    path.write_bytes(BATCH_CSV)
    upload = load_upload(path)
    assert upload == Upload(name="batches.CSV", kind=FileKind.DELIMITED, payload=BATCH_CSV)


def test_load_upload_missing_file(temp_workdir: Path):
    with pytest.raises(ParseError, match="cannot read file nope.xlsx"):
        load_upload(temp_workdir / "nope.xlsx")


def test_prepare_import_keeps_physical_row_numbers(course_catalog: ReferenceCatalog):
    upload = Upload("batches.csv", FileKind.DELIMITED, BATCH_CSV)
    prepared = prepare_import(upload, get_layout("batches"), course_catalog)
    assert [r.row for r in prepared.results] == [2, 4, 5]
    assert [r.row for r in prepared.valid_results] == [2, 5]
    assert prepared.results[1].errors == ["Start date is required"]
    assert len(prepared.raw_rows) == 3


def test_load_catalog_skipped_for_kinds_without_references():
    gateway = DryRunGateway(_config())
    catalog = asyncio.run(load_catalog(gateway, get_layout("courses")))
    assert len(catalog) == 0


def test_run_import_end_to_end(temp_workdir: Path):
    gateway = DryRunGateway(_config())
    error_log = ErrorLogBuffer(temp_workdir / "logs")
    upload = Upload("batches.csv", FileKind.DELIMITED, BATCH_CSV)

    run = asyncio.run(run_import(upload, get_layout("batches"), gateway, error_log=error_log))

    assert run.kind == "batches"
    assert run.file_name == "batches.csv"
    assert (run.valid_rows, run.invalid_rows) == (2, 1)
    assert (run.summary.success_count, run.summary.failure_count) == (2, 0)
    assert [p["course"] for _, p in gateway.created] == [7, 1]
    assert gateway.created[1][1]["duration_months"] is None
    assert [(r.row, r.error_type) for r in error_log.records] == [(4, "VALIDATION_ERROR")]
    assert run.elapsed_seconds >= 0


def test_run_import_parse_error_logged_as_file_level(temp_workdir: Path):
    error_log = ErrorLogBuffer(temp_workdir / "logs")
    upload = Upload("batches.csv", FileKind.DELIMITED, b"Batch Name,Start Date\n")

    with pytest.raises(ParseError):
        asyncio.run(run_import(upload, get_layout("batches"), DryRunGateway(_config()), error_log=error_log))

    [record] = error_log.records
    assert record.row == -1
    assert record.error_type == "PARSE_ERROR"
    assert record.message == "no data rows found below the header"
