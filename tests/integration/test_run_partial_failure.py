from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

from tabular_import.cli.main import main as cli_main
from tabular_import.remote.gateway import DryRunGateway, SubmissionError

"""Integration test: partial failure (one invalid row, one rejected row).

- invalid rows are never submitted
- the rejected row does not stop the rows after it
- exit code 2, SUMMARY counts, and one JSON line per problem in the error log
"""


class RejectingGateway(DryRunGateway):
    def __init__(self, cfg, reject: set[str]) -> None:
        super().__init__(cfg)
        self.reject = reject

    async def create_record(self, kind, payload):
        if payload["name"] in self.reject:
            raise SubmissionError(None)
        await super().create_record(kind, payload)


def _read_error_log(logs_dir: Path) -> list[dict[str, Any]]:
    files = sorted(logs_dir.glob("errors-*.log"))
    assert len(files) == 1, files
    return [json.loads(line) for line in files[0].read_text(encoding="utf-8").splitlines()]


def test_partial_failure_run(write_config: Path, write_csv, temp_workdir: Path, capsys: Any) -> None:
    path = write_csv("batches.csv", [
        "Batch Name,Start Date,Duration (Months),Course Name",
        "B1,2024-01-15,12,General",
        "B2,2024-01-15,twelve,General",
        "B3,2024-03-01,6,Computer Science",
        "B4,2024-04-01,6,General",
    ])
    gateway_holder: list[RejectingGateway] = []

    def _factory(cfg, target):
        gateway_holder.append(RejectingGateway(cfg, {"B3"}))
        return gateway_holder[0]

    with patch("tabular_import.cli.main._build_gateway", side_effect=_factory):
        exit_code = cli_main(["import", "batches", str(path)])
    output = capsys.readouterr().out

    assert exit_code == 2
    assert "SUMMARY kind=batches file=batches.csv rows=4 valid=3 invalid=1 success=2 failed=1" in output
    assert "WARN row=4 B3: Failed to create batch" in output
    # rows after the rejected one are still submitted, in file order
    assert [p["name"] for _, p in gateway_holder[0].created] == ["B1", "B4"]

    records = _read_error_log(temp_workdir / "logs")
    assert [(r["row"], r["error_type"]) for r in records] == [
        (3, "VALIDATION_ERROR"),
        (4, "SUBMISSION_ERROR"),
    ]
    assert records[0]["message"] == "Duration must be a number"
    assert records[1]["message"] == "Failed to create batch"
    assert all(r["file"] == "batches.csv" and r["kind"] == "batches" for r in records)
    assert "error log:" in output


def test_duplicate_rows_reported_against_first_occurrence(write_config: Path, write_csv, capsys: Any) -> None:
    path = write_csv("batches.csv", [
        "Batch Name,Start Date,Duration (Months),Course Name",
        "Same,2024-01-15,12,General",
        "Other,2024-01-15,12,General",
        "same,2024-02-15,6,General",
    ])
    exit_code = cli_main(["validate", "batches", str(path)])
    output = capsys.readouterr().out
    assert exit_code == 2
    assert "Duplicate batch name found in row 2" in output
    assert "SUMMARY kind=batches file=batches.csv rows=3 valid=2 invalid=1" in output


def test_parse_error_is_logged_with_file_level_row(write_config: Path, write_csv, temp_workdir: Path) -> None:
    path = write_csv("batches.csv", [""])
    assert cli_main(["import", "batches", str(path), "--dry-run"]) == 1
    records = _read_error_log(temp_workdir / "logs")
    assert len(records) == 1
    assert records[0]["row"] == -1
    assert records[0]["error_type"] == "PARSE_ERROR"
    assert records[0]["message"] == "file is empty"
