from __future__ import annotations

import json
import re
from pathlib import Path

from tabular_import.logging.error_log import ErrorLogBuffer, ErrorRecord
from tabular_import.models.error_record import SUBMISSION_ERROR, VALIDATION_ERROR

KEYS = {"timestamp", "file", "kind", "row", "error_type", "message"}


def test_error_log_buffer_flush(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("b.csv", "batches", 3, VALIDATION_ERROR, "Start date is required"))
    buf.append(ErrorRecord.create("b.csv", "batches", 5, SUBMISSION_ERROR, "Failed to create batch"))
    path = buf.flush()
    assert path is not None and path.exists()
    assert path.parent.resolve() == (temp_workdir / "logs").resolve()
    assert re.fullmatch(r"errors-\d{8}-\d{6}\.log", path.name)
    # ファイル内容検証
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    for raw in lines:
        assert set(json.loads(raw)) == KEYS
    # flush 後バッファクリア
    assert len(buf) == 0


def test_error_log_buffer_multiple_flushes(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("b.csv", "batches", 2, VALIDATION_ERROR, "dup"))
    path = buf.flush()
    size1 = path.stat().st_size
    buf.append(ErrorRecord.create("b.csv", "batches", 3, VALIDATION_ERROR, "dup2"))
    path2 = buf.flush()
    assert path == path2
    assert path2.stat().st_size > size1


def test_empty_buffer_writes_nothing(tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path / "logs")
    assert buf.flush() is None
    assert not (tmp_path / "logs").exists()


def test_custom_directory_is_created(tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path / "nested" / "logs")
    buf.append(ErrorRecord.create("p.csv", "participants", 2, VALIDATION_ERROR, "Invalid email format"))
    path = buf.flush()
    assert path.parent == tmp_path / "nested" / "logs"
    assert buf.records == []
