from __future__ import annotations

from tabular_import.layouts.registry import get_layout
from tabular_import.models.records import BatchRecord
from tabular_import.models.validation_result import ValidationResult
from tabular_import.services.validation_table import build_validation_table, render_validation_table


def _results() -> list[ValidationResult]:
    return [
        ValidationResult(row=2, data=BatchRecord(name="B1", start_date="2024-01-15", course="General")),
        ValidationResult(
            row=3,
            data=BatchRecord(name="", start_date="2024-13-01", course="General"),
            field_errors=("Batch name is required", "Invalid start date"),
        ),
    ]


def test_columns_follow_layout_key_fields():
    frame = build_validation_table(get_layout("batches"), _results())
    assert list(frame.columns) == ["row", "name", "start_date", "course", "valid", "errors"]
    assert frame["row"].tolist() == [2, 3]
    assert frame["valid"].tolist() == [True, False]
    assert frame.loc[1, "errors"] == "Batch name is required; Invalid start date"
    assert frame.loc[0, "errors"] == ""


def test_render_only_invalid_rows():
    frame = build_validation_table(get_layout("batches"), _results())
    text = render_validation_table(frame, only_invalid=True)
    assert "Batch name is required" in text
    assert "B1" not in text


def test_render_empty_table():
    frame = build_validation_table(get_layout("participants"), [])
    assert list(frame.columns) == ["row", "name", "email", "phone", "valid", "errors"]
    assert render_validation_table(frame) == "(no rows)"


def test_render_only_invalid_when_all_valid():
    frame = build_validation_table(get_layout("batches"), _results()[:1])
    assert render_validation_table(frame, only_invalid=True) == "(no rows)"
