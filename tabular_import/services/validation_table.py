from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from ..layouts.base import ImportLayout
from ..models.validation_result import ValidationResult

"""Validation table: one line per row for review before submission."""

ERROR_SEPARATOR = "; "


def build_validation_table(layout: ImportLayout, results: Sequence[ValidationResult]) -> pd.DataFrame:
    """Columns: row | <layout key fields> | valid | errors."""
    key_columns = [c for c in layout.key_fields(layout.blank_record())]
    records = []
    for result in results:
        line: dict[str, object] = {"row": result.row}
        line.update(layout.key_fields(result.data))
        line["valid"] = result.is_valid
        line["errors"] = ERROR_SEPARATOR.join(result.errors)
        records.append(line)
    columns = ["row", *key_columns, "valid", "errors"]
    frame = pd.DataFrame.from_records(records, columns=columns)
    if not frame.empty:
        frame["row"] = frame["row"].astype(int)
        frame["valid"] = frame["valid"].astype(bool)
    return frame


def render_validation_table(frame: pd.DataFrame, *, only_invalid: bool = False) -> str:
    if only_invalid and not frame.empty:
        frame = frame[~frame["valid"]]
    if frame.empty:
        return "(no rows)"
    return frame.to_string(index=False)
