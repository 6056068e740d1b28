from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..models.raw_row import RawRow
from ..models.records import BatchRecord
from ..services.catalog import ReferenceCatalog
from .base import ColumnSpec, ImportLayout, UniqueKey
from .primitives import check_date, check_positive_whole, is_blank, require, to_int

"""Batch import layout: Batch Name | Start Date | Duration (Months) | Course Name."""


class BatchLayout(ImportLayout):
    kind = "batches"
    noun = "batch"
    sheet_name = "Batches"
    reference_noun = "course"
    columns = (
        ColumnSpec("name", "Batch Name", "Batch 2024-1", aliases=("batch", "batch_name")),
        ColumnSpec("start_date", "Start Date", "2024-01-15", aliases=("start",), is_date=True),
        ColumnSpec("duration_months", "Duration (Months)", "12", aliases=("duration", "months")),
        ColumnSpec("course", "Course Name", "Computer Science", aliases=("course_name",)),
    )
    unique_keys = (UniqueKey("batch name", lambda r: r.name),)

    def interpret(self, raw: RawRow) -> BatchRecord:
        values = self.scalar_values(raw)
        return BatchRecord(
            name=values.get("name", ""),
            start_date=values.get("start_date", ""),
            duration_months=values.get("duration_months", ""),
            course=values.get("course", ""),
        )

    def blank_record(self) -> BatchRecord:
        return BatchRecord()

    def field_errors(self, record: BatchRecord, catalog: ReferenceCatalog) -> list[str]:  # type: ignore[override]
        errors: list[str] = []
        # 1. required
        for message in (
            require(record.name, "Batch name is required"),
            require(record.start_date, "Start date is required"),
            require(record.course, "Course is required"),
        ):
            if message:
                errors.append(message)

        # 2. format
        if not is_blank(record.start_date):
            check = check_date(
                record.start_date,
                self.validation.date_formats,
                min_year=self.validation.min_year,
                max_year=self.max_year,
                field="start date",
            )
            if check.error:
                errors.append(check.error)
        if not is_blank(record.duration_months):
            message = check_positive_whole(record.duration_months, "Duration")
            if message:
                errors.append(message)

        # 4. reference resolution (mutates the record)
        record.course_id = None
        if not is_blank(record.course):
            course_id = catalog.lookup(record.course)
            if course_id is None:
                errors.append(f'Course "{record.course}" not found')
            else:
                record.course_id = course_id
        return errors

    def to_payload(self, record: BatchRecord, context: Mapping[str, Any] | None = None) -> dict[str, Any]:  # type: ignore[override]
        check = check_date(
            record.start_date,
            self.validation.date_formats,
            min_year=self.validation.min_year,
            max_year=self.max_year,
        )
        return {
            "name": record.name.strip(),
            "start_date": check.value.isoformat() if check.value else record.start_date,
            "duration_months": to_int(record.duration_months),
            "course": record.course_id,
        }

    def key_fields(self, record: BatchRecord) -> dict[str, str]:  # type: ignore[override]
        return {
            "name": record.name,
            "start_date": record.start_date,
            "course": record.course,
        }
