from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..models.raw_row import RawRow
from ..models.records import CourseRecord, SubjectGroup
from ..services.catalog import ReferenceCatalog
from .base import ColumnSpec, ImportLayout, UniqueKey, parse_repeating_groups
from .primitives import check_non_negative_whole, check_positive_whole, is_blank, match_token, require, to_int

"""Course import layout.

Columns: Course Name | Short Code | Duration (Months) followed by repeated
subject blocks of six cells each:

    Subject N | Type N | TE Max N | CE Max N | PE Max N | PW Max N

Theory subjects carry TE/CE maxima, practical subjects PE/PW maxima. Reading
stops at the first block without a subject name.
"""

SUBJECT_START_INDEX = 3
SUBJECT_STRIDE = 6
TEMPLATE_SUBJECTS = 3

THEORY = "theory"
PRACTICAL = "practical"
SUBJECT_TYPES = {THEORY: THEORY, PRACTICAL: PRACTICAL}

_EXAMPLE_SUBJECTS = [
    ["Programming", THEORY, "80", "20", "", ""],
    ["Database Lab", PRACTICAL, "", "", "15", "5"],
    ["Web Development", THEORY, "70", "30", "", ""],
]


class CourseLayout(ImportLayout):
    kind = "courses"
    noun = "course"
    sheet_name = "Courses"
    columns = (
        ColumnSpec("name", "Course Name", "Computer Science", aliases=("course", "course_name")),
        ColumnSpec("short_code", "Short Code", "CS", aliases=("code", "shortcode")),
        ColumnSpec("duration_months", "Duration (Months)", "12", aliases=("duration", "months")),
    )
    unique_keys = (
        UniqueKey("course name", lambda r: r.name),
        UniqueKey("short code", lambda r: r.short_code),
    )

    def template_header(self) -> list[str]:
        header = super().template_header()
        for n in range(1, TEMPLATE_SUBJECTS + 1):
            header += [f"Subject {n}", f"Type {n}", f"TE Max {n}", f"CE Max {n}", f"PE Max {n}", f"PW Max {n}"]
        return header

    def template_example(self) -> list[str]:
        row = super().template_example()
        for block in _EXAMPLE_SUBJECTS:
            row += block
        return row

    def interpret(self, raw: RawRow) -> CourseRecord:
        values = self.scalar_values(raw)
        subjects = [
            SubjectGroup(
                position=n,
                name=block[0],
                subject_type=block[1],
                te_max=block[2],
                ce_max=block[3],
                pe_max=block[4],
                pw_max=block[5],
            )
            for n, block in enumerate(parse_repeating_groups(raw, SUBJECT_START_INDEX, SUBJECT_STRIDE), start=1)
        ]
        return CourseRecord(
            name=values.get("name", ""),
            short_code=values.get("short_code", ""),
            duration_months=values.get("duration_months", ""),
            subjects=subjects,
        )

    def blank_record(self) -> CourseRecord:
        return CourseRecord()

    @staticmethod
    def _title(subject: SubjectGroup) -> str:
        return f'Subject "{subject.name}"' if not is_blank(subject.name) else f"Subject {subject.position}"

    def _subject_format_errors(self, subject: SubjectGroup) -> tuple[list[str], str | None]:
        errors: list[str] = []
        title = self._title(subject)
        declared = None
        if not is_blank(subject.subject_type):
            declared = match_token(subject.subject_type, SUBJECT_TYPES)
            if declared is None:
                errors.append(f"{title} type must be theory or practical")

        for label, value in (
            ("TE Max", subject.te_max),
            ("CE Max", subject.ce_max),
            ("PE Max", subject.pe_max),
            ("PW Max", subject.pw_max),
        ):
            if not is_blank(value):
                message = check_non_negative_whole(value, f"{title} {label}")
                if message:
                    errors.append(message)
        return errors, declared

    def _subject_group_error(self, subject: SubjectGroup, declared: str | None) -> str | None:
        # 排他: theory 系 XOR practical 系
        title = self._title(subject)
        has_theory, has_practical = subject.has_theory, subject.has_practical
        if not has_theory and not has_practical:
            return f"{title} must have either theory or practical marks"
        if has_theory and has_practical:
            return f"{title} cannot have both theory and practical marks"
        if declared == THEORY and has_practical:
            return f"{title} is marked theory but has practical marks"
        if declared == PRACTICAL and has_theory:
            return f"{title} is marked practical but has theory marks"
        return None

    def field_errors(self, record: CourseRecord, catalog: ReferenceCatalog) -> list[str]:  # type: ignore[override]
        errors: list[str] = []
        # 1. required (course fields, then every subject name)
        for message in (
            require(record.name, "Course name is required"),
            require(record.short_code, "Short code is required"),
        ):
            if message:
                errors.append(message)
        if not record.subjects:
            errors.append("At least one subject is required")
        for subject in record.subjects:
            if is_blank(subject.name):
                errors.append(f"Subject {subject.position} name is required")

        # 2. format
        if not is_blank(record.duration_months):
            message = check_positive_whole(record.duration_months, "Duration")
            if message:
                errors.append(message)
        declared_types: list[str | None] = []
        for subject in record.subjects:
            subject_errors, declared = self._subject_format_errors(subject)
            errors.extend(subject_errors)
            declared_types.append(declared)

        # 3. sub-group exclusivity
        for subject, declared in zip(record.subjects, declared_types, strict=True):
            message = self._subject_group_error(subject, declared)
            if message:
                errors.append(message)
        return errors

    def to_payload(self, record: CourseRecord, context: Mapping[str, Any] | None = None) -> dict[str, Any]:  # type: ignore[override]
        return {
            "name": record.name.strip(),
            "short_code": record.short_code.strip(),
            "duration_months": to_int(record.duration_months),
            "subjects": [
                {
                    "name": s.name.strip(),
                    "te_max": to_int(s.te_max),
                    "ce_max": to_int(s.ce_max),
                    "pe_max": to_int(s.pe_max),
                    "pw_max": to_int(s.pw_max),
                }
                for s in record.subjects
            ],
        }

    def key_fields(self, record: CourseRecord) -> dict[str, str]:  # type: ignore[override]
        return {
            "name": record.name,
            "short_code": record.short_code,
            "subjects": str(len(record.subjects)),
        }
