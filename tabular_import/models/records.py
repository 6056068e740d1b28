from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

"""ImportRecord models for the bulk tabular import pipeline.

An ImportRecord is the domain-shaped interpretation of a RawRow for one import
kind. Records are mutable on purpose: the caller may hand-edit a record before
re-validation, and the validator attaches resolved reference ids to it.

Scalar cells are kept as text; numeric and date parsing is a validation concern
so that a malformed cell turns into a row error instead of a parse failure.
"""

__all__ = [
    "BatchRecord",
    "CourseRecord",
    "SubjectGroup",
    "ParticipantRecord",
    "StudentRecord",
    "ImportRecord",
]


@dataclass
class BatchRecord:
    """A batch row: name, start date, optional duration and a course by name."""
    name: str = ""
    start_date: str = ""
    duration_months: str = ""
    course: str = ""  # Course display name (resolved via ReferenceCatalog)
    course_id: int | None = None  # Resolved id, set by the validator

    @property
    def label(self) -> str:
        return self.name


@dataclass
class SubjectGroup:
    """One repeated subject block of a course row.

    position is the 1-based index of the block inside the row. Theory subjects
    carry TE/CE maxima, practical subjects PE/PW maxima.
    """
    position: int
    name: str = ""
    subject_type: str = ""  # theory | practical
    te_max: str = ""
    ce_max: str = ""
    pe_max: str = ""
    pw_max: str = ""

    @property
    def has_theory(self) -> bool:
        return bool(self.te_max.strip() or self.ce_max.strip())

    @property
    def has_practical(self) -> bool:
        return bool(self.pe_max.strip() or self.pw_max.strip())


@dataclass
class CourseRecord:
    """A course row with zero or more subject sub-groups."""
    name: str = ""
    short_code: str = ""
    duration_months: str = ""
    subjects: list[SubjectGroup] = field(default_factory=list)

    @property
    def label(self) -> str:
        return self.name


@dataclass
class ParticipantRecord:
    """A workshop participant row."""
    name: str = ""
    email: str = ""
    phone: str = ""
    gender: str = ""
    participant_type: str = ""
    address: str = ""  # optional

    @property
    def label(self) -> str:
        return self.name


@dataclass
class StudentRecord:
    """A student row: name, email, phone and an optional WhatsApp number."""
    name: str = ""
    email: str = ""
    phone: str = ""
    whatsapp_number: str = ""  # optional

    @property
    def label(self) -> str:
        return self.name


ImportRecord = Union[BatchRecord, CourseRecord, ParticipantRecord, StudentRecord]
