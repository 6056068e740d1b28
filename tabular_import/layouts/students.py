from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..models.raw_row import RawRow
from ..models.records import StudentRecord
from ..services.catalog import ReferenceCatalog
from .base import ColumnSpec, ImportLayout, UniqueKey
from .primitives import check_email, check_phone, is_blank, require

"""Student import layout: Student Name | Email | Phone | WhatsApp Number.

Both the email and the student name must be unique within one upload.
"""


class StudentLayout(ImportLayout):
    kind = "students"
    noun = "student"
    sheet_name = "Students"
    columns = (
        ColumnSpec("name", "Student Name", "John Doe", aliases=("name", "student", "full_name")),
        ColumnSpec("email", "Email", "john.doe@example.com", aliases=("e-mail", "email_address")),
        ColumnSpec("phone", "Phone", "+1234567890", aliases=("phone_number", "mobile")),
        ColumnSpec("whatsapp_number", "WhatsApp Number", "+1234567890", aliases=("whatsapp",)),
    )
    unique_keys = (
        UniqueKey("email", lambda r: r.email),
        UniqueKey("student name", lambda r: r.name),
    )

    def interpret(self, raw: RawRow) -> StudentRecord:
        values = self.scalar_values(raw)
        return StudentRecord(
            name=values.get("name", ""),
            email=values.get("email", ""),
            phone=values.get("phone", ""),
            whatsapp_number=values.get("whatsapp_number", ""),
        )

    def blank_record(self) -> StudentRecord:
        return StudentRecord()

    def field_errors(self, record: StudentRecord, catalog: ReferenceCatalog) -> list[str]:  # type: ignore[override]
        errors: list[str] = []
        for message in (
            require(record.name, "Student name is required"),
            require(record.email, "Email is required"),
            require(record.phone, "Phone number is required"),
        ):
            if message:
                errors.append(message)

        if not is_blank(record.email):
            message = check_email(record.email)
            if message:
                errors.append(message)
        if not is_blank(record.phone):
            message = check_phone(record.phone)
            if message:
                errors.append(message)
        if not is_blank(record.whatsapp_number):
            message = check_phone(record.whatsapp_number, "Invalid WhatsApp number format")
            if message:
                errors.append(message)
        return errors

    def to_payload(self, record: StudentRecord, context: Mapping[str, Any] | None = None) -> dict[str, Any]:  # type: ignore[override]
        payload: dict[str, Any] = {
            "name": record.name.strip(),
            "email": record.email.strip(),
            "phone": record.phone.strip(),
        }
        if not is_blank(record.whatsapp_number):
            payload["whatsapp_number"] = record.whatsapp_number.strip()
        return payload

    def key_fields(self, record: StudentRecord) -> dict[str, str]:  # type: ignore[override]
        return {
            "name": record.name,
            "email": record.email,
            "phone": record.phone,
        }
