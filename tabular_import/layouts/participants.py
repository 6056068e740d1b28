from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..models.raw_row import RawRow
from ..models.records import ParticipantRecord
from ..services.catalog import ReferenceCatalog
from .base import ColumnSpec, ImportLayout, UniqueKey
from .primitives import check_email, is_blank, match_token, require

"""Workshop participant import layout.

Participants are attached to one target workshop chosen for the whole run
(context key "workshop_id"), so rows carry no reference column of their own.
"""

KUG_STUDENT = "kug_student"
EXTERNAL = "external"

GENDER_TOKENS = {
    "male": "male",
    "m": "male",
    "female": "female",
    "f": "female",
    "woman": "female",
    "girl": "female",
    "other": "other",
    "others": "other",
    "o": "other",
}

PARTICIPANT_TYPE_TOKENS = {
    "kug student": KUG_STUDENT,
    "kug": KUG_STUDENT,
    "kug_student": KUG_STUDENT,
    "internal": KUG_STUDENT,
    "student": KUG_STUDENT,
    "external participant": EXTERNAL,
    "external": EXTERNAL,
    "ext": EXTERNAL,
    "participant": EXTERNAL,
}


class ParticipantLayout(ImportLayout):
    kind = "participants"
    noun = "participant"
    sheet_name = "Participants"
    columns = (
        ColumnSpec("name", "Full Name", "John Doe", aliases=("name", "full_name")),
        ColumnSpec("email", "Email", "john@example.com", aliases=("e-mail", "email_address")),
        ColumnSpec("phone", "Phone", "+1 555 123456", aliases=("phone_number", "mobile")),
        ColumnSpec("gender", "Gender", "Male"),
        ColumnSpec(
            "participant_type",
            "Participant Type(KUG Student or External Participant)",
            "KUG Student",
            aliases=("Participant Type", "Participant Type (KUG Student or External Participant)", "type"),
        ),
        ColumnSpec("address", "Address (Optional)", "123 Example Street", aliases=("address",)),
    )
    unique_keys = (UniqueKey("email", lambda r: r.email),)

    def interpret(self, raw: RawRow) -> ParticipantRecord:
        values = self.scalar_values(raw)
        return ParticipantRecord(
            name=values.get("name", ""),
            email=values.get("email", ""),
            phone=values.get("phone", ""),
            gender=values.get("gender", ""),
            participant_type=values.get("participant_type", ""),
            address=values.get("address", ""),
        )

    def blank_record(self) -> ParticipantRecord:
        return ParticipantRecord()

    def field_errors(self, record: ParticipantRecord, catalog: ReferenceCatalog) -> list[str]:  # type: ignore[override]
        errors: list[str] = []
        for message in (
            require(record.name, "Full Name is required"),
            require(record.email, "Email is required"),
            require(record.phone, "Phone is required"),
        ):
            if message:
                errors.append(message)

        if not is_blank(record.email):
            message = check_email(record.email)
            if message:
                errors.append(message)
        if match_token(record.gender, GENDER_TOKENS) is None:
            errors.append("Gender must be Male, Female, or Other")
        if match_token(record.participant_type, PARTICIPANT_TYPE_TOKENS) is None:
            errors.append("Participant Type must be KUG Student or External Participant")
        return errors

    def to_payload(self, record: ParticipantRecord, context: Mapping[str, Any] | None = None) -> dict[str, Any]:  # type: ignore[override]
        payload: dict[str, Any] = {
            "name": record.name.strip(),
            "email": record.email.strip(),
            "phone": record.phone.strip(),
            "gender": match_token(record.gender, GENDER_TOKENS),
            "participant_type": match_token(record.participant_type, PARTICIPANT_TYPE_TOKENS),
            "address": record.address.strip() or None,
        }
        workshop_id = (context or {}).get("workshop_id")
        if workshop_id is not None:
            payload["workshops"] = [workshop_id]
        return payload

    def key_fields(self, record: ParticipantRecord) -> dict[str, str]:  # type: ignore[override]
        return {
            "name": record.name,
            "email": record.email,
            "phone": record.phone,
        }
