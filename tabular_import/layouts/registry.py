from __future__ import annotations

from datetime import date

from ..models.config_models import ValidationConfig
from .base import ImportLayout

"""Registry: import kind name -> layout instance."""

KINDS: tuple[str, ...] = ("batches", "courses", "participants", "students")


def get_layout(kind: str, validation: ValidationConfig | None = None, *, today: date | None = None) -> ImportLayout:
    """Return the layout for ``kind``. Raises ValueError for unknown kinds."""
    if kind == "batches":
        from .batches import BatchLayout
        return BatchLayout(validation, today=today)

    if kind == "courses":
        from .courses import CourseLayout
        return CourseLayout(validation, today=today)

    if kind == "participants":
        from .participants import ParticipantLayout
        return ParticipantLayout(validation, today=today)

    if kind == "students":
        from .students import StudentLayout
        return StudentLayout(validation, today=today)

    raise ValueError(f"Unknown import kind: {kind}")
