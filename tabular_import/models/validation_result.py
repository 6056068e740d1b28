from __future__ import annotations

from dataclasses import dataclass

from .records import ImportRecord

"""ValidationResult model.

A ValidationResult pairs a row's data with the ordered list of rule violations
found for it. Field-level errors (required / format / sub-group / reference)
and cross-row duplicate errors are kept apart so that a manual edit can reuse
the field errors of untouched rows while still re-scanning collisions.
"""

__all__ = [
    "ValidationResult",
]


@dataclass(frozen=True)
class ValidationResult:
    """Verdict for one row. A row is valid iff errors is empty."""
    row: int  # 1-based source row number
    data: ImportRecord
    field_errors: tuple[str, ...] = ()
    duplicate_errors: tuple[str, ...] = ()

    @property
    def errors(self) -> list[str]:
        # 固定順序: field rules -> cross-row uniqueness
        return [*self.field_errors, *self.duplicate_errors]

    @property
    def is_valid(self) -> bool:
        return not self.field_errors and not self.duplicate_errors
