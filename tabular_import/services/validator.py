from __future__ import annotations

import logging
from collections.abc import Sequence

from ..layouts.base import ImportLayout
from ..models.records import ImportRecord
from ..models.validation_result import ValidationResult
from .catalog import ReferenceCatalog

"""Row validator.

Per row, errors are accumulated in a fixed order so identical input always
yields identical error lists:

1. required-field rules
2. format rules
3. sub-group (mutual exclusivity / completeness) rules
4. reference resolution (attaches the resolved id to the record)
5. cross-row uniqueness (first occurrence exempt, later rows name it)

Steps 1-4 are owned by the layout; step 5 needs the whole set and lives here.
"""

__all__ = [
    "RowValidator",
    "FIRST_DATA_ROW",
]

logger = logging.getLogger(__name__)

FIRST_DATA_ROW = 2  # row 1 is the header


class RowValidator:
    """Validates a full upload and re-validates single edited rows."""

    def __init__(self, layout: ImportLayout, catalog: ReferenceCatalog | None = None) -> None:
        self.layout = layout
        self.catalog = catalog if catalog is not None else ReferenceCatalog()

    def _duplicate_errors(self, entries: Sequence[tuple[int, ImportRecord]]) -> list[tuple[str, ...]]:
        per_row: list[list[str]] = [[] for _ in entries]
        for unique in self.layout.unique_keys:
            first_seen: dict[str, int] = {}
            for idx, (row, record) in enumerate(entries):
                key = unique.getter(record).strip().casefold()
                if not key:
                    continue  # blank values are a required-field concern
                if key in first_seen:
                    per_row[idx].append(f"Duplicate {unique.description} found in row {first_seen[key]}")
                else:
                    first_seen[key] = row
        return [tuple(errors) for errors in per_row]

    def _field_errors(self, record: ImportRecord) -> tuple[str, ...]:
        return tuple(self.layout.field_errors(record, self.catalog))

    def _assemble(
        self,
        entries: Sequence[tuple[int, ImportRecord]],
        field_errors: Sequence[tuple[str, ...]],
    ) -> list[ValidationResult]:
        duplicates = self._duplicate_errors(entries)
        return [
            ValidationResult(row=row, data=record, field_errors=fields, duplicate_errors=dups)
            for (row, record), fields, dups in zip(entries, field_errors, duplicates, strict=True)
        ]

    def validate_all(
        self,
        records: Sequence[ImportRecord],
        row_numbers: Sequence[int] | None = None,
    ) -> list[ValidationResult]:
        """Validate every record; one ValidationResult per record, same order.

        row_numbers default to 2, 3, ... (first data row after the header).
        """
        if row_numbers is None:
            row_numbers = range(FIRST_DATA_ROW, FIRST_DATA_ROW + len(records))
        if len(row_numbers) != len(records):
            raise ValueError("row_numbers must match records one to one")
        rows = list(row_numbers)
        if any(b <= a for a, b in zip(rows, rows[1:])):
            raise ValueError("row numbers must be strictly increasing")

        entries = list(zip(rows, records))
        results = self._assemble(entries, [self._field_errors(r) for r in records])
        logger.debug(
            "kind=%s validated rows=%d valid=%d",
            self.layout.kind,
            len(results),
            sum(1 for r in results if r.is_valid),
        )
        return results

    def revalidate(
        self,
        results: Sequence[ValidationResult],
        index: int,
        record: ImportRecord,
    ) -> list[ValidationResult]:
        """Replace row ``index`` with an edited record and return a new result set.

        Only the edited row's field rules are recomputed; uniqueness is
        re-scanned over every row so collisions with the edited value appear
        (or disappear) on the other rows as well.
        """
        if not 0 <= index < len(results):
            raise IndexError(f"row index out of range: {index}")
        entries = [(r.row, r.data) for r in results]
        entries[index] = (results[index].row, record)
        field_errors = [r.field_errors for r in results]
        field_errors[index] = self._field_errors(record)
        return self._assemble(entries, field_errors)

    def append(self, results: Sequence[ValidationResult], record: ImportRecord) -> list[ValidationResult]:
        """Add a manually entered record after the last row (row = max + 1)."""
        next_row = max((r.row for r in results), default=FIRST_DATA_ROW - 1) + 1
        entries = [(r.row, r.data) for r in results] + [(next_row, record)]
        field_errors = [r.field_errors for r in results] + [self._field_errors(record)]
        return self._assemble(entries, field_errors)
