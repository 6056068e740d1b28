from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any

from ..models.config_models import ValidationConfig
from ..models.raw_row import RawRow
from ..models.records import ImportRecord
from ..services.catalog import ReferenceCatalog

"""Import layout base: the column contract of one import kind.

A layout owns everything that differs between import kinds:
- the template (header labels + one example row)
- header resolution (label aliases, positional fallback)
- RawRow -> ImportRecord interpretation
- the ordered field rules and the cross-row unique keys
- the creation payload for a valid record
"""

__all__ = [
    "ColumnSpec",
    "UniqueKey",
    "ImportLayout",
    "normalize_label",
    "parse_repeating_groups",
]


def normalize_label(label: str) -> str:
    """'Duration (Months)' -> 'durationmonths' (case, space and punctuation blind)."""
    return re.sub(r"[^0-9a-z]+", "", label.casefold())


@dataclass(frozen=True)
class ColumnSpec:
    """One scalar column of a layout."""
    key: str  # record attribute
    label: str  # template header text
    example: str = ""
    aliases: tuple[str, ...] = ()
    is_date: bool = False

    def matches(self, header_label: str) -> bool:
        wanted = normalize_label(header_label)
        if not wanted:
            return False
        return any(normalize_label(c) == wanted for c in (self.label, self.key, *self.aliases))


@dataclass(frozen=True)
class UniqueKey:
    """A field that must be unique (case-insensitively) within one upload."""
    description: str  # used in "Duplicate <description> found in row N"
    getter: Callable[[Any], str]


def parse_repeating_groups(row: RawRow, start_index: int, stride_width: int) -> list[tuple[str, ...]]:
    """Read fixed-width cell blocks starting at ``start_index``.

    Stops at the first block whose first (group-name) cell is empty; blocks are
    padded with empty strings when the row ends mid-block.
    """
    if stride_width <= 0:
        raise ValueError("stride_width must be positive")
    groups: list[tuple[str, ...]] = []
    idx = start_index
    while idx < len(row.cells):
        if not row.cell(idx).strip():
            break
        groups.append(tuple(row.cell(idx + offset) for offset in range(stride_width)))
        idx += stride_width
    return groups


class ImportLayout(ABC):
    """Column contract and rules for one import kind."""

    kind: str = ""
    noun: str = "record"  # used in "Failed to create <noun>"
    sheet_name: str = "Sheet1"
    columns: tuple[ColumnSpec, ...] = ()
    unique_keys: tuple[UniqueKey, ...] = ()
    # 参照解決が必要な場合の参照先 (表示用)
    reference_noun: str | None = None

    def __init__(self, validation: ValidationConfig | None = None, *, today: date | None = None) -> None:
        self.validation = validation or ValidationConfig()
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    @property
    def max_year(self) -> int:
        return self.today.year + self.validation.max_years_ahead

    @property
    def needs_references(self) -> bool:
        return self.reference_noun is not None

    ## -- template

    def template_header(self) -> list[str]:
        return [c.label for c in self.columns]

    def template_example(self) -> list[str]:
        return [c.example for c in self.columns]

    def template_rows(self) -> list[list[str]]:
        """Header row plus one illustrative example row."""
        return [self.template_header(), self.template_example()]

    ## -- header resolution

    def resolve_columns(self, header: tuple[str, ...]) -> dict[str, int]:
        """Map every column key to a cell index.

        Labels (or aliases) found in the header win; unrecognised columns fall
        back to their declared position when that position is not taken.
        """
        resolved: dict[str, int] = {}
        taken: set[int] = set()
        for spec in self.columns:
            for idx, label in enumerate(header):
                if idx not in taken and spec.matches(label):
                    resolved[spec.key] = idx
                    taken.add(idx)
                    break
        for position, spec in enumerate(self.columns):
            if spec.key not in resolved and position not in taken:
                resolved[spec.key] = position
                taken.add(position)
        return resolved

    def date_columns(self, header: tuple[str, ...]) -> list[int]:
        positions = self.resolve_columns(header)
        return [positions[c.key] for c in self.columns if c.is_date and c.key in positions]

    def scalar_values(self, raw: RawRow) -> dict[str, str]:
        positions = self.resolve_columns(raw.header)
        return {key: raw.cell(idx) for key, idx in positions.items()}

    ## -- per kind behaviour

    @abstractmethod
    def interpret(self, raw: RawRow) -> ImportRecord:
        """Build the domain record for one RawRow."""

    @abstractmethod
    def blank_record(self) -> ImportRecord:
        """An empty record for manual entry."""

    @abstractmethod
    def field_errors(self, record: ImportRecord, catalog: ReferenceCatalog) -> list[str]:
        """Ordered errors: required, format, sub-group, then reference rules.

        Reference resolution mutates ``record`` (resolved id attached or cleared).
        """

    @abstractmethod
    def to_payload(self, record: ImportRecord, context: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Creation payload for a valid record."""

    @abstractmethod
    def key_fields(self, record: ImportRecord) -> dict[str, str]:
        """Columns shown in the validation table."""

    def label(self, record: ImportRecord) -> str:
        return record.label
