from __future__ import annotations

from dataclasses import dataclass

"""RawRow model for the bulk tabular import pipeline.

RawRow represents one data line of an uploaded file exactly as the parser
produced it: the header labels, the textual cells and the physical row number.
"""

__all__ = [
    "RawRow",
]


@dataclass(frozen=True)
class RawRow:
    """One parsed data row, positional and keyed by header label.

    The row_number is the 1-based physical row in the source file. The header
    occupies row 1, so the first data row is row 2.
    """
    row_number: int
    header: tuple[str, ...]  # ヘッダ行 (ラベル)
    cells: tuple[str, ...]  # 正規化済みセル (常に str)

    def cell(self, index: int) -> str:
        """Return the cell at ``index`` or an empty string past the row end."""
        if 0 <= index < len(self.cells):
            return self.cells[index]
        return ""

    def as_mapping(self) -> dict[str, str]:
        """Return an ordered header label -> cell mapping.

        Columns without a header label are keyed by their 1-based position.
        """
        mapping: dict[str, str] = {}
        for idx, value in enumerate(self.cells):
            label = self.header[idx] if idx < len(self.header) and self.header[idx] else f"column_{idx + 1}"
            mapping.setdefault(label, value)
        return mapping

    def is_blank(self) -> bool:
        return all(not c.strip() for c in self.cells)
