from __future__ import annotations

import csv
import io
from pathlib import Path

import pandas as pd

from ..layouts.base import ImportLayout
from .reader import FileKind

"""Template file generation (header row + one example row).

The header order is exactly the column layout parse_table() and the layout
expect, so a filled-in template always parses without header aliases.
"""

__all__ = [
    "template_file_name",
    "render_template",
    "write_template",
]


def template_file_name(layout: ImportLayout, kind: FileKind) -> str:
    suffix = ".xlsx" if kind is FileKind.WORKBOOK else ".csv"
    return f"{layout.kind}_import_template{suffix}"


def render_template(layout: ImportLayout, kind: FileKind) -> bytes:
    header, example = layout.template_rows()
    if kind is FileKind.DELIMITED:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(header)
        writer.writerow(example)
        return buffer.getvalue().encode("utf-8")

    frame = pd.DataFrame([example], columns=header)
    out = io.BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name=layout.sheet_name, index=False)
    return out.getvalue()


def write_template(layout: ImportLayout, kind: FileKind, output: Path | None = None) -> Path:
    """Write the template for ``layout``; returns the written path."""
    path = output if output is not None else Path(template_file_name(layout, kind))
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(render_template(layout, kind))
    return path
