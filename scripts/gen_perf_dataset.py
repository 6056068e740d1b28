#!/usr/bin/env python3
"""Synthetic upload generator for manual and performance testing.

Writes a CSV or xlsx file laid out exactly like the import template of the
chosen kind, with a configurable share of deliberately broken rows (missing
fields, impossible dates, duplicate names, unknown references) so that the
validator and the submitter can be exercised on realistic volumes.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from tabular_import.layouts.registry import KINDS, get_layout

COURSE_NAMES = ["Computer Science", "Mathematics", "Physics", "Graphic Design", "Accounting"]
SUBJECT_NAMES = ["Programming", "Algebra", "Mechanics", "Drawing", "Ledger", "Networks", "Statistics"]
FIRST_NAMES = ["Aiko", "Ben", "Chen", "Dana", "Eli", "Fatima", "Goro", "Hana"]


def _batch_rows(rng: np.random.Generator, rows: int) -> list[list[Any]]:
    dates = pd.date_range("2024-01-01", "2025-12-31", periods=200)
    out = []
    for j in range(rows):
        out.append([
            f"Batch {j + 1:05d}",
            pd.Timestamp(rng.choice(dates)).strftime("%Y-%m-%d"),
            str(int(rng.integers(1, 37))),
            str(rng.choice(COURSE_NAMES)),
        ])
    return out


def _course_rows(rng: np.random.Generator, rows: int) -> list[list[Any]]:
    out = []
    for j in range(rows):
        row: list[Any] = [f"Course {j + 1:05d}", f"C{j + 1:05d}", str(int(rng.integers(3, 49)))]
        for n in range(int(rng.integers(1, 4))):
            if rng.random() < 0.5:
                row += [f"{rng.choice(SUBJECT_NAMES)} {n + 1}", "theory", "80", "20", "", ""]
            else:
                row += [f"{rng.choice(SUBJECT_NAMES)} Lab {n + 1}", "practical", "", "", "40", "10"]
        out.append(row)
    return out


def _participant_rows(rng: np.random.Generator, rows: int) -> list[list[Any]]:
    out = []
    for j in range(rows):
        first = str(rng.choice(FIRST_NAMES))
        out.append([
            f"{first} Example{j + 1}",
            f"{first.lower()}.{j + 1}@example.com",
            f"+1 555 {int(rng.integers(100000, 999999))}",
            str(rng.choice(["Male", "Female", "Other"])),
            str(rng.choice(["KUG Student", "External Participant"])),
            "" if rng.random() < 0.5 else f"{int(rng.integers(1, 999))} Example Street",
        ])
    return out


def _student_rows(rng: np.random.Generator, rows: int) -> list[list[Any]]:
    out = []
    for j in range(rows):
        first = str(rng.choice(FIRST_NAMES))
        phone = f"+1 555 {int(rng.integers(100000, 999999))}"
        out.append([
            f"{first} Student{j + 1}",
            f"{first.lower()}.student{j + 1}@example.com",
            phone,
            phone if rng.random() < 0.5 else "",
        ])
    return out


GENERATORS = {
    "batches": _batch_rows,
    "courses": _course_rows,
    "participants": _participant_rows,
    "students": _student_rows,
}


def _break_row(rng: np.random.Generator, kind: str, row: list[Any], previous: list[Any] | None) -> None:
    """Corrupt one row in place in a kind-appropriate way."""
    choice = int(rng.integers(0, 3))
    if choice == 0:
        row[0] = ""  # missing name
    elif choice == 1 and previous is not None:
        row[0] = str(previous[0]).upper()  # duplicate (case-insensitive)
    elif kind == "batches":
        row[1] = "2024-02-30" if rng.random() < 0.5 else row[1]
        row[3] = "Unknown Course"
    elif kind == "courses":
        row[2] = "-3"
    else:
        row[1] = "not-an-email"


def generate_rows(kind: str, rows: int, invalid_ratio: float = 0.0, seed: int = 42) -> list[list[Any]]:
    rng = np.random.default_rng(seed)
    data = GENERATORS[kind](rng, rows)
    for idx in range(rows):
        if rng.random() < invalid_ratio:
            _break_row(rng, kind, data[idx], data[idx - 1] if idx else None)
    return data


def write_dataset(output: Path, kind: str, rows: int, invalid_ratio: float = 0.0, seed: int = 42) -> Path:
    layout = get_layout(kind)
    header = layout.template_header()
    data = generate_rows(kind, rows, invalid_ratio, seed)
    width = max([len(header)] + [len(r) for r in data])
    header = header + [""] * (width - len(header))
    frame = pd.DataFrame([r + [""] * (width - len(r)) for r in data])
    frame.columns = range(width)

    output.parent.mkdir(parents=True, exist_ok=True)
    if output.suffix.lower() == ".csv":
        pd.DataFrame([header]).to_csv(output, header=False, index=False)
        frame.to_csv(output, mode="a", header=False, index=False)
    else:
        sheet = pd.concat([pd.DataFrame([header]), frame], ignore_index=True)
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            sheet.to_excel(writer, sheet_name=layout.sheet_name, header=False, index=False)
    return output


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate synthetic import files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 1,000 batch rows as CSV
  %(prog)s batches data/batches.csv --rows 1000

  # 500 course rows, 10%% of them broken
  %(prog)s courses data/courses.xlsx --rows 500 --invalid-ratio 0.1
        """,
    )
    parser.add_argument("kind", choices=KINDS)
    parser.add_argument("output", type=Path, help="Output .csv or .xlsx path")
    parser.add_argument("--rows", type=int, default=1_000, help="Number of data rows (default: 1,000)")
    parser.add_argument("--invalid-ratio", type=float, default=0.0, help="Share of broken rows (0..1)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if not 0.0 <= args.invalid_ratio <= 1.0:
        print("Error: --invalid-ratio must be between 0 and 1", file=sys.stderr)
        return 1
    if args.output.suffix.lower() not in (".csv", ".xlsx"):
        print("Error: output must end with .csv or .xlsx", file=sys.stderr)
        return 1

    path = write_dataset(args.output, args.kind, args.rows, args.invalid_ratio, args.seed)
    print(f"Created {args.kind} file: {path} ({args.rows:,} rows)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
