# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pandas as pd
import pytest

from tabular_import.logging.init import reset_logging
from tabular_import.models.reference import ReferenceEntity
from tabular_import.services.catalog import ReferenceCatalog


@pytest.fixture(autouse=True)
def _fresh_logging():
    # the stdout handler binds sys.stdout at setup time; capsys swaps it per test
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """kinds:
  batches:
    create_endpoint: /batches/
    reference_endpoint: /courses/
    table: batches
    reference_table: courses
    reference_entities:
      - {id: 1, name: Computer Science}
      - {id: 7, name: General}
  courses:
    create_endpoint: /courses/
    table: courses
  participants:
    create_endpoint: /workshop-participants/
    table: workshop_participants
  students:
    create_endpoint: /students/
    table: students
submission:
  pause_seconds: 0
logs_directory: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def course_catalog() -> ReferenceCatalog:
    return ReferenceCatalog([
        ReferenceEntity(id=1, display_name="Computer Science"),
        ReferenceEntity(id=7, display_name="General"),
    ])


@pytest.fixture()
def write_csv(temp_workdir: Path):
    def _write(name: str, lines: list[str]) -> Path:
        path = temp_workdir / "data" / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path
    return _write


@pytest.fixture()
def write_xlsx(temp_workdir: Path):
    """Write a single-sheet workbook whose first row is ``rows[0]``."""
    def _write(name: str, rows: list[list[object]], sheet_name: str = "Sheet1") -> Path:
        path = temp_workdir / "data" / name
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
        return path
    return _write
