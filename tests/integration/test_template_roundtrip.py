from __future__ import annotations

from pathlib import Path

import pytest

from tabular_import.cli.main import main as cli_main

"""A freshly written template (header + example row) validates cleanly."""


@pytest.mark.parametrize("kind", ["batches", "courses", "participants", "students"])
@pytest.mark.parametrize("fmt", ["csv", "xlsx"])
def test_template_validates(kind: str, fmt: str, write_config: Path, temp_workdir: Path, capsys) -> None:
    output = temp_workdir / "data" / f"{kind}_template.{fmt}"
    assert cli_main(["template", kind, "--format", fmt, "--output", str(output)]) == 0
    assert output.exists()

    exit_code = cli_main(["validate", kind, str(output)])
    out = capsys.readouterr().out
    assert exit_code == 0, out
    assert f"SUMMARY kind={kind} file={output.name} rows=1 valid=1 invalid=0" in out


def test_template_default_file_name(temp_workdir: Path, capsys) -> None:
    assert cli_main(["template", "batches", "--format", "csv"]) == 0
    path = temp_workdir / "batches_import_template.csv"
    assert path.read_text(encoding="utf-8").splitlines()[0] == "Batch Name,Start Date,Duration (Months),Course Name"
    assert "INFO template written: batches_import_template.csv" in capsys.readouterr().out
