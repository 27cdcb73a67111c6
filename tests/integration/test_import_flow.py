from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest

from spreadsheet_import.cli import main as cli_main
from spreadsheet_import.config.loader import load_config
from spreadsheet_import.excel.reader import read_table
from spreadsheet_import.logging.error_log import FindingLogBuffer
from spreadsheet_import.models.column import EmptyColumn, MatchedColumn, MatchedSelectOptionsColumn
from spreadsheet_import.models.record import ERRORS_KEY, INDEX_KEY
from spreadsheet_import.services.session import ImportSession
from spreadsheet_import.services.validation import iter_findings

"""Integration test: spreadsheet file -> session -> commit -> findings.

Uses a real .xlsx (openpyxl via pandas) with a title row above the headers.
"""


def _make_excel_file(path: Path, rows: list[list[object]], sheet: str = "Members") -> Path:
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return path


@pytest.fixture
def members_xlsx(temp_workdir: Path) -> Path:
    return _make_excel_file(
        temp_workdir / "data" / "members.xlsx",
        [
            ["Member list", "", "", "", ""],  # Title row (ignored)
            ["Full Name", "E-mail", "Random", "Active", "Team"],
            ["Alice", "alice@example.com", "r1", "yes", "Team One"],
            ["Bob", "bob@example.com", "r2", "no", "Team Two"],
            ["", "", "", "", ""],  # 空行はスキップ
            ["Carol", "alice@example.com", "r3", "y", "Team One"],
        ],
    )


def test_file_to_commit_flow(write_config: Path, members_xlsx: Path):
    cfg = load_config(write_config, environ={})
    table = read_table(members_xlsx, header_row=1)
    assert table.sheet_name == "Members"
    assert len(table.rows) == 3

    session = ImportSession(cfg.fields, table.header_values, table.rows, cfg.settings)
    columns = session.columns
    assert columns[0] == MatchedColumn(index=0, header="Full Name", value="name")
    assert columns[1] == MatchedColumn(index=1, header="E-mail", value="email")
    assert columns[2] == EmptyColumn(index=2, header="Random")
    assert isinstance(columns[4], MatchedSelectOptionsColumn)

    received = []
    result = session.commit(lambda rows, raw, cols: received.append(rows))
    rows = received[0]

    assert [r["name"] for r in rows] == ["Alice", "Bob", "Carol"]
    assert [r["active"] for r in rows] == [True, False, True]
    assert [r["team"] for r in rows] == ["one", "two", "one"]
    assert all("Random" not in r and "random" not in r for r in rows)

    # alice@example.com が重複 (allow_empty は空値のみ免除)
    flagged = [i for i, r in enumerate(rows) if (r.get(ERRORS_KEY) or {}).get("email")]
    assert flagged == [0, 2]

    buf = FindingLogBuffer()
    buf.extend(iter_findings(result.annotated_rows))
    path = buf.flush()
    lines = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert {(f["row"], f["field"]) for f in lines} == {(0, "email"), (2, "email")}


def test_fix_and_revalidate_keeps_identity(write_config: Path, members_xlsx: Path):
    cfg = load_config(write_config, environ={})
    table = read_table(members_xlsx, header_row=1)
    session = ImportSession(cfg.fields, table.header_values, table.rows, cfg.settings)
    rows = session.commit().annotated_rows

    fixed = [dict(r) for r in rows]
    fixed[2]["email"] = "carol@example.com"
    again = session.revalidate(fixed)

    assert [r[INDEX_KEY] for r in again] == [r[INDEX_KEY] for r in rows]
    assert again[0][ERRORS_KEY] is None
    assert again[2][ERRORS_KEY] is None
    assert ERRORS_KEY not in again[1]


def test_remap_with_row_hook(write_config: Path, members_xlsx: Path):
    cfg = load_config(write_config, environ={})
    table = read_table(members_xlsx, header_row=1)
    session = ImportSession(cfg.fields, table.header_values, table.rows, cfg.settings)

    # Random 列を email に付け替え: E-mail 列は empty に戻る
    session.change(2, "email")
    assert session.columns[1] == EmptyColumn(index=1, header="E-mail")

    def row_hook(row, report, all_rows):
        if not str(row.get("email", "")).startswith("m"):
            report("email", {"level": "warning", "message": "unexpected member code"})
        return row

    rows = session.commit(row_hook=row_hook).annotated_rows
    assert [r["email"] for r in rows] == ["r1", "r2", "r3"]
    # regex (error) が hook の warning を上書きする
    assert all(r[ERRORS_KEY]["email"] == {"level": "error", "message": "Invalid email"} for r in rows)


def test_cli_on_xlsx_with_header_row_setting(temp_workdir: Path, sample_fields_yaml: str, members_xlsx: Path, capsys):
    (temp_workdir / "config" / "fields.yml").write_text(
        sample_fields_yaml.replace("match_threshold: 0.5", "match_threshold: 0.5\n  header_row: 1"),
        encoding="utf-8",
    )
    out_path = temp_workdir / "out.json"
    code = cli_main([str(members_xlsx), "--sheet", "Members", "--output", str(out_path)])
    out = capsys.readouterr().out

    assert code == 2
    assert "INFO column 2 'Random' -> empty" in out
    assert "SUMMARY rows=3 columns=4/5 ignored=0 errors=2 warnings=0 unmatched_required=0" in out
    payload = json.loads(out_path.read_text(encoding="utf-8"))
    assert len(payload["rows"]) == 3
