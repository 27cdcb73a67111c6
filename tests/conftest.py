# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from spreadsheet_import.logging.init import reset_logging
from spreadsheet_import.models.field import Field, RegexRule, RequiredRule, SelectOption, UniqueRule


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _clean_logging():
    # CLI tests configure the app logger; keep tests independent
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_fields_yaml() -> str:
    return """fields:
  - key: name
    label: Name
    alternate_matches: [full name]
    required: true
  - key: email
    label: Email
    validations:
      - rule: unique
        allow_empty: true
      - rule: regex
        value: "^[^@]+@[^@]+$"
        error_message: Invalid email
  - key: active
    type: checkbox
  - key: team
    type: select
    options:
      - {value: one, label: Team One}
      - {value: two, label: Team Two}
settings:
  match_threshold: 0.5
  sample_size: 5
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_fields_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "fields.yml"
    cfg.write_text(sample_fields_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def write_csv(temp_workdir: Path):
    def _write(name: str, lines: list[str]) -> Path:
        p = temp_workdir / "data" / name
        p.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return p

    return _write


@pytest.fixture()
def sample_fields() -> list[Field]:
    return [
        Field(key="name", label="Name", validations=(RequiredRule(),)),
        Field(
            key="email",
            label="Email",
            validations=(UniqueRule(allow_empty=True), RegexRule(pattern=r"^[^@]+@[^@]+$")),
        ),
        Field(key="active", label="Active", boolean=True),
        Field(
            key="team",
            label="Team",
            options=(SelectOption(value="one", label="Team One"), SelectOption(value="two", label="Team Two")),
        ),
    ]
