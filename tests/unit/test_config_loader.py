from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

import pytest

from spreadsheet_import.config.loader import (
    ConfigError,
    _validate_config_schema,
    apply_env_overrides,
    build_fields,
    load_config,
    parse_config,
)
from spreadsheet_import.errors import FieldDefinitionError
from spreadsheet_import.models.config_models import MatchSettings
from spreadsheet_import.models.field import FieldKind, RegexRule, RequiredRule, UniqueRule

"""Unit tests for the field config loader."""


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config, environ={})
    keys = [f.key for f in cfg.fields]
    assert keys == ["name", "email", "active", "team"]

    name, email, active, team = cfg.fields
    assert name.is_required
    assert name.alternate_matches == ("full name",)
    assert isinstance(email.validations[0], UniqueRule) and email.validations[0].allow_empty
    assert isinstance(email.validations[1], RegexRule)
    assert email.validations[1].error_message == "Invalid email"
    assert active.kind is FieldKind.CHECKBOX
    assert team.kind is FieldKind.SELECT
    assert [o.label for o in team.options] == ["Team One", "Team Two"]
    assert cfg.settings == MatchSettings(match_threshold=0.5, sample_size=5)


def test_load_config_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="config file not found"):
        load_config(temp_workdir / "config" / "nope.yml")


def test_load_config_invalid_yaml(temp_workdir: Path):
    p = temp_workdir / "config" / "bad.yml"
    p.write_text("fields: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(p)


def test_load_config_root_not_mapping(temp_workdir: Path):
    p = temp_workdir / "config" / "list.yml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(p)


def test_parse_config_bad_regex_is_fatal():
    data = {"fields": [{"key": "a", "validations": [{"rule": "regex", "value": "("}]}]}
    with pytest.raises(ConfigError, match="invalid field definitions"):
        parse_config(data, environ={})


def test_parse_config_duplicate_keys():
    with pytest.raises(ConfigError, match="duplicate field key"):
        parse_config({"fields": [{"key": "a"}, {"key": "a"}]}, environ={})


def test_parse_config_select_without_options():
    with pytest.raises(ConfigError, match="no options"):
        parse_config({"fields": [{"key": "a", "type": "select"}]}, environ={})


def test_schema_rejects_unknown_rule():
    with pytest.raises(ConfigError, match="config validation failed"):
        _validate_config_schema({"fields": [{"key": "a", "validations": [{"rule": "email"}]}]})


def test_schema_rejects_threshold_out_of_range():
    with pytest.raises(ConfigError, match="config validation failed"):
        _validate_config_schema({"fields": [{"key": "a"}], "settings": {"match_threshold": 2}})


def test_schema_file_missing():
    with patch("spreadsheet_import.config.loader.SCHEMA_PATH", Path("/nonexistent/schema.json")):
        with pytest.raises(ConfigError, match="config schema not found"):
            _validate_config_schema({})


def test_build_fields_coercions():
    fields = build_fields(
        [
            {"key": "n", "coerce": "int"},
            {"key": "d", "coerce": "date"},
            {"key": "x", "coerce": "decimal"},
        ]
    )
    assert fields[0].coerce(" 7 ") == 7
    assert fields[1].coerce("2024-02-29") == date(2024, 2, 29)
    assert fields[2].coerce("1.50") == Decimal("1.50")


def test_build_fields_unknown_coercion():
    with pytest.raises(FieldDefinitionError):
        build_fields([{"key": "n", "coerce": "uuid"}])


def test_required_flag_and_rule_both_count():
    fields = build_fields([{"key": "a", "required": True}, {"key": "b", "validations": [{"rule": "required"}]}])
    assert fields[0].is_required
    assert fields[1].is_required
    assert isinstance(fields[1].validations[0], RequiredRule)


def test_env_overrides():
    settings = apply_env_overrides(
        MatchSettings(),
        {"SPREADSHEET_IMPORT_MATCH_THRESHOLD": "0.8", "SPREADSHEET_IMPORT_SAMPLE_SIZE": "5"},
    )
    assert settings.match_threshold == 0.8
    assert settings.sample_size == 5


def test_env_override_invalid_value():
    with pytest.raises(ConfigError, match="invalid environment override"):
        apply_env_overrides(MatchSettings(), {"SPREADSHEET_IMPORT_MATCH_THRESHOLD": "high"})
    with pytest.raises(ConfigError):
        apply_env_overrides(MatchSettings(), {"SPREADSHEET_IMPORT_MATCH_THRESHOLD": "1.5"})


def test_match_settings_validation():
    with pytest.raises(ValueError):
        MatchSettings(match_threshold=-0.1)
    with pytest.raises(ValueError):
        MatchSettings(sample_size=0)
