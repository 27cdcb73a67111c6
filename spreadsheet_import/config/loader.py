from __future__ import annotations

import json
import os
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..errors import FieldDefinitionError, SpreadsheetImportError
from ..models.config_models import ImportConfig, MatchSettings
from ..models.field import Field, RegexRule, RequiredRule, SelectOption, UniqueRule, Validation

"""Field configuration loader.

Responsibilities:
- Load YAML (fields + optional settings)
- Validate against fields_schema.json (jsonschema)
- Build immutable Field / MatchSettings models (configuration errors are fatal here)
- Apply environment overrides (SPREADSHEET_IMPORT_MATCH_THRESHOLD / _SAMPLE_SIZE)
"""

SCHEMA_PATH = Path(__file__).with_name("fields_schema.json")

ENV_MATCH_THRESHOLD = "SPREADSHEET_IMPORT_MATCH_THRESHOLD"
ENV_SAMPLE_SIZE = "SPREADSHEET_IMPORT_SAMPLE_SIZE"

COERCIONS: dict[str, Callable[[Any], Any]] = {
    "str": str,
    "int": lambda v: int(str(v).strip()),
    "float": lambda v: float(str(v).strip()),
    "decimal": lambda v: Decimal(str(v).strip()),
    "date": lambda v: date.fromisoformat(str(v).strip()),
}


class ConfigError(SpreadsheetImportError):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing / not JSON, or config data does not conform
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build_validation(raw: Mapping[str, Any]) -> Validation:
    common = {"level": raw.get("level", "error"), "error_message": raw.get("error_message")}
    rule = raw.get("rule")
    if rule == "unique":
        return UniqueRule(allow_empty=bool(raw.get("allow_empty", False)), **common)
    if rule == "required":
        return RequiredRule(**common)
    if rule == "regex":
        return RegexRule(pattern=raw["value"], flags=raw.get("flags", ""), **common)
    raise FieldDefinitionError(f"unknown validation rule: {rule!r}")


def build_field(raw: Mapping[str, Any]) -> Field:
    """Build one Field from a plain mapping (same shape as the YAML entries)."""
    key = raw.get("key")
    if not isinstance(key, str) or not key:
        raise FieldDefinitionError(f"field key must be a non-empty string: {key!r}")
    options = tuple(
        SelectOption(value=str(o["value"]), label=str(o.get("label", o["value"]))) for o in raw.get("options") or []
    )
    field_type = raw.get("type") or ("select" if options else "input")
    if field_type == "select" and not options:
        raise FieldDefinitionError(f"select field '{key}' has no options")
    coerce_name = raw.get("coerce")
    if coerce_name is not None and coerce_name not in COERCIONS:
        raise FieldDefinitionError(f"field '{key}': unknown coercion {coerce_name!r}")
    return Field(
        key=key,
        label=raw.get("label"),
        description=raw.get("description"),
        alternate_matches=tuple(raw.get("alternate_matches") or ()),
        options=options if field_type == "select" else (),
        boolean=field_type == "checkbox",
        boolean_matches=dict(raw["boolean_matches"]) if raw.get("boolean_matches") else None,
        validations=tuple(_build_validation(v) for v in raw.get("validations") or ()),
        required=bool(raw.get("required", False)),
        coerce=COERCIONS[coerce_name] if coerce_name else None,
    )


def build_fields(raw_fields: list[Mapping[str, Any]]) -> tuple[Field, ...]:
    """Build the schema; keys must be unique."""
    fields = tuple(build_field(raw) for raw in raw_fields)
    seen: set[str] = set()
    for f in fields:
        if f.key in seen:
            raise FieldDefinitionError(f"duplicate field key: {f.key!r}")
        seen.add(f.key)
    return fields


def apply_env_overrides(settings: MatchSettings, environ: Mapping[str, str] | None = None) -> MatchSettings:
    """Environment variables win over file settings (CLI loads .env first)."""
    env = os.environ if environ is None else environ
    changes: dict[str, Any] = {}
    try:
        if env.get(ENV_MATCH_THRESHOLD):
            changes["match_threshold"] = float(env[ENV_MATCH_THRESHOLD])
        if env.get(ENV_SAMPLE_SIZE):
            changes["sample_size"] = int(env[ENV_SAMPLE_SIZE])
        return replace(settings, **changes) if changes else settings
    except ValueError as e:
        raise ConfigError(f"invalid environment override: {e}") from e


def parse_config(data: dict[str, Any], environ: Mapping[str, str] | None = None) -> ImportConfig:
    _validate_config_schema(data)
    try:
        fields = build_fields(data["fields"])
        settings = MatchSettings(**(data.get("settings") or {}))
    except (FieldDefinitionError, ValueError) as e:
        raise ConfigError(f"invalid field definitions: {e}") from e
    return ImportConfig(fields=fields, settings=apply_env_overrides(settings, environ))


def load_config(path: Path, environ: Mapping[str, str] | None = None) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")
    return parse_config(data, environ)
