"""Domain models for the spreadsheet import core.

Fields and validation rules (schema), column mapping states, record aliases,
settings and finding records.
"""

from .column import (
    Column,
    Columns,
    ColumnType,
    EmptyColumn,
    IgnoredColumn,
    MatchedCheckboxColumn,
    MatchedColumn,
    MatchedOption,
    MatchedSelectColumn,
    MatchedSelectOptionsColumn,
    columns_from_headers,
)
from .config_models import ImportConfig, MatchSettings
from .field import Field, FieldKind, Info, RegexRule, RequiredRule, SelectOption, UniqueRule, Validation
from .finding_record import FindingRecord
from .import_summary import ImportSummary
from .record import ERRORS_KEY, INDEX_KEY, AnnotatedRecord, Record

__all__ = [
    # Schema
    "Field",
    "FieldKind",
    "SelectOption",
    "Info",
    "UniqueRule",
    "RequiredRule",
    "RegexRule",
    "Validation",
    # Column states
    "Column",
    "Columns",
    "ColumnType",
    "EmptyColumn",
    "IgnoredColumn",
    "MatchedColumn",
    "MatchedCheckboxColumn",
    "MatchedSelectColumn",
    "MatchedSelectOptionsColumn",
    "MatchedOption",
    "columns_from_headers",
    # Records
    "Record",
    "AnnotatedRecord",
    "INDEX_KEY",
    "ERRORS_KEY",
    # Config / logging
    "ImportConfig",
    "MatchSettings",
    "FindingRecord",
    "ImportSummary",
]
