from __future__ import annotations

from collections.abc import Sequence

"""Exception hierarchy for the spreadsheet import core.

- Configuration errors (FieldDefinitionError, ConfigError): fatal at setup.
- Mapping errors (ColumnStateError, UnknownFieldError): driver misuse.
- UnmatchedRequiredFieldsError: blocks commit, caller may force-continue.
- Hook failures are NOT wrapped; they propagate as raised by the hook.
"""

__all__ = [
    "SpreadsheetImportError",
    "FieldDefinitionError",
    "ColumnStateError",
    "UnknownFieldError",
    "UnmatchedRequiredFieldsError",
    "ValidationPipelineError",
    "HookError",
    "DuplicateColumnWarning",
]


class SpreadsheetImportError(Exception):
    """Base exception for all errors raised by this package."""


class FieldDefinitionError(SpreadsheetImportError):
    """Raised when a field definition is invalid (bad regex, duplicate key...)."""


class ColumnStateError(SpreadsheetImportError):
    """Raised when a transition is applied to a column in the wrong state."""


class UnknownFieldError(SpreadsheetImportError):
    """Raised when a driver references a field key not present in the schema."""


class UnmatchedRequiredFieldsError(SpreadsheetImportError):
    """Raised on commit while required fields are not mapped to any column."""

    def __init__(self, fields: Sequence[str]) -> None:
        self.fields = list(fields)
        super().__init__(f"required fields not matched: {', '.join(self.fields)}")


class ValidationPipelineError(SpreadsheetImportError):
    """Base exception for validation pipeline misuse."""


class HookError(ValidationPipelineError):
    """Raised when a hook cannot be run by the selected entrypoint."""


class DuplicateColumnWarning(UserWarning):
    """Emitted (not raised) when assigning a field evicts it from another column."""

    def __init__(self, field_key: str, column_index: int, previous_index: int) -> None:
        self.field_key = field_key
        self.column_index = column_index
        self.previous_index = previous_index
        super().__init__(
            f"field '{field_key}' was already matched to column {previous_index}; "
            f"column {previous_index} reverted to empty"
        )
