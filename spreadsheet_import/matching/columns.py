from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from ..errors import ColumnStateError
from ..models.column import (
    Column,
    EmptyColumn,
    IgnoredColumn,
    MatchedCheckboxColumn,
    MatchedColumn,
    MatchedOption,
    MatchedSelectColumn,
    MatchedSelectOptionsColumn,
)
from ..models.field import Field, FieldKind

"""Column state machine.

All transitions are pure: they take a column (plus context) and return a new
column value. Duplicate-field enforcement is driver policy (services.session),
not part of these transitions.
"""

__all__ = [
    "cell_text",
    "unique_entries",
    "set_column",
    "set_ignore_column",
    "set_sub_column",
    "with_matched_options",
    "is_included",
    "is_terminal",
    "field_key_of",
]

_INCLUDED = (MatchedColumn, MatchedCheckboxColumn, MatchedSelectOptionsColumn)
_TERMINAL = (EmptyColumn, IgnoredColumn, *_INCLUDED)


def cell_text(value: Any) -> str | None:
    """Text form of a raw cell used as select entry key. Empty cells -> None."""
    if value is None:
        return None
    text = value if isinstance(value, str) else str(value)
    return text if text != "" else None


def unique_entries(data: Iterable[Sequence[Any]], index: int) -> tuple[MatchedOption, ...]:
    """Distinct non-empty values of one column (first-seen order), all unassigned."""
    seen: dict[str, None] = {}
    for row in data:
        raw = row[index] if index < len(row) else None
        entry = cell_text(raw)
        if entry is not None and entry not in seen:
            seen[entry] = None
    return tuple(MatchedOption(entry=entry) for entry in seen)


def with_matched_options(
    column: MatchedSelectColumn | MatchedSelectOptionsColumn,
    options: Iterable[MatchedOption],
) -> MatchedSelectColumn | MatchedSelectOptionsColumn:
    """Rebuild a select column, promoting it only when every entry has a value."""
    options = tuple(options)
    if all(option.value for option in options):
        return MatchedSelectOptionsColumn(
            index=column.index, header=column.header, value=column.value, matched_options=options
        )
    return MatchedSelectColumn(index=column.index, header=column.header, value=column.value, matched_options=options)


def set_column(
    column: Column,
    field: Field | None = None,
    data: Iterable[Sequence[Any]] | None = None,
) -> Column:
    """Bind a column to a field, or reset it to empty when no field is given."""
    if field is None:
        return EmptyColumn(index=column.index, header=column.header)

    kind = field.kind
    if kind is FieldKind.CHECKBOX:
        return MatchedCheckboxColumn(index=column.index, header=column.header, value=field.key)
    if kind is FieldKind.SELECT:
        # 値が 1 つも無い列は割当対象が無いので即 matchedSelectOptions
        select = MatchedSelectColumn(index=column.index, header=column.header, value=field.key)
        return with_matched_options(select, unique_entries(data or [], column.index))
    return MatchedColumn(index=column.index, header=column.header, value=field.key)


def set_ignore_column(column: Column) -> IgnoredColumn:
    return IgnoredColumn(index=column.index, header=column.header)


def set_sub_column(
    column: Column,
    entry: str,
    value: str | None,
) -> MatchedSelectColumn | MatchedSelectOptionsColumn:
    """Assign (or unassign with value=None) the option for one raw entry of a select column."""
    if not isinstance(column, (MatchedSelectColumn, MatchedSelectOptionsColumn)):
        raise ColumnStateError(f"column {column.index} is {column.type.value}, not a select column")
    if not any(option.entry == entry for option in column.matched_options):
        raise ColumnStateError(f"column {column.index} has no entry {entry!r}")
    options = [
        MatchedOption(entry=option.entry, value=value) if option.entry == entry else option
        for option in column.matched_options
    ]
    return with_matched_options(column, options)


def is_included(column: Column) -> bool:
    """True when the column contributes a key to normalized records."""
    return isinstance(column, _INCLUDED)


def is_terminal(column: Column) -> bool:
    """True when the column is ready for normalization (matchedSelect is not)."""
    return isinstance(column, _TERMINAL)


def field_key_of(column: Column) -> str | None:
    """Field key held by a matched column, None for empty / ignored."""
    if isinstance(column, (EmptyColumn, IgnoredColumn)):
        return None
    return column.value
