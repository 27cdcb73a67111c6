from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Union

"""Column mapping state models.

One Column per raw input column. The state is a closed tagged union: every
variant is a separate frozen dataclass carrying its tag in the `type` ClassVar.
Transitions (see matching.columns) always build a new value; a column is
never patched in place.

State transitions:
    empty -> matched | matchedCheckbox | matchedSelect | ignored
    matchedSelect <-> matchedSelectOptions (via set_sub_column)
    any -> empty (revert) | ignored
"""

__all__ = [
    "ColumnType",
    "MatchedOption",
    "EmptyColumn",
    "IgnoredColumn",
    "MatchedColumn",
    "MatchedCheckboxColumn",
    "MatchedSelectColumn",
    "MatchedSelectOptionsColumn",
    "Column",
    "Columns",
    "columns_from_headers",
    "column_to_dict",
]


class ColumnType(Enum):
    EMPTY = "empty"
    IGNORED = "ignored"
    MATCHED = "matched"
    MATCHED_CHECKBOX = "matchedCheckbox"
    MATCHED_SELECT = "matchedSelect"
    MATCHED_SELECT_OPTIONS = "matchedSelectOptions"


@dataclass(frozen=True)
class MatchedOption:
    """Raw distinct entry -> chosen option value (None while unassigned)."""
    entry: str
    value: str | None = None


@dataclass(frozen=True)
class EmptyColumn:
    type: ClassVar[ColumnType] = ColumnType.EMPTY
    index: int
    header: str


@dataclass(frozen=True)
class IgnoredColumn:
    type: ClassVar[ColumnType] = ColumnType.IGNORED
    index: int
    header: str


@dataclass(frozen=True)
class MatchedColumn:
    type: ClassVar[ColumnType] = ColumnType.MATCHED
    index: int
    header: str
    value: str


@dataclass(frozen=True)
class MatchedCheckboxColumn:
    type: ClassVar[ColumnType] = ColumnType.MATCHED_CHECKBOX
    index: int
    header: str
    value: str


@dataclass(frozen=True)
class MatchedSelectColumn:
    """Select column with at least one entry still unassigned (or none assigned yet)."""
    type: ClassVar[ColumnType] = ColumnType.MATCHED_SELECT
    index: int
    header: str
    value: str
    matched_options: tuple[MatchedOption, ...] = ()


@dataclass(frozen=True)
class MatchedSelectOptionsColumn:
    """Select column whose every entry has an option: ready for normalization."""
    type: ClassVar[ColumnType] = ColumnType.MATCHED_SELECT_OPTIONS
    index: int
    header: str
    value: str
    matched_options: tuple[MatchedOption, ...] = ()

    def option_for(self, entry: Any) -> str | None:
        for option in self.matched_options:
            if option.entry == entry:
                return option.value
        return None


Column = Union[
    EmptyColumn,
    IgnoredColumn,
    MatchedColumn,
    MatchedCheckboxColumn,
    MatchedSelectColumn,
    MatchedSelectOptionsColumn,
]
Columns = list[Column]


def columns_from_headers(header_values: Iterable[Any]) -> Columns:
    """Create one empty column per header. Missing headers (None) become ""."""
    return [
        EmptyColumn(index=index, header="" if header is None else str(header))
        for index, header in enumerate(header_values)
    ]


def column_to_dict(column: Column) -> dict[str, Any]:
    """Plain dict view for display / audit output (JSON friendly)."""
    out: dict[str, Any] = {"type": column.type.value, "index": column.index, "header": column.header}
    if isinstance(column, (MatchedColumn, MatchedCheckboxColumn, MatchedSelectColumn, MatchedSelectOptionsColumn)):
        out["value"] = column.value
    if isinstance(column, (MatchedSelectColumn, MatchedSelectOptionsColumn)):
        out["matched_options"] = [{"entry": o.entry, "value": o.value} for o in column.matched_options]
    return out
