from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Union

from ..errors import DuplicateColumnWarning, UnknownFieldError, UnmatchedRequiredFieldsError
from ..matching.columns import field_key_of, set_column, set_ignore_column, set_sub_column
from ..matching.fuzzy import match_columns
from ..models.column import Column, columns_from_headers
from ..models.config_models import MatchSettings
from ..models.field import Field
from ..models.record import AnnotatedRecord, Record
from .normalizer import normalize_table_data
from .validation import RowHook, TableHook, add_errors_and_run_hooks, add_errors_and_run_hooks_async

"""Import session: the driver around the column state machine.

Owns one session's column list and raw rows. Every edit replaces the column
list (snapshots handed out earlier never change), enforces the one-column-
per-field policy and reports evictions as DuplicateColumnWarning through the
`on_warning` callback.

Commit flow: unmatched required fields block (UnmatchedRequiredFieldsError)
unless force=True -> normalize -> annotate (hooks + rules) -> on_continue.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "OnContinue",
    "CommitResult",
    "ImportSession",
    "find_unmatched_required_fields",
]

OnContinue = Callable[[list[AnnotatedRecord], list[list[Any]], tuple[Column, ...]], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class CommitResult:
    columns: tuple[Column, ...]
    normalized_rows: list[Record]
    annotated_rows: list[AnnotatedRecord]


def find_unmatched_required_fields(fields: Sequence[Field], columns: Sequence[Column]) -> list[Field]:
    """Required fields (flag or `required` rule) not bound to any column."""
    bound = {key for key in map(field_key_of, columns) if key is not None}
    return [field for field in fields if field.is_required and field.key not in bound]


class ImportSession:
    """Mapping state for one import: headers + rows reconciled against fields."""

    def __init__(
        self,
        fields: Sequence[Field],
        header_values: Sequence[Any],
        data: Sequence[Sequence[Any]],
        settings: MatchSettings | None = None,
        on_warning: Callable[[DuplicateColumnWarning], None] | None = None,
    ) -> None:
        self.fields: tuple[Field, ...] = tuple(fields)
        self.settings = settings or MatchSettings()
        self.data: list[list[Any]] = [list(row) for row in data]
        self.on_warning = on_warning
        columns = columns_from_headers(header_values)
        if self.settings.auto_map_headers:
            columns = match_columns(
                columns,
                self.fields,
                self.data,
                self.settings.match_threshold,
                self.settings.sample_size,
            )
        self._columns: tuple[Column, ...] = tuple(columns)

    @property
    def columns(self) -> tuple[Column, ...]:
        return self._columns

    def _field(self, key: str) -> Field:
        for field in self.fields:
            if field.key == key:
                return field
        raise UnknownFieldError(f"unknown field: {key!r}")

    def _replace(self, column_index: int, new_column: Column) -> None:
        columns = list(self._columns)
        columns[column_index] = new_column
        self._columns = tuple(columns)

    def change(self, column_index: int, field_key: str) -> Column:
        """Assign a field to a column, evicting it from any other column."""
        field = self._field(field_key)
        existing = next(
            (i for i, c in enumerate(self._columns) if field_key_of(c) == field.key and i != column_index),
            None,
        )
        columns = list(self._columns)
        columns[column_index] = set_column(columns[column_index], field, self.data)
        if existing is not None:
            columns[existing] = set_column(columns[existing])
            warning = DuplicateColumnWarning(field.key, column_index, existing)
            logger.warning(str(warning))
            if self.on_warning is not None:
                self.on_warning(warning)
        self._columns = tuple(columns)
        return self._columns[column_index]

    def ignore(self, column_index: int) -> Column:
        self._replace(column_index, set_ignore_column(self._columns[column_index]))
        return self._columns[column_index]

    def revert_ignore(self, column_index: int) -> Column:
        """Back to empty. An empty column holds no field, so no duplicate check."""
        self._replace(column_index, set_column(self._columns[column_index]))
        return self._columns[column_index]

    def sub_change(self, column_index: int, entry: str, option_value: str | None) -> Column:
        self._replace(column_index, set_sub_column(self._columns[column_index], entry, option_value))
        return self._columns[column_index]

    def unmatched_required_fields(self) -> list[Field]:
        return find_unmatched_required_fields(self.fields, self._columns)

    def normalized_rows(self) -> list[Record]:
        return normalize_table_data(self._columns, self.data, self.fields)

    def _check_required(self, force: bool) -> None:
        unmatched = self.unmatched_required_fields()
        if not unmatched:
            return
        names = [field.key for field in unmatched]
        if not force:
            raise UnmatchedRequiredFieldsError(names)
        logger.warning(f"continuing with unmatched required fields: {', '.join(names)}")

    def commit(
        self,
        on_continue: OnContinue | None = None,
        row_hook: RowHook | None = None,
        table_hook: TableHook | None = None,
        force: bool = False,
    ) -> CommitResult:
        """Normalize + annotate the current mapping and hand it to on_continue once."""
        self._check_required(force)
        columns = self._columns
        normalized = normalize_table_data(columns, self.data, self.fields)
        annotated = add_errors_and_run_hooks(normalized, self.fields, row_hook, table_hook)
        if on_continue is not None:
            result = on_continue(annotated, self.data, columns)
            if inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                raise TypeError("on_continue returned an awaitable; use commit_async")
        return CommitResult(columns=columns, normalized_rows=normalized, annotated_rows=annotated)

    async def commit_async(
        self,
        on_continue: OnContinue | None = None,
        row_hook: RowHook | None = None,
        table_hook: TableHook | None = None,
        force: bool = False,
    ) -> CommitResult:
        self._check_required(force)
        columns = self._columns
        normalized = normalize_table_data(columns, self.data, self.fields)
        annotated = await add_errors_and_run_hooks_async(normalized, self.fields, row_hook, table_hook)
        if on_continue is not None:
            result = on_continue(annotated, self.data, columns)
            if inspect.isawaitable(result):
                await result
        return CommitResult(columns=columns, normalized_rows=normalized, annotated_rows=annotated)

    def revalidate(
        self,
        rows: Sequence[AnnotatedRecord],
        row_hook: RowHook | None = None,
        table_hook: TableHook | None = None,
    ) -> list[AnnotatedRecord]:
        """Re-annotate edited rows; __index values are carried over."""
        return add_errors_and_run_hooks(rows, self.fields, row_hook, table_hook)
