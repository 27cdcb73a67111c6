from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable, Iterator, Mapping, Sequence
from typing import Any, Union
from uuid import uuid4

from ..errors import HookError
from ..models.field import Field, Info, RegexRule, RequiredRule, UniqueRule, Validation
from ..models.finding_record import FindingRecord
from ..models.record import ERRORS_KEY, INDEX_KEY, AnnotatedRecord, Record

"""Validation & hooks pipeline.

Fixed execution order:
1. table hook  (whole list, may reorder / filter / add rows)
2. row hook    (once per row, sequential, full list as context)
3. built-in rules per field, in declaration order (last rule on a field wins)
4. identity + error merge: __index kept or assigned (uuid4), __errors set,
   explicitly cleared to None when a previous error was cured, else untouched

Hook exceptions are not caught. Findings are returned as data, never raised.
`add_errors_and_run_hooks_async` awaits hooks that return awaitables; the
synchronous entrypoint rejects them with HookError.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "InfoLike",
    "TableErrorReporter",
    "RowErrorReporter",
    "TableHook",
    "RowHook",
    "add_errors_and_run_hooks",
    "add_errors_and_run_hooks_async",
    "count_findings",
    "iter_findings",
]

InfoLike = Union[Info, Mapping[str, Any]]
TableErrorReporter = Callable[[int, str, InfoLike], None]
RowErrorReporter = Callable[[str, InfoLike], None]
TableHook = Callable[[list[Record], TableErrorReporter], Union[list[Record], Awaitable[list[Record]]]]
RowHook = Callable[[Record, RowErrorReporter, list[Record]], Union[Record, Awaitable[Record]]]

DEFAULT_UNIQUE_MESSAGE = "Field must be unique"
DEFAULT_REQUIRED_MESSAGE = "Field is required"


class _Errors:
    """Per-row error accumulator keyed by position in the current row list."""

    def __init__(self) -> None:
        self._rows: dict[int, dict[str, Info]] = {}

    def report(self, row_index: int, field_key: str, info: InfoLike) -> None:
        self._rows.setdefault(row_index, {})[field_key] = Info.coerce(info)

    def bind(self, row_index: int) -> RowErrorReporter:
        def report_row(field_key: str, info: InfoLike) -> None:
            self.report(row_index, field_key, info)

        return report_row

    def get(self, row_index: int) -> dict[str, Info]:
        return self._rows.get(row_index, {})


def _require_sync(result: Any, hook_name: str) -> Any:
    if inspect.isawaitable(result):
        if inspect.iscoroutine(result):
            result.close()  # "never awaited" 警告を抑止
        raise HookError(f"{hook_name} returned an awaitable; use add_errors_and_run_hooks_async")
    return result


def _unique_key(value: Any) -> Any:
    # True / 1 を区別する
    try:
        hash(value)
    except TypeError:
        return (type(value).__name__, repr(value))
    return (isinstance(value, bool), value)


def _regex_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _regex_message(rule: RegexRule) -> str:
    return f"Field did not match the regex /{rule.pattern}/{rule.flags}"


def _check_unique(rows: Sequence[Record], field: Field, rule: UniqueRule, errors: _Errors) -> None:
    values = [row.get(field.key) for row in rows]
    taken: set[Any] = set()
    duplicates: set[Any] = set()
    for value in values:
        if rule.allow_empty and not value:
            continue
        key = _unique_key(value)
        if key in taken:
            duplicates.add(key)
        else:
            taken.add(key)
    if not duplicates:
        return
    info = Info(level=rule.level, message=rule.error_message or DEFAULT_UNIQUE_MESSAGE)
    for index, value in enumerate(values):
        if rule.allow_empty and not value:
            continue
        if _unique_key(value) in duplicates:
            errors.report(index, field.key, info)


def _check_required(rows: Sequence[Record], field: Field, rule: RequiredRule, errors: _Errors) -> None:
    info = Info(level=rule.level, message=rule.error_message or DEFAULT_REQUIRED_MESSAGE)
    for index, row in enumerate(rows):
        value = row.get(field.key)
        if value is None or (isinstance(value, str) and value == ""):
            errors.report(index, field.key, info)


def _check_regex(rows: Sequence[Record], field: Field, rule: RegexRule, errors: _Errors) -> None:
    info = Info(level=rule.level, message=rule.error_message or _regex_message(rule))
    for index, row in enumerate(rows):
        if rule.compiled.search(_regex_text(row.get(field.key))) is None:
            errors.report(index, field.key, info)


def _apply_rule(rows: Sequence[Record], field: Field, rule: Validation, errors: _Errors) -> None:
    if isinstance(rule, UniqueRule):
        _check_unique(rows, field, rule, errors)
    elif isinstance(rule, RequiredRule):
        _check_required(rows, field, rule, errors)
    elif isinstance(rule, RegexRule):
        _check_regex(rows, field, rule, errors)
    else:  # pragma: no cover - closed variant
        raise TypeError(f"unknown validation rule: {rule!r}")


def _apply_rules(rows: Sequence[Record], fields: Iterable[Field], errors: _Errors) -> None:
    for field in fields:
        for rule in field.validations:
            _apply_rule(rows, field, rule, errors)


def _merge(rows: Sequence[Record], errors: _Errors) -> list[AnnotatedRecord]:
    annotated: list[AnnotatedRecord] = []
    for index, row in enumerate(rows):
        new_row: AnnotatedRecord = dict(row)
        if INDEX_KEY not in new_row:
            new_row[INDEX_KEY] = str(uuid4())
        row_errors = errors.get(index)
        if row_errors:
            new_row[ERRORS_KEY] = {key: info.to_dict() for key, info in row_errors.items()}
        elif row.get(ERRORS_KEY) is not None:
            new_row[ERRORS_KEY] = None
        annotated.append(new_row)
    errs, warns = count_findings(annotated)
    logger.debug(f"validated {len(annotated)} rows errors={errs} warnings={warns}")
    return annotated


def add_errors_and_run_hooks(
    data: Sequence[Record],
    fields: Sequence[Field],
    row_hook: RowHook | None = None,
    table_hook: TableHook | None = None,
) -> list[AnnotatedRecord]:
    """Run hooks and built-in rules, returning new annotated records."""
    errors = _Errors()
    rows: list[Record] = list(data)

    if table_hook is not None:
        rows = list(_require_sync(table_hook(rows, errors.report), "table hook"))

    if row_hook is not None:
        context = rows
        rows = [
            _require_sync(row_hook(row, errors.bind(index), context), "row hook")
            for index, row in enumerate(context)
        ]

    _apply_rules(rows, fields, errors)
    return _merge(rows, errors)


async def add_errors_and_run_hooks_async(
    data: Sequence[Record],
    fields: Sequence[Field],
    row_hook: RowHook | None = None,
    table_hook: TableHook | None = None,
) -> list[AnnotatedRecord]:
    """Same as add_errors_and_run_hooks, awaiting hooks that return awaitables.

    The table hook completes before the first row hook starts; row hooks run
    one at a time in row order.
    """
    errors = _Errors()
    rows: list[Record] = list(data)

    if table_hook is not None:
        result = table_hook(rows, errors.report)
        if inspect.isawaitable(result):
            result = await result
        rows = list(result)

    if row_hook is not None:
        context = rows
        new_rows: list[Record] = []
        for index, row in enumerate(context):
            result = row_hook(row, errors.bind(index), context)
            if inspect.isawaitable(result):
                result = await result
            new_rows.append(result)
        rows = new_rows

    _apply_rules(rows, fields, errors)
    return _merge(rows, errors)


def iter_findings(rows: Iterable[AnnotatedRecord]) -> Iterator[FindingRecord]:
    """Flatten __errors of annotated rows into FindingRecord entries."""
    for position, row in enumerate(rows):
        for field_key, info in (row.get(ERRORS_KEY) or {}).items():
            yield FindingRecord(
                row=position,
                index=str(row.get(INDEX_KEY, "")),
                field=field_key,
                level=info["level"],
                message=info["message"],
            )


def count_findings(rows: Iterable[AnnotatedRecord]) -> tuple[int, int]:
    """Return (errors, warnings) over all annotated rows."""
    errs = 0
    warns = 0
    for finding in iter_findings(rows):
        if finding.level == "error":
            errs += 1
        else:
            warns += 1
    return errs, warns
