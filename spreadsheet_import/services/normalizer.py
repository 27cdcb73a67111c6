from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from ..matching.columns import cell_text
from ..models.column import (
    Column,
    MatchedCheckboxColumn,
    MatchedColumn,
    MatchedSelectOptionsColumn,
)
from ..models.field import Field
from ..models.record import Record

"""Data normalizer: final column mapping + raw rows -> typed records.

- matched              : raw value ("" -> None), optionally through Field.coerce
- matchedCheckbox      : Field.boolean_matches first, then the default table
- matchedSelectOptions : raw entry -> mapped option value (unknown -> key omitted)
- empty / ignored / matchedSelect : no key

One output record per input row, same order.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "BOOLEAN_WHITELIST",
    "normalize_checkbox_value",
    "normalize_table_data",
]

BOOLEAN_WHITELIST: dict[str, bool] = {
    "yes": True,
    "y": True,
    "true": True,
    "1": True,
    "on": True,
    "x": True,
    "no": False,
    "n": False,
    "false": False,
    "0": False,
    "off": False,
}


def normalize_checkbox_value(value: Any, boolean_matches: Mapping[str, bool] | None = None) -> bool:
    """Coerce a raw cell to bool. Unknown strings and empty cells are False."""
    if isinstance(value, bool):
        return value
    text = cell_text(value)
    if text is None:
        return False
    key = text.strip().lower()
    if boolean_matches:
        for match, result in boolean_matches.items():
            if match.lower() == key:
                return bool(result)
    return BOOLEAN_WHITELIST.get(key, False)


def _normalize_matched(value: Any, field: Field | None, row_number: int) -> Any:
    if value is None or value == "":
        return None
    if field is None or field.coerce is None:
        return value
    try:
        return field.coerce(value)
    except (ValueError, TypeError, ArithmeticError) as e:
        # 変換失敗時は生値を残す (validation 側で検出させる)
        logger.warning(f"row {row_number}: cannot coerce {value!r} for field '{field.key}': {e}")
        return value


def _normalize_row(row: Sequence[Any], row_number: int, columns: Sequence[Column], fields_by_key: dict[str, Field]) -> Record:
    record: Record = {}
    for column in columns:
        raw = row[column.index] if column.index < len(row) else None
        if isinstance(column, MatchedColumn):
            record[column.value] = _normalize_matched(raw, fields_by_key.get(column.value), row_number)
        elif isinstance(column, MatchedCheckboxColumn):
            field = fields_by_key.get(column.value)
            record[column.value] = normalize_checkbox_value(raw, field.boolean_matches if field else None)
        elif isinstance(column, MatchedSelectOptionsColumn):
            option = column.option_for(cell_text(raw))
            if option is not None:
                record[column.value] = option
        # empty / ignored / matchedSelect: no key
    return record


def normalize_table_data(
    columns: Sequence[Column],
    data: Sequence[Sequence[Any]],
    fields: Sequence[Field],
) -> list[Record]:
    """Build one record per raw row from the final column mapping."""
    fields_by_key = {field.key: field for field in fields}
    records = [_normalize_row(row, n, columns, fields_by_key) for n, row in enumerate(data)]
    logger.debug(f"normalized {len(records)} rows over {len(columns)} columns")
    return records
