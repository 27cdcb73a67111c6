from __future__ import annotations

from typing import Any

"""Record type aliases and annotated-record metadata keys.

Record (normalized): field key -> coerced value, only for included columns.
Annotated record: record + INDEX_KEY (stable opaque identity) and optionally
ERRORS_KEY (field key -> {"level", "message"} or None once cured).
"""

__all__ = [
    "INDEX_KEY",
    "ERRORS_KEY",
    "RawRow",
    "Record",
    "AnnotatedRecord",
    "strip_meta",
]

INDEX_KEY = "__index"
ERRORS_KEY = "__errors"

RawRow = list[Any]
Record = dict[str, Any]
AnnotatedRecord = dict[str, Any]


def strip_meta(record: Record) -> Record:
    """Return a copy of the record without the annotation keys."""
    return {k: v for k, v in record.items() if k not in (INDEX_KEY, ERRORS_KEY)}
