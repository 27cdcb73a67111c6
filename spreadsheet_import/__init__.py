"""Spreadsheet import core: column matching, normalization and validation.

Raw headers + rows -> column mapping -> normalized records -> annotated records.
"""

from .matching.columns import set_column, set_ignore_column, set_sub_column
from .matching.fuzzy import match_columns
from .services.normalizer import normalize_table_data
from .services.session import ImportSession
from .services.validation import add_errors_and_run_hooks, add_errors_and_run_hooks_async

__all__ = [
    "ImportSession",
    "add_errors_and_run_hooks",
    "add_errors_and_run_hooks_async",
    "match_columns",
    "normalize_table_data",
    "set_column",
    "set_ignore_column",
    "set_sub_column",
]
