"""Header matching and column state transitions."""

from .columns import (
    field_key_of,
    is_included,
    is_terminal,
    set_column,
    set_ignore_column,
    set_sub_column,
    unique_entries,
)
from .fuzzy import find_match, match_columns, match_options, similarity

__all__ = [
    "field_key_of",
    "find_match",
    "is_included",
    "is_terminal",
    "match_columns",
    "match_options",
    "set_column",
    "set_ignore_column",
    "set_sub_column",
    "similarity",
    "unique_entries",
]
