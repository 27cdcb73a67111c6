from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from rapidfuzz import fuzz, utils

from ..models.column import Column, EmptyColumn, MatchedOption, MatchedSelectColumn
from ..models.config_models import DEFAULT_MATCH_THRESHOLD
from ..models.field import Field, SelectOption
from .columns import field_key_of, set_column, unique_entries, with_matched_options

"""Fuzzy header matcher.

Proposes an initial column -> field mapping when a session starts:
- score = normalized Indel similarity (rapidfuzz fuzz.ratio / 100), 1 = identical
- strings are preprocessed with rapidfuzz.utils.default_process
  (lower case, non-alphanumerics -> space, trimmed)
- a field is matched against its key, label and alternate_matches
- ties go to the first field in schema order
- a match is accepted only when score >= threshold
- select entries are listed from every row; only entries seen in the first
  sample_size rows are auto-seeded (the rest wait for set_sub_column)
"""

logger = logging.getLogger(__name__)

__all__ = [
    "similarity",
    "find_match",
    "match_options",
    "match_columns",
]


def similarity(a: str, b: str) -> float:
    """Similarity in [0, 1]. Empty strings never match anything."""
    left = utils.default_process(a or "")
    right = utils.default_process(b or "")
    if not left or not right:
        return 0.0
    return fuzz.ratio(left, right) / 100.0


def _score_field(header: str, field: Field) -> float:
    return max((similarity(header, label) for label in field.matchable_labels), default=0.0)


def find_match(
    header: str,
    fields: Iterable[Field],
    threshold: float = DEFAULT_MATCH_THRESHOLD,
    exclude: Iterable[str] = (),
) -> Field | None:
    """Best-scoring field for a header, or None when nothing reaches the threshold."""
    excluded = set(exclude)
    best: Field | None = None
    best_score = -1.0
    for field in fields:
        if field.key in excluded:
            continue
        score = _score_field(header, field)
        # 同点は先勝ち (schema 順)
        if score > best_score:
            best, best_score = field, score
    if best is None or best_score < threshold:
        return None
    logger.debug(f"header {header!r} -> field {best.key!r} score={best_score:.3f}")
    return best


def match_options(
    entries: Iterable[MatchedOption],
    options: Sequence[SelectOption],
    threshold: float = DEFAULT_MATCH_THRESHOLD,
) -> list[MatchedOption]:
    """Seed select entries with the closest option; each entry is judged independently."""
    seeded: list[MatchedOption] = []
    for entry in entries:
        if entry.value is not None:
            seeded.append(entry)
            continue
        best: SelectOption | None = None
        best_score = -1.0
        for option in options:
            score = max(similarity(entry.entry, option.label), similarity(entry.entry, option.value))
            if score > best_score:
                best, best_score = option, score
        if best is not None and best_score >= threshold:
            seeded.append(MatchedOption(entry=entry.entry, value=best.value))
        else:
            seeded.append(entry)
    return seeded


def _seed_sampled(
    entries: Sequence[MatchedOption],
    sample: Sequence[Sequence[Any]],
    index: int,
    field: Field,
    threshold: float,
) -> list[MatchedOption]:
    sampled = {option.entry for option in unique_entries(sample, index)}
    seeded = {
        option.entry: option
        for option in match_options([e for e in entries if e.entry in sampled], field.options, threshold)
    }
    return [seeded.get(entry.entry, entry) for entry in entries]


def match_columns(
    columns: Sequence[Column],
    fields: Sequence[Field],
    data: Sequence[Sequence[Any]],
    match_threshold: float = DEFAULT_MATCH_THRESHOLD,
    sample_size: int | None = None,
) -> list[Column]:
    """Return a new column list with auto-matched fields for every empty column.

    Ignored and already-matched columns are left untouched and keep their
    fields; a field is never proposed for two columns.
    """
    rows = data[:sample_size] if sample_size is not None else data
    taken = {key for key in map(field_key_of, columns) if key is not None}
    result: list[Column] = []
    matched = 0
    for column in columns:
        if not isinstance(column, EmptyColumn):
            result.append(column)
            continue
        field = find_match(column.header, fields, match_threshold, exclude=taken)
        if field is None:
            result.append(column)
            continue
        # entries は全行から、自動割当はサンプル行の entries のみ
        new_column = set_column(column, field, data)
        if isinstance(new_column, MatchedSelectColumn):
            new_column = with_matched_options(
                new_column, _seed_sampled(new_column.matched_options, rows, column.index, field, match_threshold)
            )
        taken.add(field.key)
        matched += 1
        result.append(new_column)
    logger.info(f"auto-matched {matched}/{len(columns)} columns (threshold={match_threshold})")
    return result
