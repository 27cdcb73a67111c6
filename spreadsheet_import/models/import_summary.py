from __future__ import annotations

from dataclasses import dataclass

"""Aggregated result of one import run, used for the SUMMARY output line."""

__all__ = [
    "ImportSummary",
]


@dataclass(frozen=True)
class ImportSummary:
    rows: int  # annotated rows handed to on_continue
    columns: int  # raw columns
    matched_columns: int  # matched / matchedCheckbox / matchedSelectOptions
    ignored_columns: int
    errors: int  # error-level findings
    warnings: int  # warning-level findings
    unmatched_required: int  # required fields without a column (force-continue)
    elapsed_seconds: float
