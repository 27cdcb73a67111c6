from __future__ import annotations

from collections.abc import Sequence

from ..matching.columns import is_included
from ..models.column import Column, IgnoredColumn
from ..models.import_summary import ImportSummary
from ..models.record import AnnotatedRecord
from .validation import count_findings

"""Summary line rendering.

Format:
    rows={rows} columns={matched}/{columns} ignored={ignored} errors={errors}
    warnings={warnings} unmatched_required={unmatched} elapsed_sec={elapsed}

The SUMMARY label itself is added by logging.init.log_summary.
"""


def build_summary(
    columns: Sequence[Column],
    annotated_rows: Sequence[AnnotatedRecord],
    unmatched_required: int,
    elapsed_seconds: float,
) -> ImportSummary:
    errors, warnings = count_findings(annotated_rows)
    return ImportSummary(
        rows=len(annotated_rows),
        columns=len(columns),
        matched_columns=sum(1 for c in columns if is_included(c)),
        ignored_columns=sum(1 for c in columns if isinstance(c, IgnoredColumn)),
        errors=errors,
        warnings=warnings,
        unmatched_required=unmatched_required,
        elapsed_seconds=elapsed_seconds,
    )


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(summary: ImportSummary) -> str:
    """Render the summary content (without the SUMMARY label).

    Examples:
        >>> s = ImportSummary(rows=3, columns=4, matched_columns=2, ignored_columns=1,
        ...                   errors=1, warnings=0, unmatched_required=0, elapsed_seconds=0.5)
        >>> render_summary_line(s)
        'rows=3 columns=2/4 ignored=1 errors=1 warnings=0 unmatched_required=0 elapsed_sec=0.5'
    """
    return (
        f"rows={summary.rows} "
        f"columns={summary.matched_columns}/{summary.columns} "
        f"ignored={summary.ignored_columns} "
        f"errors={summary.errors} "
        f"warnings={summary.warnings} "
        f"unmatched_required={summary.unmatched_required} "
        f"elapsed_sec={_format_seconds(summary.elapsed_seconds)}"
    )
