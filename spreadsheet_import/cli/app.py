from __future__ import annotations

import argparse
import json
import sys
import time
from dataclasses import replace
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from ..config.loader import ConfigError, load_config
from ..errors import DuplicateColumnWarning, UnmatchedRequiredFieldsError
from ..excel.reader import RawTable, SheetHeaderError, UnsupportedFileError, read_table
from ..logging.error_log import FindingLogBuffer
from ..logging.init import log_summary, setup_logging
from ..matching.columns import field_key_of
from ..models.column import column_to_dict
from ..services.session import ImportSession
from ..services.summary import build_summary, render_summary_line
from ..services.validation import iter_findings

"""CLI entrypoint.

Flow:
- Load .env (python-dotenv) then the YAML field config
- Read the spreadsheet, auto-map headers, log the mapping
- Commit (required-field gate unless --force), write findings log / JSON output
- SUMMARY line + exit code
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_FINDINGS = 2
EXIT_UNMATCHED_REQUIRED = 3


def _load_env_file(path: Path, override: bool = False) -> None:
    """Load .env so SPREADSHEET_IMPORT_* overrides reach the config loader."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Match spreadsheet columns to a field schema and validate rows")
    p.add_argument("file", type=Path, help="Input .xlsx / .csv file")
    p.add_argument("--config", type=Path, default=Path("config/fields.yml"), help="Field config (YAML)")
    p.add_argument("--sheet", default=None, help="Sheet name (default: first sheet)")
    p.add_argument("--threshold", type=float, default=None, help="Header match threshold 0..1")
    p.add_argument("--output", type=Path, default=None, help="Write columns + annotated rows as JSON")
    p.add_argument("--env-file", type=Path, default=Path(".env"), help="dotenv file to load")
    p.add_argument("--force", action="store_true", help="Continue even if required fields are unmatched")
    p.add_argument("--inspect", action="store_true", help="Print headers & first rows then exit")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _inspect(table: RawTable) -> int:
    print(f"SHEET: {table.sheet_name or '-'} headers={table.header_values}")
    for row in table.rows[:3]:
        print(f"  row={row}")
    return EXIT_SUCCESS


def _write_output(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    # date / Decimal などは str で出力
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2, default=str), encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    _load_env_file(args.env_file)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    settings = cfg.settings
    if args.threshold is not None:
        try:
            settings = replace(settings, match_threshold=args.threshold)
        except ValueError as e:
            logger.error(f"config: {e}")
            return EXIT_FATAL

    try:
        table = read_table(args.file, sheet=args.sheet, header_row=settings.header_row)
    except (SheetHeaderError, UnsupportedFileError, OSError) as e:
        logger.error(f"read: {e}")
        return EXIT_FATAL

    if args.inspect:
        return _inspect(table)

    started = time.perf_counter()
    logger.info(f"Processing {args.file.name}: {len(table.header_values)} columns, {len(table.rows)} rows")

    def on_warning(warning: DuplicateColumnWarning) -> None:
        # session 側で WARN 出力済み
        logger.debug(f"duplicate column resolved: field={warning.field_key}")

    session = ImportSession(cfg.fields, table.header_values, table.rows, settings, on_warning=on_warning)
    for column in session.columns:
        target = field_key_of(column)
        logger.info(f"column {column.index} {column.header!r} -> {column.type.value}{f' {target}' if target else ''}")

    unmatched = session.unmatched_required_fields()
    try:
        result = session.commit(force=args.force)
    except UnmatchedRequiredFieldsError as e:
        logger.error(f"mapping: {e}")
        return EXIT_UNMATCHED_REQUIRED

    findings = FindingLogBuffer()
    findings.extend(iter_findings(result.annotated_rows))
    log_path = findings.flush()
    if log_path is not None:
        logger.info(f"findings written to {log_path}")

    if args.output is not None:
        _write_output(
            args.output,
            {
                "columns": [column_to_dict(c) for c in result.columns],
                "rows": result.annotated_rows,
            },
        )
        logger.info(f"output written to {args.output}")

    summary = build_summary(result.columns, result.annotated_rows, len(unmatched), time.perf_counter() - started)
    log_summary(render_summary_line(summary))

    if summary.errors > 0:
        return EXIT_FINDINGS
    return EXIT_SUCCESS
