from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from ..models.finding_record import FindingRecord

"""Validation finding log (JSON Lines).

- 固定スキーマ (row, index, field, level, message; 追加キー禁止)
- 実行ごとに `logs/findings-YYYYMMDD-HHMMSS.log` (UTC) を 1 つ。findings が無ければ作らない
- シリアル実行前提のためスレッド安全性は不要
"""

__all__ = [
    "FindingRecord",
    "FindingLogBuffer",
]

LOGS_DIR = Path("./logs")
FILE_PREFIX = "findings"
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class FindingLogBuffer:
    """Collects FindingRecords in memory; flush() appends them to this run's log file."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self.logs_dir = logs_dir or LOGS_DIR
        self._pending: list[FindingRecord] = []
        self._path: Path | None = None

    @property
    def file_path(self) -> Path:
        """Decided (and the directory created) on first access, then fixed for the run."""
        if self._path is None:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            self._path = self.logs_dir / f"{FILE_PREFIX}-{datetime.now(UTC):{TIMESTAMP_FMT}}.log"
        return self._path

    def append(self, record: FindingRecord) -> None:
        self._pending.append(record)

    def extend(self, records: Iterable[FindingRecord]) -> None:
        self._pending.extend(records)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._pending)

    def flush(self) -> Path | None:
        """Write pending records. Returns the log path, or None when there was nothing to write."""
        if not self._pending:
            return None
        path = self.file_path
        lines = "".join(f"{r.to_json_line()}\n" for r in self._pending)
        with path.open("a", encoding="utf-8") as f:
            f.write(lines)
        self._pending.clear()
        return path
