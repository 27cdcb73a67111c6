from __future__ import annotations

import json
from dataclasses import asdict, dataclass

"""FindingRecord model for validation finding logs.

A FindingRecord is one field-level error/warning of an annotated row, written
as one JSON Lines entry by logging.error_log.FindingLogBuffer.

Fixed key set: row, index, field, level, message (no extra keys).
"""

__all__ = [
    "FindingRecord",
]


@dataclass(frozen=True)
class FindingRecord:
    """Structured validation finding for JSON Lines logging.

    Attributes:
        row: 0-based position of the row in the annotated output
        index: Stable row identity (`__index` of the annotated record)
        field: Field key the finding is attached to
        level: "error" or "warning"
        message: Human readable message
    """
    row: int
    index: str
    field: str
    level: str
    message: str

    def to_json_line(self) -> str:
        """Serialize FindingRecord to JSON Lines format."""
        return json.dumps(asdict(self), ensure_ascii=False)
