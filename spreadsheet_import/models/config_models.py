from __future__ import annotations

from dataclasses import dataclass

from .field import Field

"""Config dataclasses for the spreadsheet import core.

These are the typed results of config.loader; callers using the Python API
directly can build them by hand.
"""

__all__ = [
    "DEFAULT_MATCH_THRESHOLD",
    "DEFAULT_SAMPLE_SIZE",
    "MatchSettings",
    "ImportConfig",
]

DEFAULT_MATCH_THRESHOLD = 0.5
DEFAULT_SAMPLE_SIZE = 1


@dataclass(frozen=True)
class MatchSettings:
    """Auto-mapping behaviour for a session.

    match_threshold: minimum similarity (0..1) for a header or select entry match
    auto_map_headers: run the fuzzy matcher when the session starts
    sample_size: leading rows whose select entries are auto-seeded (None = all rows)
    header_row: 0-based row index holding headers (file reader only)
    """
    match_threshold: float = DEFAULT_MATCH_THRESHOLD
    auto_map_headers: bool = True
    sample_size: int | None = DEFAULT_SAMPLE_SIZE
    header_row: int = 0

    def __post_init__(self) -> None:
        if not 0.0 <= self.match_threshold <= 1.0:
            raise ValueError(f"match_threshold must be within [0, 1]: {self.match_threshold}")
        if self.sample_size is not None and self.sample_size < 1:
            raise ValueError(f"sample_size must be >= 1: {self.sample_size}")
        if self.header_row < 0:
            raise ValueError(f"header_row must be >= 0: {self.header_row}")


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration: the schema plus match settings."""
    fields: tuple[Field, ...]
    settings: MatchSettings = MatchSettings()

    def field_by_key(self, key: str) -> Field | None:
        for f in self.fields:
            if f.key == key:
                return f
        return None
