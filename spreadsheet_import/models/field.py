from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from dataclasses import field as dc_field
from enum import Enum
from typing import Any, ClassVar, Literal, Union

from ..errors import FieldDefinitionError

"""Field (schema) and validation rule models.

A Field is one logical output attribute the caller wants to import into.
Fields are owned by the caller and immutable for the whole import session.

Validation rules are a closed tagged variant (unique | required | regex);
each rule class carries its tag in the `rule` ClassVar and the pipeline
dispatches on the concrete class.
"""

__all__ = [
    "Level",
    "Info",
    "SelectOption",
    "UniqueRule",
    "RequiredRule",
    "RegexRule",
    "Validation",
    "FieldKind",
    "Field",
]

Level = Literal["error", "warning"]

# JS 風フラグ -> re フラグ (g / y / u は Python では意味を持たないので無視)
_REGEX_FLAGS: dict[str, int] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "u": 0,
    "g": 0,
    "y": 0,
}


@dataclass(frozen=True)
class Info:
    """Severity + message attached to a field of an annotated record."""
    level: Level
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"level": self.level, "message": self.message}

    @staticmethod
    def coerce(value: Info | Mapping[str, Any]) -> Info:
        """Accept an Info or a plain {"level", "message"} mapping (hook convenience)."""
        if isinstance(value, Info):
            return value
        level = value.get("level", "error")
        if level not in ("error", "warning"):
            raise FieldDefinitionError(f"invalid level: {level!r}")
        return Info(level=level, message=str(value.get("message", "")))


@dataclass(frozen=True)
class SelectOption:
    """One entry of a controlled vocabulary."""
    value: str
    label: str


@dataclass(frozen=True)
class UniqueRule:
    rule: ClassVar[str] = "unique"
    allow_empty: bool = False
    level: Level = "error"
    error_message: str | None = None


@dataclass(frozen=True)
class RequiredRule:
    rule: ClassVar[str] = "required"
    level: Level = "error"
    error_message: str | None = None


@dataclass(frozen=True)
class RegexRule:
    """Regex rule. Pattern and flags are compiled eagerly so a bad pattern fails at setup."""
    rule: ClassVar[str] = "regex"
    pattern: str = ""
    flags: str = ""
    level: Level = "error"
    error_message: str | None = None
    compiled: re.Pattern[str] = dc_field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        re_flags = 0
        for letter in self.flags:
            if letter not in _REGEX_FLAGS:
                raise FieldDefinitionError(f"unsupported regex flag {letter!r} in /{self.pattern}/{self.flags}")
            re_flags |= _REGEX_FLAGS[letter]
        try:
            compiled = re.compile(self.pattern, re_flags)
        except re.error as e:
            raise FieldDefinitionError(f"invalid regex /{self.pattern}/{self.flags}: {e}") from e
        object.__setattr__(self, "compiled", compiled)


Validation = Union[UniqueRule, RequiredRule, RegexRule]


class FieldKind(Enum):
    INPUT = "input"
    CHECKBOX = "checkbox"
    SELECT = "select"


@dataclass(frozen=True)
class Field:
    """Schema definition for one logical output attribute.

    Attributes:
        key: Unique identifier within the schema (output record key)
        label: Human readable label, also used for header matching
        alternate_matches: Extra header spellings the matcher should accept
        options: Controlled vocabulary; non-empty makes this a select field
        boolean: Checkbox field flag
        boolean_matches: Custom raw string -> bool table (case-insensitive)
        validations: Rules evaluated in declaration order
        required: Marks the field as required for commit
        coerce: Scalar coercion applied to plain (input) values
    """
    key: str
    label: str | None = None
    alternate_matches: tuple[str, ...] = ()
    options: tuple[SelectOption, ...] = ()
    boolean: bool = False
    boolean_matches: dict[str, bool] | None = None
    validations: tuple[Validation, ...] = ()
    required: bool = False
    coerce: Callable[[str], Any] | None = dc_field(default=None, compare=False)
    description: str | None = None

    def __post_init__(self) -> None:
        if not self.key:
            raise FieldDefinitionError("field key must be a non-empty string")
        if self.boolean and self.options:
            raise FieldDefinitionError(f"field '{self.key}' cannot be both boolean and select")

    @property
    def kind(self) -> FieldKind:
        if self.boolean:
            return FieldKind.CHECKBOX
        if self.options:
            return FieldKind.SELECT
        return FieldKind.INPUT

    @property
    def is_required(self) -> bool:
        return self.required or any(isinstance(v, RequiredRule) for v in self.validations)

    @property
    def matchable_labels(self) -> list[str]:
        labels = [self.key, self.label or "", *self.alternate_matches]
        return [label for label in labels if label]

    @property
    def display_name(self) -> str:
        return self.label or self.key
